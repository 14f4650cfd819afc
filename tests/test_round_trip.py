"""
Tests for export -> import round trips through the full engine.
"""
import io
import zipfile

import pytest


FPS = 30


def _master_clip():
    from jr3d.domain import IdentifiableClip, KeyframeTrack

    times = [i / FPS for i in range(91)]
    track = KeyframeTrack('Hips.position', times=times, values=[float(i) for i in range(91)])
    return IdentifiableClip(name='Take 001', duration=3.0, tracks=[track])


def fake_model_loader(files, name=None):
    """Stands in for the FBX decoder: new id, new bone uuids, full-length clip."""
    from jr3d.domain import Bone
    from jr3d.project.callbacks import load_model_files

    model = load_model_files(files, name)
    model.original_clip = _master_clip()
    model.bones = [Bone('Hips'), Bone('Hand_R')]
    return model


def make_model(idx, clip_ranges):
    from jr3d.domain import BinaryFile, Bone, ModelInstance, create_sub_clip

    original = _master_clip()
    clips = []
    for clip_name, (start, end) in clip_ranges.items():
        clips.append(create_sub_clip(original, clip_name, start, end, FPS, [c.display_name for c in clips]))
    return ModelInstance(
        id=f"model_{idx}",
        name=f"Hero{idx}",
        file=BinaryFile(f"hero{idx}.fbx", b"Kaydara FBX Binary " + bytes([idx])),
        texture_files=[BinaryFile('skin.png', b'\x89PNG skin'), BinaryFile('skin.png', b'dup')],
        bones=[Bone('Hips'), Bone('Hand_R')],
        original_clip=original,
        created_clips=clips,
        position=(float(idx), 0.0, -1.5),
        rotation=(0.0, 90.0, 0.0),
        scale=(2.0, 2.0, 2.0),
        render_priority=idx,
        opacity=0.5,
        is_loop_enabled=False,
        view_snapshots=[{'id': 'v1', 'name': 'Front', 'cameraPosition': [0, 1, 5]}],
    )


def make_session(n_models=2):
    from jr3d.domain import DirectorClip, DirectorTimeline, DirectorTrack, LoopRegion

    models = [make_model(i, {'Attack': (10, 40), 'Idle': (40, 90)}) for i in range(n_models)]
    tracks = []
    for t_idx, model in enumerate(models):
        track = DirectorTrack(id=f"track_{t_idx}", name=f"Track {t_idx}", order=t_idx, is_muted=t_idx == 1)
        for c_idx, clip in enumerate(model.created_clips):
            track.clips.append(DirectorClip(
                id=f"dclip_{t_idx}_{c_idx}",
                track_id=track.id,
                source_type='3d-model',
                source_model_id=model.id,
                source_model_name=model.name,
                source_animation_id=clip.custom_id,
                source_animation_name=clip.display_name,
                source_animation_duration=clip.end_frame - clip.start_frame,
                start_frame=c_idx * 60,
                end_frame=c_idx * 60 + clip.end_frame - clip.start_frame,
                trim_start=2,
                speed=1.5,
                loop=True,
            ))
        tracks.append(track)
    timeline = DirectorTimeline(total_frames=600, fps=FPS, loop_region=LoopRegion(30, 120, True))
    return models, tracks, timeline


def export_session(models, tracks, timeline, **option_flags):
    from jr3d.project import ExportOptions, ExportProjectParams, export_project
    from jr3d.project.state import GlobalSettings

    result = export_project(ExportProjectParams(
        project_name="round trip",
        export_options=ExportOptions(**option_flags),
        models=models,
        director_tracks=tracks,
        director_timeline=timeline,
        global_settings=GlobalSettings(camera_fov=45.0, show_grid=False),
    ))
    assert result.success, result.error
    return result


def load(data, director=None):
    from jr3d.project import ModelRegistry, RestoreCollaborators, load_project

    registry = ModelRegistry()
    result = load_project(data, registry, director, RestoreCollaborators(load_model=fake_model_loader))
    return result, registry


class TestRoundTrip:
    """测试导出后再导入"""

    def test_cardinality(self):
        """测试模型、片段、轨道数量一致"""
        from jr3d.project import DirectorSession

        models, tracks, timeline = make_session(3)
        exported = export_session(models, tracks, timeline)
        director = DirectorSession()
        result, registry = load(exported.data, director)

        assert result.success is True
        assert len(result.model_id_map) == 3
        assert len(registry.models) == 3
        assert sum(len(m.created_clips) for m in registry.models.values()) == 6
        assert len(result.clip_id_map) == 6
        assert len(director.tracks) == 3
        assert director.clip_count == 6

    def test_transforms(self):
        models, tracks, timeline = make_session(2)
        result, registry = load(export_session(models, tracks, timeline).data)

        for original in models:
            restored = registry.get_model(result.model_id_map[original.id])
            assert restored.id != original.id
            assert restored.name == original.name
            assert restored.position == original.position
            assert restored.rotation == original.rotation
            assert restored.scale == original.scale
            assert restored.render_priority == original.render_priority
            assert restored.opacity == original.opacity
            assert restored.is_loop_enabled is False
            assert restored.view_snapshots == original.view_snapshots
            assert [t.name for t in restored.texture_files] == ['skin.png']

    def test_ledger_closure(self):
        """测试导演片段只引用还原后的 ID"""
        from jr3d.project import DirectorSession

        models, tracks, timeline = make_session(2)
        director = DirectorSession()
        result, _ = load(export_session(models, tracks, timeline).data, director)

        new_models = set(result.model_id_map.values())
        new_clips = set(result.clip_id_map.values())
        old_ids = {m.id for m in models} | {c.custom_id for m in models for c in m.created_clips}
        for clip in director.all_clips():
            assert clip.source_model_id in new_models
            assert clip.source_animation_id in new_clips
            assert clip.source_model_id not in old_ids
            assert clip.source_animation_id not in old_ids

    def test_director_fields(self):
        """测试时间轴、轨道标志与二次更新字段"""
        from jr3d.project import DirectorSession

        models, tracks, timeline = make_session(2)
        director = DirectorSession()
        load(export_session(models, tracks, timeline).data, director)

        assert director.timeline.fps == FPS
        assert director.timeline.total_frames == 600
        region = director.timeline.loop_region
        assert (region.in_point, region.out_point, region.enabled) == (30, 120, True)
        assert [t.is_muted for t in director.tracks] == [False, True]
        clip = director.tracks[0].clips[1]
        assert (clip.start_frame, clip.trim_start, clip.speed, clip.loop) == (60, 2, 1.5, True)

    def test_attack_scenario(self):
        """测试 10-40 帧片段的时长与 ID 映射"""
        models, tracks, timeline = make_session(1)
        original_clip = models[0].created_clips[0]
        result, registry = load(export_session(models, tracks, timeline).data)

        restored_model = registry.get_model(result.model_id_map['model_0'])
        restored = restored_model.created_clips[0]
        assert restored.display_name == 'Attack'
        assert restored.duration == (40 - 10) / 30
        assert result.clip_id_map[original_clip.custom_id] == restored.custom_id
        assert restored.custom_id != original_clip.custom_id

    def test_global_settings_and_progress(self):
        models, tracks, timeline = make_session(1)
        result, registry = load(export_session(models, tracks, timeline).data)

        assert result.project_state.global_settings.camera_fov == 45.0
        assert result.project_state.global_settings.show_grid is False
        percents = [p for p, _ in registry.progress]
        assert percents[:3] == [5, 10, 15]
        assert percents[-1] == 100
        assert percents == sorted(percents)

    def test_animations_disabled(self):
        """测试关闭动画导出时不写入 director / createdClips"""
        from jr3d.project import DirectorSession

        models, tracks, timeline = make_session(1)
        exported = export_session(models, tracks, timeline, include_animations=False)
        director = DirectorSession()
        result, registry = load(exported.data, director)

        assert result.project_state.director is None
        assert result.project_state.models[0].created_clips is None
        assert result.clip_id_map == {}
        assert director.tracks == []
        assert list(registry.models.values())[0].created_clips == []


class TestPartialRestore:
    """测试部分资源缺失"""

    def _drop(self, data, name):
        src = zipfile.ZipFile(io.BytesIO(data))
        out = io.BytesIO()
        with zipfile.ZipFile(out, 'w') as dst:
            for entry in src.namelist():
                if entry != name:
                    dst.writestr(entry, src.read(entry))
        return out.getvalue()

    def test_missing_model_file(self):
        """测试一个模型的 FBX 被删除"""
        from jr3d.project import DirectorSession

        models, tracks, timeline = make_session(2)
        data = self._drop(export_session(models, tracks, timeline).data, 'models/model_1/hero1.fbx')
        director = DirectorSession()
        result, registry = load(data, director)

        assert result.success is True
        assert len(result.model_id_map) == 1
        assert 'model_1' not in result.model_id_map
        assert len(registry.models) == 1
        # clips on the missing model are dropped, its track stays
        assert len(director.tracks) == 2
        assert director.tracks[1].clips == []
        assert any('model_1' in w for w in result.warnings)

    def test_clip_extraction_failure(self):
        """测试单个片段切割失败不影响其他片段"""
        from jr3d.domain import create_sub_clip
        from jr3d.project import ModelRegistry, RestoreCollaborators, load_project

        def flaky(original, name, start, end, fps, existing):
            if name == 'Idle':
                raise ValueError("broken range")
            return create_sub_clip(original, name, start, end, fps, existing)

        models, tracks, timeline = make_session(1)
        registry = ModelRegistry()
        result = load_project(
            export_session(models, tracks, timeline).data,
            registry,
            collaborators=RestoreCollaborators(load_model=fake_model_loader, create_sub_clip=flaky),
        )
        assert result.success is True
        assert len(result.clip_id_map) == 1
        restored = list(registry.models.values())[0]
        assert [c.display_name for c in restored.created_clips] == ['Attack']

    def test_sub_clip_factory_crash(self):
        """测试切割器抛出任意异常时只跳过该片段"""
        from jr3d.domain import create_sub_clip
        from jr3d.project import DirectorSession, ModelRegistry, RestoreCollaborators, load_project

        def crashing(original, name, start, end, fps, existing):
            if name == 'Idle':
                raise RuntimeError("decoder crashed")
            return create_sub_clip(original, name, start, end, fps, existing)

        models, tracks, timeline = make_session(2)
        registry = ModelRegistry()
        director = DirectorSession()
        result = load_project(
            export_session(models, tracks, timeline).data,
            registry,
            director,
            RestoreCollaborators(load_model=fake_model_loader, create_sub_clip=crashing),
        )
        assert result.success is True
        assert len(result.clip_id_map) == 2
        for restored in registry.models.values():
            assert [c.display_name for c in restored.created_clips] == ['Attack']
        # Idle timeline clips keep their old animation id
        assert director.clip_count == 4
        assert sum('decoder crashed' in w for w in result.warnings) == 2

    def test_director_store_crash(self):
        """测试导演模式添加片段抛出异常时只丢弃该片段"""
        from jr3d.project import DirectorSession

        class FlakyDirector(DirectorSession):
            def add_clip(self, fields):
                if fields['start_frame'] == 60:
                    raise KeyError('lane full')
                return super().add_clip(fields)

        models, tracks, timeline = make_session(2)
        director = FlakyDirector()
        result, registry = load(export_session(models, tracks, timeline).data, director)

        assert result.success is True
        assert len(registry.models) == 2
        assert director.clip_count == 2
        assert all(c.start_frame == 0 for c in director.all_clips())
        assert all(c.speed == 1.5 for c in director.all_clips())
        assert sum('lane full' in w for w in result.warnings) == 2

    def test_stale_animation_fallback(self):
        """测试片段未还原时导演片段沿用旧 ID"""
        from jr3d.project import DirectorSession, ModelRegistry, RestoreCollaborators, load_project
        from jr3d.project.callbacks import load_model_files

        models, tracks, timeline = make_session(1)
        director = DirectorSession()
        # decoder without an original clip: no cut clip can be rebuilt
        result = load_project(
            export_session(models, tracks, timeline).data,
            ModelRegistry(),
            director,
            RestoreCollaborators(load_model=load_model_files),
        )
        assert result.success is True
        assert result.clip_id_map == {}
        stale = {c.custom_id for c in models[0].created_clips}
        assert {c.source_animation_id for c in director.all_clips()} == stale


class TestDeterministicPaths:
    """测试重复导出的路径集合一致"""

    def test_same_paths(self):
        models, tracks, timeline = make_session(2)
        first = export_session(models, tracks, timeline)
        second = export_session(models, tracks, timeline)

        names_a = set(zipfile.ZipFile(io.BytesIO(first.data)).namelist())
        names_b = set(zipfile.ZipFile(io.BytesIO(second.data)).namelist())
        assert names_a == names_b
        assert 'models/model_0/hero0.fbx' in names_a
        assert 'models/model_0/skin.png' in names_a

    def test_models_empty_when_3d_disabled(self):
        from jr3d.project import ExportOptions, ExportProjectParams, export_project
        from jr3d.project.reader import ArchiveReader

        models, tracks, timeline = make_session(1)
        result = export_project(ExportProjectParams(
            project_name="2d only",
            export_options=ExportOptions(include_3d_models=False, include_2d=True),
            models=models,
        ))
        opened = ArchiveReader().open(result.data)
        assert opened.project_state.models == []
        assert opened.manifest.model_count == 0
        assert opened.project_state.layers == []
        assert opened.project_state.spine_instances == []


class TestExportAndSave:
    """测试导出并写入文件"""

    def test_writes_file(self):
        import tempfile
        from pathlib import Path

        from jr3d.project import ExportProjectParams, export_and_save

        models, tracks, timeline = make_session(1)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = export_and_save(
                ExportProjectParams(project_name="scene01", models=models,
                                    director_tracks=tracks, director_timeline=timeline),
                Path(tmpdir) / "out",
            )
            assert path == Path(tmpdir) / "out" / "scene01.jr3d"
            assert zipfile.is_zipfile(path)

    def test_failure_returns_none(self):
        import tempfile
        from pathlib import Path

        from jr3d.project import ExportOptions, ExportProjectParams, export_and_save

        with tempfile.TemporaryDirectory() as tmpdir:
            path = export_and_save(
                ExportProjectParams(project_name="x",
                                    export_options=ExportOptions(include_3d_models=False)),
                Path(tmpdir),
            )
            assert path is None
            assert list(Path(tmpdir).iterdir()) == []


class TestDirectorSourceResolution:
    """测试导演片段来源解析"""

    def _clip(self, source_type, model_id):
        from jr3d.project.state import SerializableDirectorClip

        return SerializableDirectorClip(
            id="dc_1", track_id="track_1", source_type=source_type,
            source_model_id=model_id, source_model_name="Hero",
            source_animation_id="anim_old", source_animation_name="Attack",
            source_animation_duration=30, start_frame=0, end_frame=30,
        )

    def test_unresolved_model(self):
        from jr3d.project import IdRemapLedger, ReferenceUnresolvedError
        from jr3d.project.rehydrators import RestoreReport, _resolve_clip_source

        with pytest.raises(ReferenceUnresolvedError) as exc:
            _resolve_clip_source(self._clip('3d-model', 'model_gone'), IdRemapLedger(), RestoreReport())
        assert exc.value.path == "dc_1"

    def test_unresolved_spine(self):
        from jr3d.project import IdRemapLedger, ReferenceUnresolvedError
        from jr3d.project.rehydrators import RestoreReport, _resolve_clip_source

        ledger = IdRemapLedger()
        ledger.record_model("spine_old", "model_new")
        with pytest.raises(ReferenceUnresolvedError):
            _resolve_clip_source(self._clip('spine', 'spine_old'), ledger, RestoreReport())

    def test_procedural_keeps_animation_id(self):
        from jr3d.project import IdRemapLedger
        from jr3d.project.rehydrators import RestoreReport, _resolve_clip_source

        ledger = IdRemapLedger()
        ledger.record_model("m_old", "m_new")
        report = RestoreReport()
        source = _resolve_clip_source(self._clip('procedural', 'm_old'), ledger, report)
        assert source['source_model_id'] == "m_new"
        assert source['source_animation_id'] == "anim_old"
        assert report.warnings == []
