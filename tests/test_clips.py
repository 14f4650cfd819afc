"""
Tests for cut clips and clip serialization.
"""
import pytest


def _master_clip():
    from jr3d.domain import IdentifiableClip, KeyframeTrack

    times = [i / 30 for i in range(91)]
    track = KeyframeTrack('Hips.position', times=times, values=[float(v) for i in range(91) for v in (i, 0, 0)],
                          value_size=3)
    return IdentifiableClip(name='Take 001', duration=3.0, tracks=[track])


class TestSubClip:
    """测试动作切割"""

    def test_duration_and_range(self):
        """测试 10-40 帧切割"""
        from jr3d.domain import create_sub_clip

        clip = create_sub_clip(_master_clip(), 'Attack', 10, 40, 30)
        assert clip.duration == (40 - 10) / 30
        assert clip.start_frame == 10
        assert clip.end_frame == 40
        assert clip.display_name == 'Attack'
        assert clip.custom_id.startswith('clip_')

    def test_keyframes_rebased(self):
        """测试关键帧截取并从 0 开始"""
        from jr3d.domain import create_sub_clip

        clip = create_sub_clip(_master_clip(), 'Attack', 10, 40, 30)
        track = clip.tracks[0]
        assert len(track.times) == 31
        assert track.times[0] == pytest.approx(0.0)
        assert track.times[-1] == pytest.approx(1.0)
        assert track.values[:3] == [10.0, 0.0, 0.0]
        assert len(track.values) == 31 * 3

    def test_invalid_range(self):
        """测试结束帧不大于起始帧"""
        from jr3d.domain import create_sub_clip

        with pytest.raises(ValueError):
            create_sub_clip(_master_clip(), 'Bad', 40, 40, 30)
        with pytest.raises(ValueError):
            create_sub_clip(_master_clip(), 'Bad', 0, 10, 0)

    def test_fresh_ids_and_unique_names(self):
        """测试每次切割生成新 ID，名称去重"""
        from jr3d.domain import create_sub_clip

        a = create_sub_clip(_master_clip(), 'Attack', 0, 10, 30)
        b = create_sub_clip(_master_clip(), 'Attack', 0, 10, 30, existing_names=['Attack'])
        assert a.custom_id != b.custom_id
        assert b.display_name == 'Attack_1'

    def test_unique_display_name(self):
        from jr3d.domain import generate_unique_display_name

        assert generate_unique_display_name('Idle', []) == 'Idle'
        assert generate_unique_display_name('Idle', ['Idle', 'Idle_1']) == 'Idle_2'


class TestClipSerialization:
    """测试片段序列化"""

    def test_serialize_cut_clip(self):
        from jr3d.domain import create_sub_clip
        from jr3d.project.serializers import serialize_clip

        clip = create_sub_clip(_master_clip(), 'Attack', 10, 40, 30)
        info = serialize_clip(clip, 30)
        assert info.custom_id == clip.custom_id
        assert info.display_name == 'Attack'
        assert info.original_name == 'Attack'
        assert (info.start_frame, info.end_frame) == (10, 40)
        assert info.to_dict()['customId'] == clip.custom_id

    def test_fallbacks(self):
        """测试缺少 customId / 帧范围时的回退"""
        from jr3d.domain import IdentifiableClip
        from jr3d.project.serializers import serialize_clip

        clip = IdentifiableClip(name='Run', duration=1.5)
        info = serialize_clip(clip, 30)
        assert info.custom_id == clip.uuid
        assert info.display_name == 'Run'
        assert info.start_frame == 0
        assert info.end_frame == 45
