"""
Tests for export option policy.
"""
import pytest


class TestExportPolicy:
    """测试导出选项检查"""

    def test_policy_flags(self):
        """测试派生标志"""
        from jr3d.project.options import ExportOptions, evaluate

        policy = evaluate(ExportOptions(include_3d_models=False, include_2d=True))
        assert policy.can_export is True
        assert policy.can_export_animations is True
        assert policy.can_export_shader is False

        policy = evaluate(ExportOptions(include_3d_models=True, include_2d=False))
        assert policy.can_export_shader is True

    def test_nothing_to_export(self):
        """测试无可导出内容"""
        from jr3d.project.errors import NoExportableContentError
        from jr3d.project.options import ExportOptions, validate

        with pytest.raises(NoExportableContentError):
            validate(ExportOptions(
                include_3d_models=False,
                include_2d=False,
                include_animations=True,
                include_shader=True,
                include_effects=True,
            ))

    def test_validate_normalizes(self):
        """测试有效选项：2D-only 时 shader/特效关闭"""
        from jr3d.project.options import ExportOptions, validate

        effective = validate(ExportOptions(
            include_3d_models=False,
            include_2d=True,
            include_animations=True,
            include_shader=True,
            include_effects=True,
            include_audio=True,
        ))
        assert effective.include_animations is True
        assert effective.include_shader is False
        assert effective.include_effects is False
        assert effective.include_audio is False

    def test_wire_keys(self):
        """测试 JSON 键名"""
        from jr3d.project.options import ExportOptions

        d = ExportOptions(include_2d=True, include_effects=True).to_dict()
        assert d == {
            'include3DModels': True,
            'include2D': True,
            'includeAnimations': True,
            'includeShader': True,
            'includeEffects': True,
            'includeAudio': False,
        }
        assert ExportOptions.from_dict(d) == ExportOptions(include_2d=True, include_effects=True)

    def test_legacy_effects_key(self):
        """测试旧版 includeEffekseer 键"""
        from jr3d.project.options import ExportOptions

        opts = ExportOptions.from_dict({'include3DModels': True, 'includeEffekseer': True})
        assert opts.include_effects is True
        assert opts.include_2d is False


class TestExportLegality:
    """测试导出入口的合法性检查"""

    def test_export_refused_without_content(self):
        """测试 3D 与 2D 都关闭时不生成容器"""
        from jr3d.domain import BinaryFile, ModelInstance
        from jr3d.project import ExportOptions, ExportProjectParams, export_project

        params = ExportProjectParams(
            project_name="empty",
            export_options=ExportOptions(include_3d_models=False, include_2d=False),
            models=[ModelInstance(id="m1", name="Hero", file=BinaryFile("hero.fbx", b"FBX"))],
        )
        result = export_project(params)
        assert result.success is False
        assert result.data is None
        assert "no exportable content" in result.error
