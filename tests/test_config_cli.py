"""
Tests for engine configuration and the command line.
"""
import json
import tempfile
from pathlib import Path

import pytest


def _write_project(directory):
    from jr3d.domain import BinaryFile, ModelInstance
    from jr3d.project import ExportProjectParams, export_and_save

    return export_and_save(
        ExportProjectParams(
            project_name="cli demo",
            models=[ModelInstance(id="m1", name="Hero", file=BinaryFile("hero.fbx", b"FBX"))],
        ),
        Path(directory),
    )


class TestEngineConfig:
    """测试引擎配置"""

    def test_defaults(self):
        from jr3d.config import EngineConfig

        config = EngineConfig()
        assert config.project_version == "1.0.0"
        assert config.supported_major == "1"
        assert config.compression_level == 6
        assert config.default_fps == 30
        assert config.effect_resource_root is None

    def test_save_load(self):
        from jr3d.config import EngineConfig

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config" / "engine.json"
            EngineConfig(effect_resource_root="public/effekseer", fetch_workers=4).save(path)
            loaded = EngineConfig.load(path)
        assert loaded.effect_resource_root == "public/effekseer"
        assert loaded.fetch_workers == 4

    def test_unknown_keys_ignored(self):
        from jr3d.config import EngineConfig

        config = EngineConfig.from_json(json.dumps({"default_fps": 60, "theme": "dark"}))
        assert config.default_fps == 60

    def test_config_drives_version_gate(self):
        """测试 supported_major 配置影响导入"""
        from jr3d.config import EngineConfig
        from jr3d.domain import BinaryFile, ModelInstance
        from jr3d.project import ExportProjectParams, ModelRegistry, export_project, load_project

        exported = export_project(
            ExportProjectParams(project_name="v2",
                                models=[ModelInstance(id="m1", name="Hero", file=BinaryFile("a.fbx", b"A"))]),
            EngineConfig(project_version="2.0.0"),
        )
        assert load_project(exported.data, ModelRegistry()).success is False
        result = load_project(exported.data, ModelRegistry(), config=EngineConfig(supported_major="2"))
        assert result.success is True
        assert len(result.model_id_map) == 1


class TestCli:
    """测试命令行"""

    def test_inspect(self, capsys):
        from jr3d.cli import main

        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write_project(tmpdir)
            assert main(["inspect", str(path)]) == 0
        out = capsys.readouterr().out
        assert "cli demo" in out
        assert "models: 1" in out

    def test_inspect_json(self, capsys):
        from jr3d.cli import main

        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write_project(tmpdir)
            assert main(["inspect", str(path), "--json"]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["manifest"]["projectName"] == "cli demo"
        assert info["state"]["models"] == 1

    def test_ls(self, capsys):
        from jr3d.cli import main

        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write_project(tmpdir)
            assert main(["ls", str(path), "--prefix", "models/"]) == 0
        assert capsys.readouterr().out.split() == ["models/m1/hero.fbx"]

    def test_missing_file(self):
        from jr3d.cli import main

        assert main(["inspect", "does/not/exist.jr3d"]) == 2

    def test_invalid_file(self):
        from jr3d.cli import main

        with tempfile.TemporaryDirectory() as tmpdir:
            bad = Path(tmpdir) / "bad.jr3d"
            bad.write_bytes(b"not a zip")
            assert main(["ls", str(bad)]) == 1
