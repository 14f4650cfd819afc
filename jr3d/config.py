"""
Engine Configuration - 引擎配置

Version gate, archive compression and effect resource location used by
export and import.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional


PROJECT_VERSION = "1.0.0"
PROJECT_FILE_EXTENSION = ".jr3d"


@dataclass
class EngineConfig:
    """导出/导入配置"""
    app_version: str = "1.0.0"
    project_version: str = PROJECT_VERSION
    supported_major: str = "1"              # 只检查主版本号

    compression_level: int = 6              # DEFLATE 0-9
    default_fps: int = 30

    # public 特效资源根目录（本地目录或 http(s) URL）
    effect_resource_root: Optional[str] = None
    fetch_timeout: float = 30.0
    fetch_workers: int = 1                  # >1 时并行获取，结果仍按输入顺序

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, indent=2)

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding='utf-8')

    @classmethod
    def from_json(cls, json_str: str) -> 'EngineConfig':
        data = json.loads(json_str)
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, path: Path) -> 'EngineConfig':
        path = Path(path)
        return cls.from_json(path.read_text(encoding='utf-8'))
