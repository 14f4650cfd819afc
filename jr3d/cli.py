from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from .config import EngineConfig
from .project.errors import ProjectIOError
from .project.reader import ArchiveReader
from .project.state import ProjectState


def _summary(state: ProjectState) -> dict:
    models = state.models
    return {
        'name': state.name,
        'version': state.version,
        'createdAt': state.created_at,
        'exportOptions': state.export_options.to_dict(),
        'models': len(models),
        'clips': sum(len(m.created_clips or []) for m in models),
        'shaderGroups': sum(len(m.shader_groups or []) for m in models),
        'effects': sum(len(m.effects or []) for m in models),
        'tracks': len(state.director.tracks) if state.director else 0,
        'directorClips': sum(len(t.clips) for t in state.director.tracks) if state.director else 0,
        'layers': len(state.layers or []),
        'spineInstances': len(state.spine_instances or []),
    }


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="jr3d", description="Inspect .jr3d project archives")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", type=str, default=None, help="Engine config JSON file")
    sub = parser.add_subparsers(dest="cmd")

    p_inspect = sub.add_parser("inspect", help="Show manifest and section counts")
    p_inspect.add_argument("file", type=str, help="Path to .jr3d file")
    p_inspect.add_argument("--json", action="store_true", help="Print as JSON")

    p_ls = sub.add_parser("ls", help="List archive entries")
    p_ls.add_argument("file", type=str, help="Path to .jr3d file")
    p_ls.add_argument("--prefix", type=str, default="", help="Only entries under this path")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.cmd:
        parser.print_help()
        return 0

    config = EngineConfig.load(Path(args.config)) if args.config else EngineConfig()

    path = Path(args.file)
    if not path.exists():
        print(f"File not found: {path}")
        return 2

    try:
        opened = ArchiveReader(config.supported_major).open(path.read_bytes())
    except ProjectIOError as e:
        print(f"Invalid project: {e}")
        return 1

    try:
        if args.cmd == "ls":
            for name in opened.container.names(args.prefix):
                print(name)
            return 0

        info = {'manifest': opened.manifest.to_dict(), 'state': _summary(opened.project_state)}
        if args.json:
            print(json.dumps(info, ensure_ascii=False, indent=2))
        else:
            m = opened.manifest
            print(f"{m.project_name}  (format {m.version}, app {m.app_version}, created {m.created_at})")
            for key, value in info['state'].items():
                if key in ('name', 'version', 'createdAt'):
                    continue
                print(f"  {key}: {value}")
        return 0
    finally:
        opened.container.close()


if __name__ == "__main__":
    raise SystemExit(main())
