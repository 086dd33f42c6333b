from __future__ import annotations

import zipfile
from pathlib import Path

from ..orchestrator.core import MissingInputError


def create_archive(src_dir: Path, archive_path: Path) -> list[str]:
    """Zip every file under `src_dir` with POSIX relative names; returns the entry names."""
    if not src_dir.is_dir():
        raise MissingInputError(f"Nothing to package, build directory is missing: {src_dir}")
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    names: list[str] = []
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(src_dir.rglob("*")):
            if not path.is_file():
                continue
            arcname = path.relative_to(src_dir).as_posix()
            zf.write(path, arcname=arcname)
            names.append(arcname)
    return names
