from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from ..orchestrator.core import MetadataError, MissingInputError


def read_package_metadata(path: str | Path) -> Mapping[str, Any]:
    """Read the project descriptor (package.json, or a YAML file) as a read-only mapping."""
    p = Path(path)
    if not p.is_file():
        raise MissingInputError(f"Project descriptor not found: {p}")
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise MetadataError(f"Could not parse project descriptor {p}: {e}") from e
    if not isinstance(data, dict):
        raise MetadataError(f"Project descriptor must be a mapping at the top level: {p}")
    return MappingProxyType(dict(data))
