"""Small helpers for reading build settings from config params."""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Dict, List


DEFAULT_WATCH = [
    {"pattern": "src/**/*.js", "task": "build-code"},
    {"pattern": "src/**/*.json", "task": "build-code"},
    {"pattern": "src/**/*.html", "task": "build-code"},
    {"pattern": "src/**/*.md", "task": "process-markdown"},
    {"pattern": "package.json", "task": "build-code"},
]


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def src_dir(p: Dict) -> str:
    return _get(p, "project", "src_dir", default="src")


def build_dir(p: Dict) -> str:
    return _get(p, "project", "build_dir", default="build")


def dist_dir(p: Dict) -> str:
    return _get(p, "project", "dist_dir", default="dist")


def package_file(p: Dict) -> str:
    return _get(p, "project", "package_file", default="package.json")


def lock_file(p: Dict) -> str:
    return _get(p, "project", "lock_file", default=f".{Path(build_dir(p)).name}.lock")


def bundle_targets(p: Dict) -> List[Dict]:
    default = [
        {"entries": [f"{src_dir(p)}/js/background.js"], "output": "js/background.js"}
    ]
    return list(_get(p, "bundle", "targets", default=default))


def babel_presets(p: Dict) -> List[str]:
    return list(_get(p, "bundle", "presets", default=["es2015"]))


def bundle_debug(p: Dict) -> bool:
    return bool(_get(p, "bundle", "debug", default=True))


def manifest_sources(p: Dict) -> List[str]:
    default = [f"{src_dir(p)}/manifest.json", f"{src_dir(p)}/options.html"]
    return list(_get(p, "manifest", "sources", default=default))


def manifest_strict(p: Dict) -> bool:
    return bool(_get(p, "manifest", "strict", default=False))


def manifest_delimiters(p: Dict) -> List[str]:
    return list(_get(p, "manifest", "delimiters", default=["<%=", "%>"]))


def asset_patterns(p: Dict) -> List[str]:
    return list(_get(p, "assets", "patterns", default=["img/icons/*.*"]))


def docs_pattern(p: Dict) -> str:
    return _get(p, "docs", "pattern", default="**/*.md")


def docs_dest(p: Dict) -> str:
    return _get(p, "docs", "dest", default="docs")


def markdown_extensions(p: Dict) -> List[str]:
    return list(_get(p, "docs", "extensions", default=["fenced_code", "tables"]))


def archive_name(p: Dict) -> str:
    return _get(p, "dist", "archive_name", default="chrome-extension.zip")


def watch_subscriptions(p: Dict) -> List[Dict]:
    return list(_get(p, "watch", "subscriptions", default=DEFAULT_WATCH))


def expand_glob(base: Path, pattern: str) -> list[Path]:
    """Files under `base` matching `pattern`, in sorted order."""
    if not base.is_dir():
        return []
    return sorted(p for p in base.glob(pattern) if p.is_file())


def glob_match(path: str, pattern: str) -> bool:
    """Match a POSIX relative path against a glob; `**/` may also match nothing."""
    if pattern.startswith("./"):
        pattern = pattern[2:]
    if fnmatch.fnmatchcase(path, pattern):
        return True
    return "**/" in pattern and fnmatch.fnmatchcase(path, pattern.replace("**/", ""))
