"""File transforms used by the build tasks.

Each transform is a plain function over input files/text and options. Tasks reach
them through a `Transforms` bundle on the build context so tests (or callers) can
swap any of them without touching the orchestration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .archive import create_archive
from .bundler import babel_transform, bundle_modules
from .markup import render_markdown
from .metadata import read_package_metadata
from .templating import render_template


@dataclass(frozen=True)
class Transforms:
    metadata: Callable = read_package_metadata
    template: Callable = render_template
    script: Callable = babel_transform
    bundle: Callable = bundle_modules
    markdown: Callable = render_markdown
    archive: Callable = create_archive


__all__ = [
    "Transforms",
    "babel_transform",
    "bundle_modules",
    "create_archive",
    "read_package_metadata",
    "render_markdown",
    "render_template",
]
