"""Copy static assets (extension icons) from the source tree into the build."""

from __future__ import annotations

import shutil

from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import asset_patterns, expand_glob

logger = get_logger("extbuild.tasks.assets")


@task(name="copy-images")
def copy_images(ctx):
    """Copy icons from src/ to the mirrored path under build/."""
    src = ctx.src_dir
    copied = 0
    for pattern in asset_patterns(ctx.params):
        for path in expand_glob(src, pattern):
            dest = ctx.output.path(*path.relative_to(src).parts)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dest)
            copied += 1
    logger.info("Images copied from /%s/ to /%s/ (%d file(s))", src.name, ctx.output.root.name, copied)
