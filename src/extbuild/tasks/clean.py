"""Clean task: remove the build output tree before a build."""

from __future__ import annotations

from ..orchestrator import task
from ..orchestrator.logging import get_logger

logger = get_logger("extbuild.tasks.clean")


@task(name="clean")
def clean(ctx):
    """Delete the build directory (no-op when it is already gone)."""
    if ctx.output.clear(ctx.project_dir):
        logger.info("Removed %s", ctx.output.root)
    else:
        logger.info("Nothing to clean at %s", ctx.output.root)
