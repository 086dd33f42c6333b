"""Package the build tree into the distributable zip."""

from __future__ import annotations

from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import archive_name

logger = get_logger("extbuild.tasks.dist")


@task(name="create-dist")
def create_dist(ctx):
    """Zip build/ into dist/ for upload to the web store."""
    archive = ctx.dist_dir / archive_name(ctx.params)
    names = ctx.transforms.archive(ctx.output.root, archive)
    logger.info(
        "%s folder successfully packaged as %s (%d file(s))",
        ctx.output.root,
        archive,
        len(names),
    )
