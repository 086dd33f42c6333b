"""Render Markdown documentation under src/ into HTML under build/docs/."""

from __future__ import annotations

from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import docs_dest, docs_pattern, expand_glob, markdown_extensions

logger = get_logger("extbuild.tasks.markdown")


@task(name="process-markdown")
def process_markdown(ctx):
    """Convert Markdown files to HTML in build/docs/."""
    src = ctx.src_dir
    dest_root = ctx.output.path(docs_dest(ctx.params))
    extensions = markdown_extensions(ctx.params)
    count = 0
    for path in expand_glob(src, docs_pattern(ctx.params)):
        rel = path.relative_to(src).with_suffix(".html")
        html = ctx.transforms.markdown(path.read_text(encoding="utf-8"), extensions=extensions)
        out = dest_root / rel
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(html, encoding="utf-8")
        count += 1
    logger.info("Markdown files processed and saved to %s (%d file(s))", dest_root, count)
