"""Manifest and options page templating.

Renders `<%= key %>` placeholders in the extension manifest and options HTML with
values from package.json, writing the results under build/ with their path
relative to src/ preserved.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..orchestrator import task
from ..orchestrator.core import MissingInputError, RenderError
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import manifest_delimiters, manifest_sources, manifest_strict

logger = get_logger("extbuild.tasks.manifest")


def _relative_to_src(path: Path, src: Path) -> Path:
    try:
        return path.relative_to(src)
    except ValueError:
        return Path(path.name)


@task(name="process-manifest-and-html")
def process_manifest_and_html(ctx):
    """Render manifest.json and options.html with package metadata."""
    metadata = ctx.metadata()
    strict = manifest_strict(ctx.params)
    delimiters = manifest_delimiters(ctx.params)
    src = ctx.src_dir
    sources = [ctx.path(s) for s in manifest_sources(ctx.params)]
    missing = [str(s) for s in sources if not s.is_file()]
    if missing:
        raise MissingInputError(f"Template source(s) not found: {', '.join(missing)}")

    for source in sources:
        rel = _relative_to_src(source, src)
        text = source.read_text(encoding="utf-8")
        out = ctx.transforms.template(text, metadata, strict=strict, name=str(rel), delimiters=delimiters)
        if source.suffix == ".json":
            try:
                json.loads(out)
            except ValueError as e:
                raise RenderError(f"Rendered {rel} is not valid JSON: {e}") from e
        dest = ctx.output.path(*rel.parts)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(out, encoding="utf-8", newline="\n")
        logger.info("Generated %s", dest)
