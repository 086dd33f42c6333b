"""Script bundling task.

Bundles each configured target's entry points (plus everything they require)
into one file under build/. Bundle errors are logged and the step completes
softly, so a syntax error while watching does not stop the rebuild loop; the
previous bundle (if any) is left in place. With `bundle.debug` (the default) the
bundle carries an inline source map.
"""

from __future__ import annotations

from functools import partial

from ..orchestrator import FailurePolicy, task
from ..orchestrator.core import MissingInputError
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import babel_presets, bundle_debug, bundle_targets

logger = get_logger("extbuild.tasks.bundle")


@task(name="bundle-js", on_error=FailurePolicy.CONTINUE)
def bundle_js(ctx):
    """Bundle the source JavaScript into build/js/."""
    targets = bundle_targets(ctx.params)
    debug = bundle_debug(ctx.params)
    script = partial(ctx.transforms.script, presets=babel_presets(ctx.params), source_maps=debug)

    for target in targets:
        entries = [ctx.path(e) for e in target.get("entries") or []]
        if not entries:
            raise MissingInputError(f"Bundle target {target.get('output')!r} has no entries")
        missing = [str(e) for e in entries if not e.is_file()]
        if missing:
            raise MissingInputError(f"Entry point(s) not found: {', '.join(missing)}")

        code = ctx.transforms.bundle(entries, transform=script, root=ctx.project_dir, source_maps=debug)
        out = ctx.output.path(target["output"])
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(code, encoding="utf-8")
        logger.info("Bundled JavaScript to %s", out)
