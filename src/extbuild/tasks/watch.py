"""Watch task: rebuild on source changes until interrupted."""

from __future__ import annotations

from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import watch_subscriptions
from ..orchestrator.watch import Watcher, WatchSubscription

logger = get_logger("extbuild.tasks.watch")


@task(name="watch-files", exclusive=False)
def watch_files(ctx):
    """Re-run build-code / process-markdown whenever watched files change."""
    registry = ctx.registry
    if registry is None:
        raise RuntimeError("watch-files must be run through a TaskRegistry")
    subs = [
        WatchSubscription(pattern=s["pattern"], task=s["task"])
        for s in watch_subscriptions(ctx.params)
    ]
    for sub in subs:
        registry.get(sub.task)

    watcher = Watcher(
        root=ctx.project_dir,
        subscriptions=subs,
        run=lambda name: registry.run(name, ctx.fresh()),
    )
    logger.info("Watching for changes in JavaScript, JSON, HTML or Markdown files...")
    watcher.run_forever()
