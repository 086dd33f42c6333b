"""File watcher that re-runs named tasks when matching files change.

Change events are matched against glob subscriptions relative to the project
directory. Triggered tasks run on a single worker thread, one at a time. A
trigger for a task that is already queued (and not yet started) is dropped, so a
burst of events costs at most one extra run per task.
"""

from __future__ import annotations

import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .logging import get_logger
from .utils import glob_match

log = get_logger("extbuild.watch")

_EVENT_TYPES = {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}


@dataclass(frozen=True)
class WatchSubscription:
    pattern: str
    task: str


def watch_roots(root: Path, patterns: Iterable[str]) -> dict[Path, bool]:
    """Directories to observe for `patterns`, mapped to whether to recurse."""
    roots: dict[Path, bool] = {}
    for pattern in patterns:
        parts = PurePosixPath(pattern[2:] if pattern.startswith("./") else pattern).parts
        static: list[str] = []
        for part in parts:
            if any(ch in part for ch in "*?["):
                break
            static.append(part)
        if len(static) == len(parts):
            base, recursive = root.joinpath(*static[:-1]), False
        else:
            base, recursive = root.joinpath(*static), True
        if base.is_dir():
            roots[base] = roots.get(base, False) or recursive
        else:
            log.warning("Not watching %s: %s does not exist", pattern, base)
    return roots


class _Handler(FileSystemEventHandler):
    def __init__(self, watcher: "Watcher"):
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _EVENT_TYPES:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        for raw in paths:
            if raw:
                self._watcher.notify(Path(os.fsdecode(raw)))


class Watcher:
    def __init__(
        self,
        root: Path,
        subscriptions: Iterable[WatchSubscription],
        run: Callable[[str], object],
        observer_factory: Callable[[], object] = Observer,
    ):
        self.root = Path(root).resolve()
        self.subscriptions = list(subscriptions)
        self._run = run
        self._observer_factory = observer_factory
        self._observer = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="extbuild-watch")
        self._guard = threading.Lock()
        self._pending: set[str] = set()

    def matching_tasks(self, path: Path) -> list[str]:
        try:
            rel = Path(path).resolve().relative_to(self.root).as_posix()
        except ValueError:
            return []
        names: list[str] = []
        for sub in self.subscriptions:
            if sub.task not in names and glob_match(rel, sub.pattern):
                names.append(sub.task)
        return names

    def notify(self, path: Path) -> list[Future]:
        futures = []
        for name in self.matching_tasks(path):
            log.info("Change detected in %s, running %s", path, name)
            fut = self.trigger(name)
            if fut is not None:
                futures.append(fut)
        return futures

    def trigger(self, name: str) -> Future | None:
        with self._guard:
            if name in self._pending:
                log.debug("%s already queued, coalescing", name)
                return None
            self._pending.add(name)
        return self._executor.submit(self._invoke, name)

    def _invoke(self, name: str) -> None:
        with self._guard:
            self._pending.discard(name)
        try:
            self._run(name)
        except Exception:  # noqa: BLE001
            log.exception("Task %s failed; still watching", name)

    def start(self) -> None:
        observer = self._observer_factory()
        handler = _Handler(self)
        for base, recursive in watch_roots(self.root, [s.pattern for s in self.subscriptions]).items():
            observer.schedule(handler, str(base), recursive=recursive)
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self._executor.shutdown(wait=True)

    def run_forever(self) -> None:
        self.start()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            log.info("Stopped watching")
        finally:
            self.stop()
