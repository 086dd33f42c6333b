"""Build context handed to every task.

The output tree is an explicit handle rather than an ambient path. Exclusive
tasks hold its advisory lock while they run, so two builds (two processes, or a
watch-triggered run racing the initial build) never interleave writes.
"""

from __future__ import annotations

import contextlib
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Mapping

from filelock import FileLock

from . import utils
from .core import RunState, TaskError
from ..transforms import Transforms

if TYPE_CHECKING:
    from .core import TaskRegistry


class OutputTree:
    def __init__(self, root: Path, lock_path: Path):
        self.root = root
        self.lock_path = lock_path
        # thread_local keeps the lock reentrant per thread but exclusive across threads.
        self._lock = FileLock(str(lock_path), thread_local=True)

    @contextlib.contextmanager
    def hold(self, exclusive: bool = True) -> Iterator["OutputTree"]:
        if not exclusive:
            yield self
            return
        with self._lock:
            yield self

    def path(self, *parts: str) -> Path:
        return self.root.joinpath(*parts)

    def clear(self, project_dir: Path) -> bool:
        """Remove the tree. Returns False when it was already absent."""
        root = self.root.resolve()
        project = project_dir.resolve()
        if root == project or root in project.parents:
            raise TaskError(f"Refusing to delete {root}: it contains the project directory")
        if not root.exists():
            return False
        shutil.rmtree(root)
        return True


@dataclass
class BuildContext:
    project_dir: Path
    params: dict
    output: OutputTree
    transforms: Transforms = field(default_factory=Transforms)
    state: RunState = field(default_factory=RunState)
    registry: "TaskRegistry | None" = None

    @classmethod
    def from_params(
        cls,
        params: dict | None = None,
        project_dir: str | Path = ".",
        transforms: Transforms | None = None,
    ) -> "BuildContext":
        params = dict(params or {})
        project = Path(project_dir).resolve()
        output = OutputTree(
            root=project / utils.build_dir(params),
            lock_path=project / utils.lock_file(params),
        )
        return cls(
            project_dir=project,
            params=params,
            output=output,
            transforms=transforms or Transforms(),
        )

    def path(self, rel: str | Path) -> Path:
        p = Path(rel)
        return p if p.is_absolute() else self.project_dir / p

    @property
    def src_dir(self) -> Path:
        return self.path(utils.src_dir(self.params))

    @property
    def dist_dir(self) -> Path:
        return self.path(utils.dist_dir(self.params))

    def metadata(self) -> Mapping:
        """Project metadata, read at most once per invocation."""
        if self.state.metadata is None:
            descriptor = self.path(utils.package_file(self.params))
            self.state.metadata = self.transforms.metadata(descriptor)
        return self.state.metadata

    def fresh(self) -> "BuildContext":
        """Same project and handles, new per-invocation state."""
        return replace(self, state=RunState())
