from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Union

from .logging import get_logger

if TYPE_CHECKING:
    from .context import BuildContext


class TaskError(RuntimeError):
    """Base class for failures raised by build tasks."""


class MissingInputError(TaskError):
    pass


class TransformError(TaskError):
    """A file transform (bundling, downlevel compilation) rejected its input."""


class RenderError(TaskError):
    pass


class MetadataError(TaskError):
    pass


class FailurePolicy(str, Enum):
    ABORT = "abort"
    # Log TransformError and report the step as soft-failed.
    CONTINUE = "continue"


@dataclass
class RunState:
    """In-memory record of one top-level invocation."""

    run_id: str = field(default_factory=lambda: time.strftime("%Y%m%d-%H%M%S"))
    steps: list[dict] = field(default_factory=list)
    metadata: Mapping | None = None

    def record(self, name: str, status: str, **extra) -> None:
        self.steps.append({"name": name, "status": status, **extra})

    @property
    def order(self) -> list[str]:
        return [s["name"] for s in self.steps]

    def status_of(self, name: str) -> str | None:
        for s in reversed(self.steps):
            if s["name"] == name:
                return s["status"]
        return None


@dataclass
class TaskSpec:
    name: str
    fn: Callable[["BuildContext"], None]
    on_error: FailurePolicy = FailurePolicy.ABORT
    exclusive: bool = True
    description: str = ""

    def flatten(self) -> list[str]:
        return [self.name]

    def run(self, ctx: "BuildContext") -> None:
        step_logger = get_logger(f"extbuild.tasks.{self.name}")
        with ctx.output.hold(self.exclusive):
            step_logger.info("Run: %s", self.name)
            started = time.perf_counter()
            try:
                self.fn(ctx)
            except TransformError as e:
                if self.on_error is not FailurePolicy.CONTINUE:
                    ctx.state.record(self.name, "error", error=str(e))
                    raise
                step_logger.error("%s failed, continuing: %s", self.name, e)
                ctx.state.record(self.name, "soft-failed", error=str(e))
                return
            except Exception as e:  # noqa: BLE001
                step_logger.error("Step failed (%s): %s", self.name, e)
                ctx.state.record(self.name, "error", error=str(e))
                raise
            ctx.state.record(
                self.name, "ok", seconds=round(time.perf_counter() - started, 3)
            )


def task(
    name: str,
    on_error: FailurePolicy | str = FailurePolicy.ABORT,
    exclusive: bool = True,
):
    """Decorator to declare a task on a function.

    The wrapped function receives the `BuildContext` of the current invocation.
    Its docstring's first line becomes the task description shown by `list`.
    """

    def deco(fn: Callable[["BuildContext"], None]):
        doc = (fn.__doc__ or "").strip().splitlines()
        spec = TaskSpec(
            name=name,
            fn=fn,
            on_error=FailurePolicy(on_error),
            exclusive=exclusive,
            description=doc[0] if doc else "",
        )
        setattr(fn, "_task_spec", spec)
        return fn

    return deco


@dataclass
class Sequence:
    """Runs its steps strictly in order; the first failure aborts the rest."""

    name: str
    steps: list["Node"]
    description: str = ""

    @property
    def exclusive(self) -> bool:
        return all(step.exclusive for step in self.steps)

    def flatten(self) -> list[str]:
        names: list[str] = []
        for step in self.steps:
            names.extend(step.flatten())
        return names

    def run(self, ctx: "BuildContext") -> None:
        with ctx.output.hold(self.exclusive):
            for step in self.steps:
                step.run(ctx)


Node = Union[TaskSpec, Sequence]


class TaskRegistry:
    """Fixed set of named, externally invocable tasks."""

    def __init__(self, tasks: Mapping[str, TaskSpec] | None = None):
        self._nodes: dict[str, Node] = dict(tasks or {})
        self._aliases: dict[str, str] = {}
        self.logger = get_logger("extbuild.registry")

    def register(self, node: Node) -> Node:
        if node.name in self._nodes or node.name in self._aliases:
            raise ValueError(f"Task already registered: {node.name}")
        self._nodes[node.name] = node
        return node

    def series(self, name: str, *step_names: str, description: str = "") -> Sequence:
        steps = [self.get(s) for s in step_names]
        seq = Sequence(name=name, steps=steps, description=description)
        self.register(seq)
        return seq

    def alias(self, alias: str, target: str) -> None:
        self.get(target)
        if alias in self._nodes:
            raise ValueError(f"Alias shadows a task: {alias}")
        self._aliases[alias] = target

    def get(self, name: str) -> Node:
        name = self._aliases.get(name, name)
        try:
            return self._nodes[name]
        except KeyError:
            raise KeyError(f"Unknown task: {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._nodes or name in self._aliases

    def names(self) -> list[str]:
        return sorted(self._nodes)

    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def describe(self) -> Iterable[tuple[str, str]]:
        for name in self.names():
            node = self._nodes[name]
            desc = node.description
            if not desc and isinstance(node, Sequence):
                desc = " → ".join(s.name for s in node.steps)
            yield name, desc

    def run(self, name: str, ctx: "BuildContext") -> RunState:
        node = self.get(name)
        if ctx.registry is None:
            ctx.registry = self
        self.logger.info("Run %s selected steps: %s", ctx.state.run_id, " → ".join(node.flatten()))
        node.run(ctx)
        return ctx.state
