"""Lightweight in-repo orchestrator for the extension build.

Provides task and sequence primitives, a named task registry, a file watcher and a Typer CLI.
"""

from .core import (  # re-export for convenience
    FailurePolicy,
    Sequence,
    TaskRegistry,
    TaskSpec,
    task,
)

__all__ = ["FailurePolicy", "Sequence", "TaskRegistry", "TaskSpec", "task"]
