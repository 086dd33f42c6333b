"""Named task graph for the extension build.

Task Name    Description
---------------------------------------------------------------------
default      Full build (alias of build)
build        Clean, then build code, images and docs into build/ (loadable as an unpacked extension)
build-code   Bundle JavaScript and render manifest/HTML into build/
bundle-js    Bundle the source JavaScript to build/js/background.js
dist         Full build, then zip build/ into dist/ for the web store
watch        Full build, then rebuild code/docs whenever sources change
"""

from __future__ import annotations

import importlib
import pkgutil
from typing import Dict

from .orchestrator.core import TaskError, TaskRegistry, TaskSpec
from .orchestrator.logging import get_logger

log = get_logger("extbuild.pipeline")

REQUIRED_TASKS = [
    "clean",
    "copy-images",
    "bundle-js",
    "process-manifest-and-html",
    "process-markdown",
    "create-dist",
    "watch-files",
]

# Names the tasks were historically exported under.
EXPORT_ALIASES = {
    "copyImages": "copy-images",
    "bundleJS": "bundle-js",
    "processMarkdown": "process-markdown",
    "buildCode": "build-code",
}


def discover_tasks(tasks_pkg: str = "extbuild.tasks") -> Dict[str, TaskSpec]:
    """Import all modules in the tasks package and collect decorated functions."""
    specs: Dict[str, TaskSpec] = {}
    pkg = importlib.import_module(tasks_pkg)
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{tasks_pkg}."):
        try:
            mod = importlib.import_module(m.name)
        except Exception as e:  # noqa: BLE001
            log.warning("Failed to import %s: %s", m.name, e)
            continue
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = getattr(obj, "_task_spec", None)
            if isinstance(spec, TaskSpec):
                specs[spec.name] = spec
    return specs


def build_registry(specs: Dict[str, TaskSpec] | None = None) -> TaskRegistry:
    specs = discover_tasks() if specs is None else specs
    missing = [r for r in REQUIRED_TASKS if r not in specs]
    if missing:
        raise TaskError("Missing required tasks: " + ", ".join(missing))

    registry = TaskRegistry({k: specs[k] for k in REQUIRED_TASKS})
    registry.series(
        "build-code",
        "bundle-js",
        "process-manifest-and-html",
        description="Build all code files (JavaScript and JSON) into build/",
    )
    registry.series(
        "build",
        "clean",
        "build-code",
        "copy-images",
        "process-markdown",
        description="Full build with images, docs and manifest in build/",
    )
    registry.series(
        "dist",
        "build",
        "create-dist",
        description="Full build, then a zip distribution in dist/",
    )
    registry.series(
        "watch",
        "build",
        "watch-files",
        description="Full build, then rebuild on changes",
    )
    registry.alias("default", "build")
    for alias, target in EXPORT_ALIASES.items():
        registry.alias(alias, target)
    return registry
