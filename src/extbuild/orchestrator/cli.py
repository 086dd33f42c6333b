from __future__ import annotations

from pathlib import Path

import typer
import yaml

from ..pipeline import build_registry
from .context import BuildContext
from .logging import configure_file_logging, get_logger


app = typer.Typer(add_completion=False, help="Extension build pipeline CLI")
log = get_logger("extbuild.cli")


def load_config(path: str | Path) -> dict:
    p = Path(path)
    if not p.exists():
        log.warning("Config %s not found, using defaults", p)
        return {}
    with open(p, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@app.command("list")
def list_tasks():
    """List the named tasks."""
    registry = build_registry()
    typer.echo("Tasks:")
    for name, desc in registry.describe():
        typer.echo(f"- {name:<28} {desc}")
    for alias, target in sorted(registry.aliases().items()):
        typer.echo(f"- {alias:<28} alias of {target}")


@app.command("run")
def run_task(
    name: str = typer.Argument("default", help="Task name to run"),
    config: str = typer.Option("configs/base.yaml", help="Path to YAML config"),
    project_dir: str = typer.Option(".", help="Extension project root"),
):
    """Run a named task (default: full build)."""
    registry = build_registry()
    if name not in registry:
        typer.echo(f"Task not found: {name}")
        raise typer.Exit(code=1)
    root = Path(project_dir)
    cfg = Path(config)
    params = load_config(cfg if cfg.is_absolute() else root / cfg)
    configure_file_logging(params, root.resolve())
    ctx = BuildContext.from_params(params, project_dir=root)
    try:
        state = registry.run(name, ctx)
    except Exception:  # noqa: BLE001
        log.exception("Task %s failed", name)
        raise typer.Exit(code=1)
    soft = [s["name"] for s in state.steps if s["status"] == "soft-failed"]
    if soft:
        log.warning("Finished %s (run %s) with soft failures in: %s", name, state.run_id, ", ".join(soft))
    else:
        log.info("Finished %s (run %s)", name, state.run_id)


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
