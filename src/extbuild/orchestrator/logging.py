from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import os


_configured = False
_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
ROOT_LOGGER = "extbuild"


def _level(name: str | None, default: int = logging.INFO) -> int:
    return getattr(logging, str(name or "").upper(), default)


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=_level(os.getenv("EXTBUILD_LOG_LEVEL")), format=_FORMAT)
    _configured = True


def get_logger(
    name: str,
    log_file: Path | None = None,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    _ensure_base_logger()
    logger = logging.getLogger(name)
    # One rotating file per logger
    if log_file and not any(
        isinstance(h, RotatingFileHandler) for h in logger.handlers
    ):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    return logger


def configure_file_logging(params: dict, project_dir: Path) -> RotatingFileHandler | None:
    """Send the package's log records to `logging.file` as well as the console.

    Relative paths are taken from the project directory. `logging.level`,
    `logging.max_bytes` and `logging.backup_count` tune the file handler.
    Returns the handler, or None when no file is configured.
    """
    settings = params.get("logging") or {}
    log_file = settings.get("file")
    if not log_file:
        return None
    path = Path(log_file)
    if not path.is_absolute():
        path = project_dir / path
    logger = get_logger(
        ROOT_LOGGER,
        log_file=path,
        max_bytes=int(settings.get("max_bytes", 1_000_000)),
        backup_count=int(settings.get("backup_count", 3)),
    )
    handler = next(h for h in logger.handlers if isinstance(h, RotatingFileHandler))
    if settings.get("level"):
        handler.setLevel(_level(settings["level"]))
    return handler
