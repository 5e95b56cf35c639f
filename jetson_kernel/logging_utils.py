from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOGS_DIR = "logs"

LOG_FORMAT = "[%(levelname)s] %(asctime)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def default_log_path(run_type: str, logs_dir: str = DEFAULT_LOGS_DIR) -> str:
    """One append-only log file per run type (get_kernel_sources, make_kernel, ...)."""
    return str(Path(logs_dir) / f"{run_type}.log")


def configure_logging(
    log_path: str,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure dual-sink logging (file + console, same format).

    Every record reaches both sinks with the same ``[LEVEL] timestamp - msg``
    prefix, so an ``[ERROR]`` line on the terminal is also in the log file.

    Notes:
    - If the requested log directory cannot be created or written, we fall
      back to a file in the current working directory and report both paths.
    - Calling this again with the same path is a no-op; a different path
      replaces the handlers installed by the previous call.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    if getattr(logger, "_jetson_kernel_configured", False):
        if getattr(logger, "_jetson_kernel_requested", None) == log_path:
            return getattr(logger, "_jetson_kernel_log_path", log_path)
        for h in getattr(logger, "_jetson_kernel_handlers", []):
            logger.removeHandler(h)
            h.close()

    chosen_path = log_path
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError:
        fallback = str(Path.cwd() / Path(log_path).name)
        file_handler = logging.FileHandler(fallback, mode="a", encoding="utf-8")
        chosen_path = fallback
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_jetson_kernel_configured", True)
    setattr(logger, "_jetson_kernel_requested", log_path)
    setattr(logger, "_jetson_kernel_log_path", chosen_path)
    setattr(logger, "_jetson_kernel_handlers", handlers)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
