"""Run log files.

``cytogate gate --log-file`` mirrors the package logger into a file next to
the console output. Each run writes its own timestamped file unless asked to
replace a fixed one.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Tuple, Union

PathLike = Union[str, Path]

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_timestamped_log_path(log_path: PathLike) -> Path:
    """``gate.log`` -> ``gate_20250101_120000.log``."""
    log_path = Path(log_path)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return log_path.with_name(f"{log_path.stem}_{stamp}{log_path.suffix or '.log'}")


def get_logger(
    name: str,
    log_path: PathLike,
    level: int = logging.INFO,
    timestamped: bool = True,
) -> Tuple[logging.Logger, Path]:
    """Attach a file handler for one gating run to logger ``name``.

    A file handler left by an earlier run is replaced; console handlers and
    propagation are untouched, so records still reach the terminal.

    Parameters
    ----------
    name : str
        Logger name; ``"cytogate"`` captures every module of the package
    log_path : PathLike
        Base path of the log file
    level : int
        Level of the logger and its file handler
    timestamped : bool
        Write to a fresh timestamped file instead of truncating ``log_path``

    Returns
    -------
    Tuple[logging.Logger, Path]
        The logger and the file it writes to
    """
    path = get_timestamped_log_path(log_path) if timestamped else Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    stale = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    for handler in stale:
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger, path
