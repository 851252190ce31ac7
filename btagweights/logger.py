from typing import Any, Optional
import enum
import json
import logging

import numpy
from rich.console import Console
from rich.logging import RichHandler

PACKAGE = "btagweights"

_levels = ["WARNING", "INFO", "DEBUG"]


def setup_logger(
    level: str = "INFO", logfile: Optional[str] = None
) -> logging.Logger:
    """Return the btagweights logger, printing through rich.
    Only the package logger is configured, the root logger and third party
    loggers (e.g. numba at DEBUG) are left alone. Calling it again replaces
    the handlers installed by the previous call.

    Parameters
    ----------
        level: str, optional
            One of WARNING, INFO or DEBUG. Defaults to INFO
        logfile: str, optional
            If specified, the information is dumped not only on stdout but also here
    """
    if level not in _levels:
        raise ValueError(
            "Passed wrong level for the logger. Allowed levels are: {}".format(
                ", ".join(_levels)
            )
        )
    logger = logging.getLogger(PACKAGE)
    logger.setLevel(getattr(logging, level))
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(name)s: %(message)s")
    stream_handler = RichHandler(show_time=False, rich_tracebacks=True)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if logfile:
        file_handler = RichHandler(
            show_time=False,
            rich_tracebacks=True,
            console=Console(file=open(logfile, "wt")),
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def _default(obj: Any) -> Any:
    if isinstance(obj, enum.Enum):
        return obj.name
    if isinstance(obj, (numpy.ndarray, numpy.generic)):
        return obj.tolist()
    return str(obj)


def json_str(obj: Any) -> str:
    """Pretty JSON for log messages, enums by name and numpy values as numbers"""
    return json.dumps(obj, sort_keys=True, indent=4, default=_default)
