from __future__ import annotations

import logging
import sys
from typing import IO, Optional

INFO_PREFIX = "[info]    "
ERROR_PREFIX = "[error]   "
REQUEST_PREFIX = "[request] "

ROOT_LOGGER = "reqdump"

_PREFIXES = {
    f"{ROOT_LOGGER}.info": INFO_PREFIX,
    f"{ROOT_LOGGER}.error": ERROR_PREFIX,
    f"{ROOT_LOGGER}.request": REQUEST_PREFIX,
}


class StreamPrefixFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(stream_prefix)s%(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        record.stream_prefix = _PREFIXES.get(record.name, INFO_PREFIX)
        return super().format(record)


def info_logger() -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.info")


def error_logger() -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.error")


def request_logger() -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.request")


def configure_logging(stream: Optional[IO[str]] = None) -> logging.Handler:
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StreamPrefixFormatter())
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    return handler
