from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from reqdump.models import ServerConfig

load_dotenv()


@dataclass(frozen=True)
class Settings:
    host: str = os.environ.get("REQDUMP_HOST", "localhost")
    port: int = int(os.environ.get("REQDUMP_PORT", "80"))
    dir: str = os.environ.get("REQDUMP_DIR", ".")
    prefix: str = os.environ.get("REQDUMP_PREFIX", "request_")
    timeout_seconds: float = float(os.environ.get("REQDUMP_TIMEOUT_SECONDS", "10"))
    max_header_bytes: int = int(os.environ.get("REQDUMP_MAX_HEADER_BYTES", str(1 << 20)))


SETTINGS = Settings()


def build_parser(settings: Settings = SETTINGS) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reqdump",
        description="Dump every received HTTP request to its own numbered file.",
    )
    parser.add_argument("-host", "--host", default=settings.host, help="HTTP server's host")
    parser.add_argument("-port", "--port", type=int, default=settings.port, help="HTTP server's port")
    parser.add_argument("-dir", "--dir", default=settings.dir, help="HTTP requests dump directory")
    parser.add_argument(
        "-prefix", "--prefix", default=settings.prefix, help="name prefix of request dumps"
    )
    return parser


def parse_args(
    argv: Optional[List[str]] = None, settings: Settings = SETTINGS
) -> ServerConfig:
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    try:
        return ServerConfig(
            host=args.host,
            port=args.port,
            dir=args.dir,
            prefix=args.prefix,
            timeout_seconds=settings.timeout_seconds,
            max_header_bytes=settings.max_header_bytes,
        )
    except ValidationError as exc:
        parser.error(str(exc))
