from __future__ import annotations

import math
import os
import socket
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from reqdump.config import parse_args
from reqdump.counter import SequenceCounter
from reqdump.dumper import RequestDumper
from reqdump.logs import configure_logging, error_logger, info_logger, request_logger
from reqdump.models import ServerConfig
from reqdump.protocol import header_deadline_protocol
from reqdump.utils import join_host_port


class BootstrapError(RuntimeError):
    pass


@dataclass
class Bootstrapped:
    server: uvicorn.Server
    sock: socket.socket
    dump_dir: Path
    address: str

    def serve(self) -> bool:
        self.server.run(sockets=[self.sock])
        return self.server.started


def create_app(dumper: RequestDumper) -> FastAPI:
    app = FastAPI(title="Request Dump Server", docs_url=None, redoc_url=None, openapi_url=None)
    # an ASGI callable endpoint is routed for every method
    app.add_route("/{path:path}", dumper, include_in_schema=False)
    return app


def prepare_dump_dir(directory: str) -> Path:
    path = Path(directory)
    try:
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        raise BootstrapError(f"create dump dir {directory}: {exc}") from exc
    try:
        return Path(os.path.abspath(path))
    except OSError as exc:
        raise BootstrapError(f"resolve dump dir {directory}: {exc}") from exc


def bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        return socket.create_server((host, port), family=family)
    except OSError as exc:
        raise BootstrapError(f"listen {join_host_port(host, port)}: {exc}") from exc


def bootstrap(config: ServerConfig) -> Bootstrapped:
    dump_dir = prepare_dump_dir(config.dir)
    dumper = RequestDumper(
        dump_dir,
        config.prefix,
        counter=SequenceCounter(),
        logger=request_logger(),
        error_log=error_logger(),
        timeout=config.timeout_seconds,
    )
    sock = bind_socket(config.host, config.port)
    uv_config = uvicorn.Config(
        create_app(dumper),
        http=header_deadline_protocol(config.timeout_seconds),
        h11_max_incomplete_event_size=config.max_header_bytes,
        timeout_keep_alive=math.ceil(config.timeout_seconds),
        access_log=False,
        log_level="warning",
    )
    address = join_host_port(config.host, sock.getsockname()[1])
    return Bootstrapped(uvicorn.Server(uv_config), sock, dump_dir, address)


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    config = parse_args(argv)
    try:
        ready = bootstrap(config)
    except BootstrapError as exc:
        error_logger().error("%s", exc)
        return 1

    info_logger().info("Dumps dir: %s", ready.dump_dir)
    info_logger().info("Listening: %s", ready.address)
    return 0 if ready.serve() else 1


if __name__ == "__main__":
    sys.exit(main())
