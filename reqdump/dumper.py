from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Protocol

from fastapi import Request, Response
from fastapi.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect
from starlette.types import Receive, Scope, Send

from reqdump.counter import SequenceCounter
from reqdump.logs import error_logger, request_logger
from reqdump.utils import canonical_header_key, dump_path


class Counter(Protocol):
    def next(self) -> int: ...


Opener = Callable[[Path], BinaryIO]


def open_dump_file(path: Path) -> BinaryIO:
    return open(path, "wb")


def request_head(request: Request) -> bytes:
    scope = request.scope
    target = scope.get("raw_path") or scope["path"].encode("utf-8")
    target = target.split(b"?", 1)[0]
    if scope.get("query_string"):
        target += b"?" + scope["query_string"]
    method = request.method.encode("latin-1")
    version = scope.get("http_version", "1.1").encode("latin-1")

    lines = [b"%s %s HTTP/%s" % (method, target, version)]
    for name, value in scope["headers"]:
        key = canonical_header_key(name.decode("latin-1")).encode("latin-1")
        lines.append(b"%s: %s" % (key, value))
    return b"\r\n".join(lines) + b"\r\n\r\n"


def is_chunked(request: Request) -> bool:
    encoding = request.headers.get("transfer-encoding", "")
    return "chunked" in encoding.lower()


class RequestDumper:
    def __init__(
        self,
        dump_dir: Path,
        prefix: str,
        counter: Optional[Counter] = None,
        opener: Opener = open_dump_file,
        logger: Optional[logging.Logger] = None,
        error_log: Optional[logging.Logger] = None,
        timeout: float = 10.0,
    ) -> None:
        self.dump_dir = dump_dir
        self.prefix = prefix
        self._counter = counter if counter is not None else SequenceCounter()
        self._opener = opener
        self._logger = logger or request_logger()
        self._error_log = error_log or error_logger()
        self._timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = await self.handle(Request(scope, receive))
        await response(scope, receive, send)

    async def handle(self, request: Request) -> Response:
        number = self._counter.next()
        self._logger.info("#%04d  %-8s %s", number, request.method, request.url.path)
        path = dump_path(self.dump_dir, self.prefix, number)

        try:
            file = await run_in_threadpool(self._opener, path)
        except OSError as exc:
            self._error_log.error("#%04d  create dump file: %s", number, exc)
            return Response(status_code=500)

        status = 200
        try:
            await asyncio.wait_for(self._write(request, file), timeout=self._timeout)
        except asyncio.TimeoutError:
            self._error_log.error("#%04d  write dump: timed out after %gs", number, self._timeout)
            status = 500
        except (OSError, ClientDisconnect) as exc:
            reason = str(exc) or type(exc).__name__
            self._error_log.error("#%04d  write dump: %s", number, reason)
            status = 500
        finally:
            await run_in_threadpool(file.close)

        return Response(status_code=status)

    async def _write(self, request: Request, file: BinaryIO) -> None:
        await run_in_threadpool(file.write, request_head(request))
        chunked = is_chunked(request)
        async for chunk in request.stream():
            if not chunk:
                continue
            if chunked:
                chunk = b"%x\r\n%s\r\n" % (len(chunk), chunk)
            await run_in_threadpool(file.write, chunk)
        if chunked:
            await run_in_threadpool(file.write, b"0\r\n\r\n")
        await run_in_threadpool(file.flush)
