from __future__ import annotations

import asyncio
from typing import Optional, Type

from uvicorn.protocols.http.h11_impl import H11Protocol


class HeaderDeadlineProtocol(H11Protocol):
    """h11 protocol that drops connections whose request head is not complete in time.

    The deadline is armed when the connection opens and again when bytes of a
    follow-up request arrive on a kept-alive connection. It is disarmed once
    h11 has parsed the request line and headers; from then on the dumper's own
    timeout covers the body.
    """

    header_timeout: float = 10.0

    def connection_made(self, transport: asyncio.Transport) -> None:  # type: ignore[override]
        self._header_deadline: Optional[asyncio.TimerHandle] = None
        super().connection_made(transport)
        self._arm_header_deadline()

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self._disarm_header_deadline()
        super().connection_lost(exc)

    def data_received(self, data: bytes) -> None:
        super().data_received(data)
        if self._request_in_flight():
            self._disarm_header_deadline()
        elif self._header_deadline is None and not self.transport.is_closing():
            self._arm_header_deadline()

    def _request_in_flight(self) -> bool:
        return self.cycle is not None and not self.cycle.response_complete

    def _arm_header_deadline(self) -> None:
        self._disarm_header_deadline()
        self._header_deadline = self.loop.call_later(self.header_timeout, self._header_deadline_passed)

    def _disarm_header_deadline(self) -> None:
        if self._header_deadline is not None:
            self._header_deadline.cancel()
            self._header_deadline = None

    def _header_deadline_passed(self) -> None:
        self._header_deadline = None
        if self._request_in_flight() or self.transport.is_closing():
            return
        self.logger.debug("Request head not received within %gs, closing", self.header_timeout)
        self.transport.close()


def header_deadline_protocol(timeout: float) -> Type[HeaderDeadlineProtocol]:
    return type("HeaderDeadlineProtocol", (HeaderDeadlineProtocol,), {"header_timeout": timeout})
