"""Traffic between the inverter connections and their users, and reply matching."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from .packet import Packet, ReadParam, TranslatedData, WriteParam
from .serial import Serial

DEFAULT_TIMEOUT = 10.0


class ChannelKind(Enum):
    """What a channel item carries."""

    CONNECTED = auto()
    DISCONNECT = auto()
    PACKET = auto()
    SHUTDOWN = auto()


@dataclass(frozen=True)
class ChannelData:
    """One item passed between an inverter connection and the rest of the bridge."""

    kind: ChannelKind
    serial: Optional[Serial] = None
    packet: Optional[Packet] = None


class ReplyError(Exception):
    """Raised when no matching reply to a request arrives."""


def is_reply(request: Packet, reply: Packet) -> bool:
    """Whether ``reply`` answers ``request``."""
    if isinstance(request, TranslatedData) and isinstance(reply, TranslatedData):
        return (
            request.datalog == reply.datalog
            and request.register == reply.register
            and request.device_function == reply.device_function
        )
    if isinstance(request, ReadParam) and isinstance(reply, ReadParam):
        return request.datalog == reply.datalog and request.register == reply.register
    if isinstance(request, WriteParam) and isinstance(reply, WriteParam):
        return request.datalog == reply.datalog and request.register == reply.register
    return False


async def wait_for_reply(
    queue: "asyncio.Queue[ChannelData]",
    packet: Packet,
    timeout: float = DEFAULT_TIMEOUT,
) -> Packet:
    """Consume ``queue`` until a reply to ``packet`` arrives and return it.

    Raises ReplyError on timeout, on shutdown, or when the inverter that
    ``packet`` was sent to disconnects.
    """
    loop = asyncio.get_running_loop()
    start = loop.time()
    deadline = start + timeout

    def timed_out() -> ReplyError:
        return ReplyError(f"wait_for_reply {packet!r} - timeout")

    while True:
        try:
            item = queue.get_nowait()
        except asyncio.QueueEmpty:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise timed_out() from None
            try:
                item = await asyncio.wait_for(queue.get(), remaining)
            except asyncio.TimeoutError:
                raise timed_out() from None

        if item.kind is ChannelKind.PACKET:
            if item.packet is not None and is_reply(packet, item.packet):
                return item.packet
        elif item.kind is ChannelKind.DISCONNECT:
            if item.serial == packet.datalog:
                raise ReplyError("inverter disconnect?")
        elif item.kind is ChannelKind.SHUTDOWN:
            raise ReplyError("shutting down")

        if loop.time() - start > timeout:
            raise timed_out()