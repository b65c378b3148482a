"""Splits a TCP byte stream into packets."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Optional

from .packet import FRAME_PREFIX, Packet, PacketError, parse

logger = logging.getLogger(__name__)


class PacketDecoder:
    """Buffers incoming bytes and yields complete packets."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        """Append received bytes to the buffer."""
        self._buffer += data

    def decode(self) -> Optional[Packet]:
        """Return the next complete packet, or None if more bytes are needed."""
        if len(self._buffer) < 6:
            return None
        if self._buffer[:2] != FRAME_PREFIX:
            raise PacketError("161, 26 header not found")

        # the length field excludes the first six bytes
        frame_len = 6 + int.from_bytes(self._buffer[4:6], "little")
        if len(self._buffer) < frame_len:
            return None

        frame = bytes(self._buffer[:frame_len])
        del self._buffer[:frame_len]
        logger.debug("%d bytes in: %s", len(frame), list(frame))
        return parse(frame)

    def decode_eof(self) -> Optional[Packet]:
        """Like decode, but leftover bytes at end of stream are an error."""
        packet = self.decode()
        if packet is None and self._buffer:
            raise PacketError("bytes remaining on stream")
        return packet

    def packets(self) -> Iterator[Packet]:
        """Yield every complete packet currently buffered."""
        while (packet := self.decode()) is not None:
            yield packet