"""Byte helpers and a second-precision UTC timestamp."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone


def utc() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def i16ify(data: bytes, offset: int) -> int:
    """Read a little-endian signed 16-bit integer at ``offset``."""
    return int.from_bytes(bytes(data[offset : offset + 2]), "little", signed=True) if len(
        data
    ) >= offset + 2 else _too_short(data, offset)


def u16ify(data: bytes, offset: int) -> int:
    """Read a little-endian unsigned 16-bit integer at ``offset``."""
    return int.from_bytes(bytes(data[offset : offset + 2]), "little", signed=False) if len(
        data
    ) >= offset + 2 else _too_short(data, offset)


def _too_short(data: bytes, offset: int) -> int:
    raise IndexError(
        f"need 2 bytes at offset {offset}, only {max(len(data) - offset, 0)} available"
    )


@dataclass(frozen=True, order=True)
class UnixTime:
    """A UTC moment that serialises to whole seconds since the epoch."""

    moment: datetime = field(default_factory=utc)

    def __post_init__(self) -> None:
        if isinstance(self.moment, (int, float)):
            object.__setattr__(
                self, "moment", datetime.fromtimestamp(self.moment, timezone.utc)
            )
        elif self.moment.tzinfo is None:
            object.__setattr__(self, "moment", self.moment.replace(tzinfo=timezone.utc))

    @classmethod
    def now(cls) -> "UnixTime":
        """Return the current time."""
        return cls(utc())

    def timestamp(self) -> int:
        """Whole seconds since the Unix epoch."""
        return math.floor(self.moment.timestamp())

    def __int__(self) -> int:
        return self.timestamp()