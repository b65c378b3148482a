"""Ten-byte serial numbers used by datalogs and inverters."""

from __future__ import annotations

SERIAL_LENGTH = 10


class Serial:
    """An immutable ten-byte serial number."""

    __slots__ = ("_raw",)

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        raw = bytes(data)
        if len(raw) != SERIAL_LENGTH:
            raise ValueError(
                f"serial must be exactly {SERIAL_LENGTH} bytes, got {len(raw)}"
            )
        self._raw = raw

    @classmethod
    def from_str(cls, text: str) -> "Serial":
        """Build a serial from a ten-character string."""
        raw = text.encode("utf-8")
        if len(raw) != SERIAL_LENGTH:
            raise ValueError(f"{text} must be exactly {SERIAL_LENGTH} characters")
        return cls(raw)

    @classmethod
    def default(cls) -> "Serial":
        """Return the all-zero serial."""
        return cls(bytes(SERIAL_LENGTH))

    def data(self) -> bytes:
        """Return the raw ten bytes."""
        return self._raw

    def __str__(self) -> str:
        return self._raw.decode("utf-8", errors="replace")

    __repr__ = __str__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Serial):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)