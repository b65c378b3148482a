"""Frames exchanged with an inverter's datalogger over TCP."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from .inputs import ReadInput1, ReadInput2, ReadInput3, ReadInputAll
from .registers import DeviceFunction, TcpFunction
from .serial import Serial
from .utils import i16ify, u16ify

logger = logging.getLogger(__name__)

FRAME_PREFIX = b"\xa1\x1a"
HEADER_LENGTH = 18


class PacketError(ValueError):
    """Raised when a frame cannot be decoded or is malformed."""


def modbus_crc16(data: bytes) -> int:
    """CRC-16/MODBUS of ``data``."""
    crc = 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0xA001 if crc & 1 else crc >> 1
    return crc


def _checksum(data: bytes) -> bytes:
    return modbus_crc16(data).to_bytes(2, "little")


def _le16(value: int) -> bytes:
    return (value & 0xFFFF).to_bytes(2, "little")


def _has_value_length_byte(
    from_inverter: bool, protocol: int, device_function: DeviceFunction
) -> bool:
    if device_function in (DeviceFunction.READ_HOLD, DeviceFunction.READ_INPUT):
        return protocol != 1 and from_inverter
    if device_function is DeviceFunction.WRITE_SINGLE:
        return False
    return protocol != 1 and not from_inverter


def _signed_pairs(register: int, values: bytes) -> list[tuple[int, int]]:
    return [
        (register + pos, i16ify(values, offset))
        for pos, offset in enumerate(range(0, len(values), 2))
    ]


@dataclass
class Heartbeat:
    """Keep-alive frame sent by the datalogger."""

    datalog: Serial

    @classmethod
    def decode(cls, data: bytes) -> "Heartbeat":
        """Decode a complete heartbeat frame."""
        if len(data) < 19:
            raise PacketError("heartbeat packet too short")
        if data[18] != 0:
            raise PacketError(f"heartbeat with non-zero ({data[18]}) length byte?")
        return cls(datalog=Serial(data[8:18]))

    def protocol(self) -> int:
        return 2

    def tcp_function(self) -> TcpFunction:
        return TcpFunction.HEARTBEAT

    def bytes(self) -> bytes:
        """Payload following the frame header."""
        return b"\x00"


@dataclass
class TranslatedData:
    """Register reads and writes relayed to the inverter itself."""

    datalog: Serial
    device_function: DeviceFunction
    inverter: Serial
    register: int
    values: bytes

    def __post_init__(self) -> None:
        self.device_function = DeviceFunction(self.device_function)
        self.values = bytes(self.values)

    @classmethod
    def decode(cls, data: bytes) -> "TranslatedData":
        """Decode a complete translated-data frame sent by an inverter."""
        data = bytes(data)
        if len(data) < 38:
            raise PacketError("TranslatedData::decode packet too short")

        protocol = i16ify(data, 2)
        datalog = Serial(data[8:18])
        payload = data[20:-2]
        checksum = data[-2:]
        expected = _checksum(payload)
        if checksum != expected:
            raise PacketError(
                "TranslatedData::decode checksum mismatch - "
                f"got {list(checksum)}, expected {list(expected)}"
            )

        try:
            device_function = DeviceFunction(payload[1])
        except ValueError as err:
            raise PacketError(f"unknown device function {payload[1]}") from err
        inverter = Serial(payload[2:12])
        register = i16ify(payload, 12)

        value_len, value_offset = 2, 14
        if _has_value_length_byte(True, protocol, device_function):
            value_len = payload[value_offset]
            value_offset += 1

        values = payload[value_offset:]
        if len(values) != value_len:
            raise PacketError(
                "TranslatedData::decode mismatch: "
                f"values.len()={len(values)}, value_length_byte={value_len}"
            )

        return cls(
            datalog=datalog,
            device_function=device_function,
            inverter=inverter,
            register=register,
            values=values,
        )

    def pairs(self) -> list[tuple[int, int]]:
        """(register, unsigned value) for each two-byte value."""
        return [
            (self.register + pos, u16ify(self.values, offset))
            for pos, offset in enumerate(range(0, len(self.values), 2))
        ]

    def read_input(self) -> Union[ReadInputAll, ReadInput1, ReadInput2, ReadInput3]:
        """Decode the values as one of the known input-register blocks."""
        block = _READ_INPUT_BLOCKS.get((self.register, len(self.values)))
        if block is None:
            raise PacketError(
                f"unhandled ReadInput register={self.register} len={len(self.values)}"
            )
        try:
            return block.parse(self.values, self.datalog)
        except ValueError as err:
            raise PacketError(f"cannot decode {block.__name__}: {err}") from err

    def protocol(self) -> int:
        return 2 if self.device_function is DeviceFunction.WRITE_MULTI else 1

    def tcp_function(self) -> TcpFunction:
        return TcpFunction.TRANSLATED_DATA

    def bytes(self) -> bytes:
        """Payload following the frame header, with length prefix and checksum."""
        # address byte is 0 when writing to the inverter
        body = bytearray([0, self.device_function])
        body += self.inverter.data()
        body += _le16(self.register)
        if self.device_function is DeviceFunction.WRITE_MULTI:
            body += _le16(len(self.pairs()))
        if _has_value_length_byte(False, self.protocol(), self.device_function):
            body.append(len(self.values) & 0xFF)
        body += self.values
        # the length counts its own two bytes but not the checksum
        return _le16(len(body) + 2) + bytes(body) + _checksum(body)

    def value(self) -> int:
        """First value as an unsigned 16-bit integer."""
        return u16ify(self.values, 0)


@dataclass
class ReadParam:
    """Read of a datalogger parameter."""

    datalog: Serial
    register: int
    values: bytes

    def __post_init__(self) -> None:
        self.values = bytes(self.values)

    @classmethod
    def decode(cls, data: bytes) -> "ReadParam":
        """Decode a complete read-param frame."""
        data = bytes(data)
        if len(data) < 24:
            raise PacketError("ReadParam::decode packet too short")

        protocol = i16ify(data, 2)
        datalog = Serial(data[8:18])
        payload = data[18:]
        register = i16ify(payload, 0)

        value_len, value_offset = 2, 2
        if protocol == 2:
            value_len = i16ify(payload, value_offset)
            value_offset += 2

        values = payload[value_offset:]
        if len(values) != value_len:
            raise PacketError(
                "ReadParam::decode mismatch: "
                f"values.len()={len(values)}, value_length_byte={value_len}"
            )
        return cls(datalog=datalog, register=register, values=values)

    def pairs(self) -> list[tuple[int, int]]:
        """(register, signed value) for each two-byte value."""
        return _signed_pairs(self.register, self.values)

    def protocol(self) -> int:
        return 2

    def tcp_function(self) -> TcpFunction:
        return TcpFunction.READ_PARAM

    def bytes(self) -> bytes:
        """Payload following the frame header."""
        return bytes([self.register & 0xFF, 0])

    def value(self) -> int:
        """First value as an unsigned 16-bit integer."""
        return u16ify(self.values, 0)


@dataclass
class WriteParam:
    """Write of a datalogger parameter."""

    datalog: Serial
    register: int
    values: bytes

    def __post_init__(self) -> None:
        self.values = bytes(self.values)

    @classmethod
    def decode(cls, data: bytes) -> "WriteParam":
        """Decode a complete write-param frame."""
        data = bytes(data)
        if len(data) < 21:
            raise PacketError("WriteParam::decode packet too short")

        datalog = Serial(data[8:18])
        payload = data[18:]
        register = payload[0]
        values = payload[1:]
        if len(values) != 2:
            raise PacketError(
                "WriteParam::decode mismatch: "
                f"values.len()={len(values)}, value_length_byte=2"
            )
        return cls(datalog=datalog, register=register, values=values)

    def pairs(self) -> list[tuple[int, int]]:
        """(register, signed value) for each two-byte value."""
        return _signed_pairs(self.register, self.values)

    def protocol(self) -> int:
        return 2

    def tcp_function(self) -> TcpFunction:
        return TcpFunction.WRITE_PARAM

    def bytes(self) -> bytes:
        """Payload following the frame header."""
        return _le16(self.register) + _le16(len(self.values)) + self.values

    def value(self) -> int:
        """First value as an unsigned 16-bit integer."""
        return u16ify(self.values, 0)


Packet = Union[Heartbeat, TranslatedData, ReadParam, WriteParam]

_READ_INPUT_BLOCKS = {
    (0, 254): ReadInputAll,
    # (127, 254) has been seen but holds only zeroes
    (0, 80): ReadInput1,
    (40, 80): ReadInput2,
    (80, 80): ReadInput3,
}

_DECODERS = {
    TcpFunction.HEARTBEAT: Heartbeat,
    TcpFunction.TRANSLATED_DATA: TranslatedData,
    TcpFunction.READ_PARAM: ReadParam,
    TcpFunction.WRITE_PARAM: WriteParam,
}


def parse(data: bytes) -> Packet:
    """Decode one complete TCP frame."""
    data = bytes(data)
    if len(data) < HEADER_LENGTH:
        raise PacketError("packet less than 18 bytes?")
    if data[:2] != FRAME_PREFIX:
        raise PacketError("invalid packet prefix")
    if len(data) < data[4] - 6:
        raise PacketError(
            f"parse mismatch: input.len()={len(data)}, frame_length={data[4] - 6}"
        )
    try:
        function = TcpFunction(data[7])
    except ValueError as err:
        raise PacketError(f"unhandled tcp_function={data[7]}") from err
    return _DECODERS[function].decode(data)


def build_frame(packet: Packet) -> bytes:
    """Encode a packet as a complete TCP frame."""
    payload = packet.bytes()
    frame_length = HEADER_LENGTH + len(payload)
    return b"".join(
        [
            FRAME_PREFIX,
            _le16(packet.protocol()),
            _le16(frame_length - 6),
            bytes([1, packet.tcp_function()]),
            packet.datalog.data(),
            payload,
        ]
    )