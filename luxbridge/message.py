"""MQTT messages built from inverter packets, and parsing of command payloads."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from .inputs import ReadInput1, ReadInput2, ReadInput3, ReadInputAll
from .packet import PacketError, ReadParam, TranslatedData
from .registers import Register21Bits, Register110Bits
from .serial import Serial

logger = logging.getLogger(__name__)

_TRUTHY = frozenset({"1", "t", "true", "on", "y", "yes"})

_INPUT_TOPICS = {
    ReadInputAll: "all",
    ReadInput1: "1",
    ReadInput2: "2",
    ReadInput3: "3",
}

_BITS_REGISTERS = {
    21: Register21Bits,
    110: Register110Bits,
}

U8_MAX = 0xFF
U16_MAX = 0xFFFF


def _to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _parse_uint(text: str, maximum: int) -> int:
    """Parse a decimal unsigned integer strictly, as the wire commands expect."""
    if not text:
        raise ValueError("cannot parse integer from empty string")
    digits = text[1:] if text.startswith("+") else text
    if not digits or not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"invalid digit found in string: {text!r}")
    value = int(digits)
    if value > maximum:
        raise ValueError(f"number too large to fit in target type: {text!r}")
    return value


@dataclass(frozen=True)
class Message:
    """A single MQTT message; the topic excludes the configured namespace."""

    topic: str
    retain: bool
    payload: str

    @classmethod
    def for_param(cls, packet: ReadParam) -> list["Message"]:
        """One retained message per parameter register."""
        return [
            cls(
                topic=f"{packet.datalog}/param/{register}",
                retain=True,
                payload=_to_json(value),
            )
            for register, value in packet.pairs()
        ]

    @classmethod
    def for_hold(cls, packet: TranslatedData) -> list["Message"]:
        """One retained message per holding register, plus decoded bits where known."""
        messages = []
        for register, value in packet.pairs():
            messages.append(
                cls(
                    topic=f"{packet.datalog}/hold/{register}",
                    retain=True,
                    payload=_to_json(value),
                )
            )
            bits = _BITS_REGISTERS.get(register)
            if bits is not None:
                messages.append(
                    cls(
                        topic=f"{packet.datalog}/hold/{register}/bits",
                        retain=True,
                        payload=_to_json(bits.from_value(value).to_dict()),
                    )
                )
        return messages

    @classmethod
    def for_input_all(cls, inputs: ReadInputAll, datalog: Serial) -> "Message":
        """A message carrying a complete input reading."""
        return cls(
            topic=f"{datalog}/inputs/all",
            retain=False,
            payload=_to_json(inputs.to_dict()),
        )

    @classmethod
    def for_input(
        cls, packet: TranslatedData, publish_individual: bool
    ) -> list["Message"]:
        """Messages for an input-register read: optionally each register, then the block."""
        messages = []
        if publish_individual:
            messages.extend(
                cls(
                    topic=f"{packet.datalog}/input/{register}",
                    retain=False,
                    payload=_to_json(value),
                )
                for register, value in packet.pairs()
            )

        try:
            block = packet.read_input()
        except PacketError as err:
            logger.warning("ignoring %s", err)
        else:
            messages.append(
                cls(
                    topic=f"{packet.datalog}/inputs/{_INPUT_TOPICS[type(block)]}",
                    retain=False,
                    payload=_to_json(block.to_dict()),
                )
            )
        return messages

    def split_cmd_topic(self) -> tuple[Optional[Serial], list[str]]:
        """Split a command topic into its target and the remaining parts.

        ``cmd/AB12345678/set/ac_charge`` gives the serial ``AB12345678`` and
        ``["set", "ac_charge"]``. A target of ``all`` is returned as None,
        meaning every inverter.
        """
        parts = self.topic.split("/")
        if len(parts) < 2:
            raise ValueError(f"ignoring badly formed MQTT topic: {self.topic}")
        datalog, rest = parts[1], parts[2:]
        if datalog == "all":
            return None, rest
        return Serial.from_str(datalog), rest

    def payload_start_end_time(self) -> tuple[int, int, int, int]:
        """Parse ``{"start":"20:00","end":"21:00"}`` into ``(20, 0, 21, 0)``."""
        try:
            document: Union[dict, Any] = json.loads(self.payload)
        except json.JSONDecodeError as err:
            raise ValueError(f"invalid start/end time payload: {err}") from err
        if (
            not isinstance(document, dict)
            or not isinstance(document.get("start"), str)
            or not isinstance(document.get("end"), str)
        ):
            raise ValueError('expected {"start":"HH:MM","end":"HH:MM"}')
        start = document["start"].split(":")
        end = document["end"].split(":")
        if len(start) != 2 or len(end) != 2:
            raise ValueError("badly formatted time, use HH:MM")
        start_h, start_m, end_h, end_m = (
            _parse_uint(part, U8_MAX) for part in (*start, *end)
        )
        return start_h, start_m, end_h, end_m

    def payload_int_or_1(self) -> int:
        """The payload as an unsigned 16-bit integer, or 1 if it is not one."""
        try:
            return self.payload_int()
        except ValueError:
            return 1

    def payload_int(self) -> int:
        """The payload as an unsigned 16-bit integer."""
        try:
            return _parse_uint(self.payload, U16_MAX)
        except ValueError as err:
            raise ValueError(f"payload_int: {err}") from err

    def payload_bool(self) -> bool:
        """Whether the payload reads as an affirmative value."""
        return self.payload.lower() in _TRUTHY