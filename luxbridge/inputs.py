"""Decoded input-register blocks read from an inverter."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Optional, Union

from .serial import Serial
from .utils import UnixTime

_Spec = Union[int, tuple[str, str, Optional[int]]]


def _raw(name: str, code: str = "h") -> tuple[str, str, None]:
    return (name, code, None)


def _scaled(name: str, divisor: int, code: str = "h") -> tuple[str, str, int]:
    return (name, code, divisor)


class _Layout:
    """A little-endian record layout; integers in the spec are skipped bytes."""

    def __init__(self, *spec: _Spec) -> None:
        fmt = ["<"]
        self._fields: list[tuple[str, Optional[int]]] = []
        for item in spec:
            if isinstance(item, int):
                fmt.append(f"{item}x")
            else:
                name, code, divisor = item
                fmt.append(code)
                self._fields.append((name, divisor))
        self._codec = struct.Struct("".join(fmt))

    @property
    def size(self) -> int:
        return self._codec.size

    def decode(self, data: bytes, owner: str) -> dict[str, Any]:
        if len(data) < self.size:
            raise ValueError(
                f"{owner}: need at least {self.size} bytes, got {len(data)}"
            )
        raw = self._codec.unpack_from(bytes(data))
        return {
            name: value if divisor is None else value / divisor
            for (name, divisor), value in zip(self._fields, raw)
        }


_INPUT1_SPEC: tuple[_Spec, ...] = (
    _raw("status"),
    _scaled("v_pv_1", 10),
    _scaled("v_pv_2", 10),
    _scaled("v_pv_3", 10),
    _scaled("v_bat", 10),
    _raw("soc", "b"),
    _raw("soh", "b"),
    2,
    _raw("p_pv_1"),
    _raw("p_pv_2"),
    _raw("p_pv_3"),
    _raw("p_charge"),
    _raw("p_discharge"),
    _scaled("v_ac_r", 10),
    _scaled("v_ac_s", 10),
    _scaled("v_ac_t", 10),
    _scaled("f_ac", 100),
    _raw("p_inv"),
    _raw("p_rec"),
    2,
    _scaled("pf", 1000),
    _scaled("v_eps_r", 10),
    _scaled("v_eps_s", 10),
    _scaled("v_eps_t", 10),
    _scaled("f_eps", 100),
    _raw("p_eps"),
    _raw("s_eps"),
    _raw("p_to_grid"),
    _raw("p_to_user"),
    _scaled("e_pv_day_1", 10),
    _scaled("e_pv_day_2", 10),
    _scaled("e_pv_day_3", 10),
    _scaled("e_inv_day", 10),
    _scaled("e_rec_day", 10),
    _scaled("e_chg_day", 10),
    _scaled("e_dischg_day", 10),
    _scaled("e_eps_day", 10),
    _scaled("e_to_grid_day", 10),
    _scaled("e_to_user_day", 10),
    _scaled("v_bus_1", 10),
    _scaled("v_bus_2", 10),
)

_INPUT2_SPEC: tuple[_Spec, ...] = (
    _scaled("e_pv_all_1", 10, "I"),
    _scaled("e_pv_all_2", 10, "I"),
    _scaled("e_pv_all_3", 10, "I"),
    _scaled("e_inv_all", 10, "I"),
    _scaled("e_rec_all", 10, "I"),
    _scaled("e_chg_all", 10, "I"),
    _scaled("e_dischg_all", 10, "I"),
    _scaled("e_eps_all", 10, "I"),
    _scaled("e_to_grid_all", 10, "I"),
    _scaled("e_to_user_all", 10, "I"),
    8,  # fault code, warning code
    _raw("t_inner"),
    _raw("t_rad_1"),
    _raw("t_rad_2"),
    _raw("t_bat"),
    2,  # reserved
    _raw("runtime", "I"),
)

_INPUT3_SPEC: tuple[_Spec, ...] = (
    2,  # bat_brand, bat_com_type
    _scaled("max_chg_curr", 100),
    _scaled("max_dischg_curr", 100),
    _scaled("charge_volt_ref", 10),
    _scaled("dischg_cut_volt", 10),
    *(_raw(f"bat_status_{n}") for n in range(10)),
    _raw("bat_status_inv"),
    _raw("bat_count"),
    _raw("bat_capacity"),
    _scaled("bat_current", 100),
    _raw("bms_event_1"),
    _raw("bms_event_2"),
    _scaled("max_cell_voltage", 100),
    _scaled("min_cell_voltage", 100),
    _scaled("max_cell_temp", 100),
    _scaled("min_cell_temp", 100),
    _raw("bms_fw_update_state"),
    _raw("cycle_count"),
    _scaled("vbat_inv", 10),
)

# 18 bytes of auto-test data sit between the second and third blocks,
# and 14 unknown bytes follow the third.
_ALL_SPEC: tuple[_Spec, ...] = (
    *_INPUT1_SPEC,
    *_INPUT2_SPEC,
    18,
    *_INPUT3_SPEC,
    14,
)


@dataclass(kw_only=True)
class _Input1Fields:
    status: int
    v_pv_1: float
    v_pv_2: float
    v_pv_3: float
    v_bat: float
    soc: int
    soh: int
    p_pv: int
    p_pv_1: int
    p_pv_2: int
    p_pv_3: int
    p_charge: int
    p_discharge: int
    v_ac_r: float
    v_ac_s: float
    v_ac_t: float
    f_ac: float
    p_inv: int
    p_rec: int
    pf: float
    v_eps_r: float
    v_eps_s: float
    v_eps_t: float
    f_eps: float
    p_eps: int
    s_eps: int
    p_to_grid: int
    p_to_user: int
    e_pv_day: float
    e_pv_day_1: float
    e_pv_day_2: float
    e_pv_day_3: float
    e_inv_day: float
    e_rec_day: float
    e_chg_day: float
    e_dischg_day: float
    e_eps_day: float
    e_to_grid_day: float
    e_to_user_day: float
    v_bus_1: float
    v_bus_2: float


@dataclass(kw_only=True)
class _Input2Fields:
    e_pv_all: float
    e_pv_all_1: float
    e_pv_all_2: float
    e_pv_all_3: float
    e_inv_all: float
    e_rec_all: float
    e_chg_all: float
    e_dischg_all: float
    e_eps_all: float
    e_to_grid_all: float
    e_to_user_all: float
    t_inner: int
    t_rad_1: int
    t_rad_2: int
    t_bat: int
    runtime: int


@dataclass(kw_only=True)
class _Input3Fields:
    max_chg_curr: float
    max_dischg_curr: float
    charge_volt_ref: float
    dischg_cut_volt: float
    bat_status_0: int
    bat_status_1: int
    bat_status_2: int
    bat_status_3: int
    bat_status_4: int
    bat_status_5: int
    bat_status_6: int
    bat_status_7: int
    bat_status_8: int
    bat_status_9: int
    bat_status_inv: int
    bat_count: int
    bat_capacity: int
    bat_current: float
    bms_event_1: int
    bms_event_2: int
    max_cell_voltage: float
    min_cell_voltage: float
    max_cell_temp: float
    min_cell_temp: float
    bms_fw_update_state: int
    cycle_count: int
    vbat_inv: float


@dataclass(kw_only=True)
class _Reading:
    """Common tail of every block: when it was read and from which datalog."""

    _LAYOUT: ClassVar[_Layout]

    time: UnixTime = field(default_factory=UnixTime.now)
    datalog: Serial = field(default_factory=Serial.default)


def _decode_reading(cls: type, data: bytes, datalog: Optional[Serial]) -> Any:
    values = cls._LAYOUT.decode(data, cls.__name__)
    if "p_pv_1" in values:
        values["p_pv"] = values["p_pv_1"] + values["p_pv_2"] + values["p_pv_3"]
    if "e_pv_day_1" in values:
        values["e_pv_day"] = (
            values["e_pv_day_1"] + values["e_pv_day_2"] + values["e_pv_day_3"]
        )
    if "e_pv_all_1" in values:
        values["e_pv_all"] = (
            values["e_pv_all_1"] + values["e_pv_all_2"] + values["e_pv_all_3"]
        )
    return cls(
        **values,
        time=UnixTime.now(),
        datalog=datalog if datalog is not None else Serial.default(),
    )


def _reading_dict(reading: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(reading):
        value = getattr(reading, f.name)
        if isinstance(value, UnixTime):
            value = value.timestamp()
        elif isinstance(value, Serial):
            value = str(value)
        result[f.name] = value
    return result


@dataclass(kw_only=True)
class ReadInput1(_Reading, _Input1Fields):
    """Input registers 0-39."""

    _LAYOUT: ClassVar[_Layout] = _Layout(*_INPUT1_SPEC)

    @classmethod
    def parse(cls, data: bytes, datalog: Optional[Serial] = None) -> "ReadInput1":
        """Decode register bytes, stamping them with the current time."""
        return _decode_reading(cls, data, datalog)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; time as epoch seconds, datalog as text."""
        return _reading_dict(self)


@dataclass(kw_only=True)
class ReadInput2(_Reading, _Input2Fields):
    """Input registers 40-79."""

    _LAYOUT: ClassVar[_Layout] = _Layout(*_INPUT2_SPEC)

    @classmethod
    def parse(cls, data: bytes, datalog: Optional[Serial] = None) -> "ReadInput2":
        """Decode register bytes, stamping them with the current time."""
        return _decode_reading(cls, data, datalog)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; time as epoch seconds, datalog as text."""
        return _reading_dict(self)


@dataclass(kw_only=True)
class ReadInput3(_Reading, _Input3Fields):
    """Input registers 80-119."""

    _LAYOUT: ClassVar[_Layout] = _Layout(*_INPUT3_SPEC)

    @classmethod
    def parse(cls, data: bytes, datalog: Optional[Serial] = None) -> "ReadInput3":
        """Decode register bytes, stamping them with the current time."""
        return _decode_reading(cls, data, datalog)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; time as epoch seconds, datalog as text."""
        return _reading_dict(self)


@dataclass(kw_only=True)
class ReadInputAll(_Reading, _Input3Fields, _Input2Fields, _Input1Fields):
    """All input registers read in one go."""

    _LAYOUT: ClassVar[_Layout] = _Layout(*_ALL_SPEC)

    @classmethod
    def parse(cls, data: bytes, datalog: Optional[Serial] = None) -> "ReadInputAll":
        """Decode register bytes, stamping them with the current time."""
        return _decode_reading(cls, data, datalog)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; time as epoch seconds, datalog as text."""
        return _reading_dict(self)


@dataclass
class ReadInputs:
    """Collects the three partial blocks until a full reading can be made."""

    read_input_1: Optional[ReadInput1] = None
    read_input_2: Optional[ReadInput2] = None
    read_input_3: Optional[ReadInput3] = None

    def to_input_all(self) -> Optional[ReadInputAll]:
        """Combine the three blocks, or return None while any is missing."""
        if (
            self.read_input_1 is None
            or self.read_input_2 is None
            or self.read_input_3 is None
        ):
            return None
        values: dict[str, Any] = {}
        for part, block in (
            (self.read_input_1, _Input1Fields),
            (self.read_input_2, _Input2Fields),
            (self.read_input_3, _Input3Fields),
        ):
            values.update({f.name: getattr(part, f.name) for f in fields(block)})
        return ReadInputAll(
            **values, time=self.read_input_1.time, datalog=self.read_input_1.datalog
        )