"""Function codes, register numbers and decoded register bit fields."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import IntEnum


class TcpFunction(IntEnum):
    """Function byte of a TCP frame."""

    HEARTBEAT = 193
    TRANSLATED_DATA = 194
    READ_PARAM = 195
    WRITE_PARAM = 196


class DeviceFunction(IntEnum):
    """Modbus-style function carried inside translated data."""

    READ_HOLD = 3
    READ_INPUT = 4
    WRITE_SINGLE = 6
    WRITE_MULTI = 16


class Register(IntEnum):
    """Holding registers with a known meaning."""

    REGISTER21 = 21
    CHARGE_POWER_PERCENT_CMD = 64  # system charge rate (%)
    DISCHG_POWER_PERCENT_CMD = 65  # system discharge rate (%)
    AC_CHARGE_POWER_CMD = 66  # grid charge power rate (%)
    AC_CHARGE_SOC_LIMIT = 67  # AC charge SOC limit (%)
    FORCED_CHARGE_SOC_LIMIT = 75  # forced charge SOC limit (%)
    FORCED_DISCHG_SOC_LIMIT = 83  # forced discharge SOC limit (%)
    DISCHG_CUT_OFF_SOC_EOD = 105  # discharge cut-off SOC (%)
    EPS_DISCHG_CUTOFF_SOC_EOD = 125  # EPS discharge cut-off SOC (%)
    AC_CHARGE_START_SOC_LIMIT = 160  # SOC at which AC charging begins (%)
    AC_CHARGE_END_SOC_LIMIT = 161  # SOC at which AC charging ends (%)


class RegisterBit(IntEnum):
    """Single bits within register 21."""

    AC_CHARGE_ENABLE = 1 << 7
    FORCED_DISCHARGE_ENABLE = 1 << 10
    CHARGE_PRIORITY_ENABLE = 1 << 11


def _on_off(data: int, bit: int) -> str:
    return "ON" if data & bit == bit else "OFF"


# charge_priority_en reads bit 1, exactly as the inverter data has always been decoded.
_REGISTER21_BITS = (
    ("eps_en", 1 << 0),
    ("ovf_load_derate_en", 1 << 1),
    ("drms_en", 1 << 2),
    ("lvrt_en", 1 << 3),
    ("anti_island_en", 1 << 4),
    ("neutral_detect_en", 1 << 5),
    ("grid_on_power_ss_en", 1 << 6),
    ("ac_charge_en", 1 << 7),
    ("sw_seamless_en", 1 << 8),
    ("set_to_standby", 1 << 9),
    ("forced_discharge_en", 1 << 10),
    ("charge_priority_en", 1 << 1),
    ("iso_en", 1 << 12),
    ("gfci_en", 1 << 13),
    ("dci_en", 1 << 14),
    ("feed_in_grid_en", 1 << 15),
)

_REGISTER110_BITS = (
    ("ub_pv_grid_off_en", 1 << 0),
    ("ub_run_without_grid", 1 << 1),
    ("ub_micro_grid_en", 1 << 2),
)


@dataclass(frozen=True)
class Register21Bits:
    """Register 21 broken into named ON/OFF flags."""

    eps_en: str
    ovf_load_derate_en: str
    drms_en: str
    lvrt_en: str
    anti_island_en: str
    neutral_detect_en: str
    grid_on_power_ss_en: str
    ac_charge_en: str
    sw_seamless_en: str
    set_to_standby: str
    forced_discharge_en: str
    charge_priority_en: str
    iso_en: str
    gfci_en: str
    dci_en: str
    feed_in_grid_en: str

    @classmethod
    def from_value(cls, data: int) -> "Register21Bits":
        """Decode a raw register value."""
        return cls(**{name: _on_off(data, bit) for name, bit in _REGISTER21_BITS})

    def to_dict(self) -> dict[str, str]:
        """Flags in register-bit order."""
        return asdict(self)


@dataclass(frozen=True)
class Register110Bits:
    """Register 110 broken into named ON/OFF flags."""

    ub_pv_grid_off_en: str
    ub_run_without_grid: str
    ub_micro_grid_en: str

    @classmethod
    def from_value(cls, data: int) -> "Register110Bits":
        """Decode a raw register value."""
        return cls(**{name: _on_off(data, bit) for name, bit in _REGISTER110_BITS})

    def to_dict(self) -> dict[str, str]:
        """Flags in register-bit order."""
        return asdict(self)