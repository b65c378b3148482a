"""Frames, packet decoding, readings and MQTT message mapping for LuxPower inverter dataloggers."""

__version__ = "0.1.0"