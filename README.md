# luxbridge

`luxbridge` handles the TCP protocol that LuxPower hybrid inverter
datalogger dongles speak. It can:

- build and parse the binary frames,
- split a TCP byte stream into packets,
- turn register data into structured readings,
- map packets to MQTT topic/payload messages and read incoming command
  topics and payloads.

It has no dependencies outside the standard library.

## Installing

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Modules

### `luxbridge.serial`

`Serial` is an immutable ten-byte serial number for a datalogger or an
inverter. You can create one in three ways:

- `Serial.from_str("AB12345678")` from a ten-character string,
- `Serial(raw_bytes)` from exactly ten bytes,
- `Serial.default()` for the all-zero serial.

Any other length raises `ValueError`. `str()` gives the text form, and
`data()` gives the raw bytes.

### `luxbridge.packet`

This module holds the packet dataclasses:

- `Heartbeat`
- `TranslatedData`, for register reads and writes relayed to the inverter
- `ReadParam`
- `WriteParam`

Every packet type has these methods:

- `decode(data)`, a classmethod
- `protocol()`
- `tcp_function()`
- `bytes()`, which gives the payload that follows the 18-byte header

`TranslatedData`, `ReadParam` and `WriteParam` also have `pairs()`, which
gives `(register, value)` tuples, and `value()`. `TranslatedData.pairs()`
gives unsigned values. The two param types give signed values.
`TranslatedData.read_input()` decodes an input-register read into one of
the reading classes described below.

Module functions:

- `parse(data)` decodes one complete frame.
- `build_frame(packet)` encodes a packet as a complete frame.
- `modbus_crc16(data)` is the checksum used inside translated data.

Malformed frames raise `PacketError`, which is a subclass of `ValueError`.
A checksum mismatch or an unknown function code are examples.

### `luxbridge.decoder`

`PacketDecoder` buffers bytes from a stream.

- `feed(data)` appends a chunk.
- `decode()` returns the next complete packet, or `None` if more bytes are
  needed.
- `packets()` yields every complete packet currently buffered.
- `decode_eof()` raises `PacketError` if bytes are left over at the end of
  the stream.

### `luxbridge.registers`

This module defines:

- the enums `TcpFunction`, `DeviceFunction`, `Register` and `RegisterBit`,
- `Register21Bits` and `Register110Bits`, which decode a raw register
  value into named `"ON"`/`"OFF"` flags with `from_value(data)` and
  `to_dict()`.

### `luxbridge.inputs`

The input-register blocks are dataclasses. `parse(data, datalog)` builds
each one and stamps it with the current time:

- `ReadInput1`: registers 0–39
- `ReadInput2`: registers 40–79
- `ReadInput3`: registers 80–119
- `ReadInputAll`: all of them in one read

`to_dict()` gives a JSON-ready mapping, with the time as epoch seconds and
the datalog as text. `ReadInputs` holds the three partial blocks.
`to_input_all()` combines them, or returns `None` while any block is
missing.

### `luxbridge.message`

`Message(topic, retain, payload)` is a frozen dataclass. Its topic does not
include an MQTT namespace.

- `Message.for_hold(packet)` gives one retained message per holding
  register. For registers 21 and 110 it adds a `.../bits` message.
- `Message.for_param(packet)` gives one retained message per parameter.
- `Message.for_input(packet, publish_individual)` optionally gives one
  message per input register. It then gives one message for the decoded
  block (`.../inputs/all`, `/1`, `/2` or `/3`). Blocks it cannot decode are
  logged and skipped.
- `Message.for_input_all(inputs, datalog)` gives one message for a full
  reading.

For incoming commands:

- `split_cmd_topic()` turns `cmd/AB12345678/set/ac_charge` into the serial
  and `["set", "ac_charge"]`. A target of `all` comes back as `None`.
- `payload_int()` parses the payload as an unsigned 16-bit integer.
- `payload_int_or_1()` does the same, but gives 1 when the payload is not
  such an integer.
- `payload_bool()` accepts `1`, `t`, `true`, `on`, `y` and `yes`, in any
  case.
- `payload_start_end_time()` turns `{"start":"20:00","end":"21:00"}` into
  `(20, 0, 21, 0)`.

Bad input raises `ValueError`.

### `luxbridge.replies`

`ChannelData(kind, serial, packet)` is an item passed between connections.
Its `kind` is a `ChannelKind`: `CONNECTED`, `DISCONNECT`, `PACKET` or
`SHUTDOWN`.

- `is_reply(request, reply)` tells whether a packet answers a request.
- `wait_for_reply(queue, packet, timeout=10.0)` is a coroutine. It reads
  an `asyncio.Queue` until the matching reply arrives. It raises
  `ReplyError` in three cases:
  - on timeout,
  - on shutdown,
  - when the request's datalog disconnects.

### `luxbridge.utils`

This module has the little-endian helpers `i16ify` and `u16ify`, and
`utc()`. `UnixTime` is a UTC moment whose `timestamp()` gives whole
seconds.

## Example

```python
from luxbridge.message import Message
from luxbridge.packet import TranslatedData, build_frame, parse
from luxbridge.registers import DeviceFunction
from luxbridge.serial import Serial

datalog = Serial.from_str("2222222222")
inverter = Serial.from_str("5555555555")

# ask for three holding registers starting at register 12
request = TranslatedData(
    datalog=datalog,
    device_function=DeviceFunction.READ_HOLD,
    inverter=inverter,
    register=12,
    values=bytes([3, 0]),
)
frame = build_frame(request)  # bytes ready to write to the dongle

# a reply frame as read back from the dongle
reply_frame = bytes(
    [161, 26, 2, 0, 37, 0, 1, 194] + [50] * 10
    + [23, 0, 1, 3] + [53] * 10
    + [12, 0, 6, 22, 6, 20, 5, 16, 57, 93, 135]
)
reply = parse(reply_frame)
for message in Message.for_hold(reply):
    print(message.topic, message.payload)
# 2222222222/hold/12 1558
# 2222222222/hold/13 1300
# 2222222222/hold/14 14608
```

## What the package does not do

`luxbridge` works on bytes, packets and messages only. It does not do any
of the following:

- open TCP connections to dataloggers, or keep them alive,
- connect to an MQTT broker, or publish or subscribe,
- read a configuration file,
- schedule time synchronisation,
- write readings to a database or a time-series store,
- provide a command-line program.

Your own code supplies the sockets, the broker client and the queues. Use
`PacketDecoder`, `build_frame`, `Message` and `wait_for_reply` to connect
them.