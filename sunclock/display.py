"""Monitor control over DDC/CI: brightness, input selection and power."""

from __future__ import annotations

import fcntl
import logging
import time
from dataclasses import dataclass
from functools import reduce
from types import TracebackType
from typing import Protocol

from sunclock.errors import DdcError

__all__ = [
    "VCP_BRIGHTNESS",
    "VCP_INPUT_SOURCE",
    "VCP_POWER_MODE",
    "POWER_TOGGLE",
    "DDC_ADDRESS",
    "VcpValue",
    "Monitor",
    "I2cDdcMonitor",
    "DisplayController",
    "ddc_checksum",
    "build_set_vcp_packet",
    "build_get_vcp_packet",
    "parse_get_vcp_reply",
]

log = logging.getLogger(__name__)

VCP_BRIGHTNESS = 0x10
VCP_INPUT_SOURCE = 0x60
VCP_POWER_MODE = 0xD6
POWER_TOGGLE = 0x05

DDC_ADDRESS = 0x37
I2C_SLAVE = 0x0703

_HOST_ADDRESS = 0x51
_DISPLAY_WRITE_ADDRESS = 0x6E
_HOST_READ_ADDRESS = 0x50
_GET_VCP_REQUEST = 0x01
_GET_VCP_REPLY = 0x02
_SET_VCP = 0x03
_REPLY_LENGTH = 11


@dataclass(frozen=True)
class VcpValue:
    """A non-table VCP feature value as the monitor reports it."""

    code: int
    vcp_type: int
    mh: int
    ml: int
    sh: int
    sl: int

    @property
    def maximum(self) -> int:
        return (self.mh << 8) | self.ml

    @property
    def current(self) -> int:
        return (self.sh << 8) | self.sl


class Monitor(Protocol):
    def get_vcp(self, code: int) -> VcpValue: ...

    def set_vcp(self, code: int, value: int) -> None: ...

    def close(self) -> None: ...


def ddc_checksum(data: bytes | bytearray) -> int:
    """XOR of every byte, as DDC/CI uses for its checksums."""
    return reduce(lambda acc, byte: acc ^ byte, data, 0)


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must fit in one byte, got {value}")


def _frame(body: bytes) -> bytes:
    packet = bytes([_HOST_ADDRESS, 0x80 | len(body)]) + body
    return packet + bytes([ddc_checksum(bytes([_DISPLAY_WRITE_ADDRESS]) + packet)])


def build_set_vcp_packet(code: int, value: int) -> bytes:
    """Bytes to write to the monitor to set VCP feature ``code`` to ``value``."""
    _check_byte("VCP code", code)
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"VCP value must fit in two bytes, got {value}")
    return _frame(bytes([_SET_VCP, code, value >> 8, value & 0xFF]))


def build_get_vcp_packet(code: int) -> bytes:
    """Bytes to write to the monitor to request VCP feature ``code``."""
    _check_byte("VCP code", code)
    return _frame(bytes([_GET_VCP_REQUEST, code]))


def parse_get_vcp_reply(data: bytes | bytearray, code: int) -> VcpValue:
    """Decode the monitor's reply to a VCP feature request."""
    if len(data) < _REPLY_LENGTH:
        raise DdcError(f"Reply too short: {len(data)} bytes")
    reply = bytes(data[:_REPLY_LENGTH])
    if reply[0] != _DISPLAY_WRITE_ADDRESS:
        raise DdcError(f"Unexpected source address 0x{reply[0]:02x}")
    if reply[1] & 0x7F == 0:
        raise DdcError("Monitor sent a null message")
    if reply[1] != 0x88 or reply[2] != _GET_VCP_REPLY:
        raise DdcError("Reply is not a VCP feature reply")
    if ddc_checksum(bytes([_HOST_READ_ADDRESS]) + reply[:-1]) != reply[-1]:
        raise DdcError("Reply checksum mismatch")
    if reply[3] != 0:
        raise DdcError(f"Monitor does not support VCP feature 0x{code:02x}", reply[3])
    if reply[4] != code:
        raise DdcError(f"Reply is for VCP feature 0x{reply[4]:02x}, not 0x{code:02x}")
    return VcpValue(code, reply[5], reply[6], reply[7], reply[8], reply[9])


class I2cDdcMonitor:
    """A monitor reached through a Linux I2C bus device."""

    reply_delay = 0.04
    write_delay = 0.05
    retries = 3

    def __init__(self, bus: int | str) -> None:
        self.path = bus if isinstance(bus, str) else f"/dev/i2c-{bus}"
        try:
            self._dev = open(self.path, "r+b", buffering=0)
        except OSError as exc:
            raise DdcError(f"Unable to open DDC bus {self.path}: {exc.strerror}") from exc
        try:
            fcntl.ioctl(self._dev.fileno(), I2C_SLAVE, DDC_ADDRESS)
        except OSError as exc:
            self._dev.close()
            raise DdcError(
                f"Unable to address the monitor on {self.path}: {exc.strerror}"
            ) from exc

    def _write(self, packet: bytes) -> None:
        try:
            self._dev.write(packet)
        except OSError as exc:
            raise DdcError(f"Write to {self.path} failed: {exc.strerror}") from exc

    def get_vcp(self, code: int) -> VcpValue:
        """Read a non-table VCP feature, retrying on malformed replies."""
        request = build_get_vcp_packet(code)
        error = DdcError("No attempts made")
        for _ in range(max(1, self.retries)):
            self._write(request)
            time.sleep(self.reply_delay)
            try:
                data = self._dev.read(_REPLY_LENGTH) or b""
            except OSError as exc:
                raise DdcError(f"Read from {self.path} failed: {exc.strerror}") from exc
            try:
                return parse_get_vcp_reply(data, code)
            except DdcError as exc:
                log.debug("VCP 0x%02x read failed: %s", code, exc)
                error = exc
        raise error

    def set_vcp(self, code: int, value: int) -> None:
        """Write a non-table VCP feature."""
        self._write(build_set_vcp_packet(code, value))
        time.sleep(self.write_delay)

    def close(self) -> None:
        self._dev.close()

    def __enter__(self) -> I2cDdcMonitor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class DisplayController:
    """High-level monitor commands used by the clock.

    ``monitor`` may be ``None`` when no display is reachable: commands then
    raise :class:`DdcError` and the display is assumed to be on.
    """

    def __init__(self, monitor: Monitor | None) -> None:
        self.monitor = monitor

    def _require(self) -> Monitor:
        if self.monitor is None:
            raise DdcError("No DDC display is connected")
        return self.monitor

    def set_brightness(self, brightness: int) -> int:
        """Set the brightness percentage, bounded to 0..100; returns what was sent."""
        monitor = self._require()
        level = max(0, min(100, brightness))
        monitor.set_vcp(VCP_BRIGHTNESS, level)
        log.debug("Set brightness to %d", level)
        return level

    def set_input(self, input_code: int) -> None:
        """Select the monitor input, which also soft-wakes it."""
        self._require().set_vcp(VCP_INPUT_SOURCE, input_code)
        log.debug("Set display input to %d", input_code)

    def toggle_power(self) -> None:
        """Press the monitor's power button."""
        self._require().set_vcp(VCP_POWER_MODE, POWER_TOGGLE)

    def power_off(self) -> bool:
        """Turn the monitor off unless it already is; returns whether a command went out."""
        monitor = self._require()
        if not self.is_on():
            log.debug("Requested display to power off but it was already off")
            return False
        monitor.set_vcp(VCP_POWER_MODE, POWER_TOGGLE)
        return True

    def power_on(self) -> bool:
        """Turn the monitor on unless it already is; returns whether a command went out."""
        monitor = self._require()
        if self.is_on():
            log.debug("Requested display to power on but it was already on")
            return False
        monitor.set_vcp(VCP_POWER_MODE, POWER_TOGGLE)
        return True

    def is_on(self) -> bool:
        """Whether the monitor is fully on; unknown states count as on."""
        if self.monitor is None:
            return True
        try:
            power = self.monitor.get_vcp(VCP_POWER_MODE).sl
        except DdcError:
            return True
        if power == POWER_TOGGLE:
            return False
        # A soft-on monitor reports input 0, which counts as off.
        try:
            return self.monitor.get_vcp(VCP_INPUT_SOURCE).sl != 0
        except DdcError:
            return True

    def close(self) -> None:
        if self.monitor is not None:
            self.monitor.close()