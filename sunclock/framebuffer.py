"""Read the resolution and pixel format of a Linux framebuffer device."""

from __future__ import annotations

import fcntl
import logging
import os
import struct
from dataclasses import dataclass
from types import TracebackType

from sunclock.errors import FramebufferError, FramebufferOpenError, ScreenInfoError

__all__ = [
    "DEVICE_PREFIX",
    "FBIOGET_VSCREENINFO",
    "SCREENINFO_SIZE",
    "Bitfield",
    "ScreenInfo",
    "Framebuffer",
    "parse_screen_info",
    "device_path",
]

log = logging.getLogger(__name__)

DEVICE_PREFIX = "/dev/fb"
FBIOGET_VSCREENINFO = 0x4600

# struct fb_var_screeninfo: forty 32-bit unsigned fields, the last four reserved.
_SCREENINFO = struct.Struct("=40I")
SCREENINFO_SIZE = _SCREENINFO.size


@dataclass(frozen=True)
class Bitfield:
    """Position of one colour channel inside a pixel."""

    offset: int
    length: int
    msb_right: int


@dataclass(frozen=True)
class ScreenInfo:
    """Variable screen information reported by the framebuffer driver."""

    xres: int
    yres: int
    xres_virtual: int
    yres_virtual: int
    xoffset: int
    yoffset: int
    bits_per_pixel: int
    grayscale: int
    red: Bitfield
    green: Bitfield
    blue: Bitfield
    transp: Bitfield
    nonstd: int
    activate: int
    height: int
    width: int
    accel_flags: int
    pixclock: int
    left_margin: int
    right_margin: int
    upper_margin: int
    lower_margin: int
    hsync_len: int
    vsync_len: int
    sync: int
    vmode: int
    rotate: int
    colorspace: int


def parse_screen_info(data: bytes | bytearray | memoryview) -> ScreenInfo:
    """Decode a raw ``fb_var_screeninfo`` structure."""
    if len(data) < SCREENINFO_SIZE:
        raise ScreenInfoError(
            f"Screen info needs {SCREENINFO_SIZE} bytes, got {len(data)}"
        )
    fields = _SCREENINFO.unpack_from(data)
    head = fields[:8]
    red, green, blue, transp = (
        Bitfield(*fields[start : start + 3]) for start in range(8, 20, 3)
    )
    tail = fields[20:36]
    return ScreenInfo(*head, red, green, blue, transp, *tail)


def device_path(number: int) -> str:
    """Path of framebuffer device ``number``."""
    return f"{DEVICE_PREFIX}{number}"


class Framebuffer:
    """An open framebuffer device together with its screen information."""

    def __init__(self, number: int) -> None:
        self._fd = -1
        if number < 0:
            raise FramebufferError(
                "An invalid buffer device number was given, could not open"
            )
        self.number = number
        self.path = device_path(number)
        try:
            self._fd = os.open(self.path, os.O_RDWR)
        except OSError as exc:
            raise FramebufferOpenError(self.path, exc.strerror) from exc
        log.debug("Opened framebuffer device at %s with descriptor %d", self.path, self._fd)
        try:
            self._info = self._load_screen_info()
        except BaseException:
            self.close()
            raise

    def _load_screen_info(self) -> ScreenInfo:
        buffer = bytearray(SCREENINFO_SIZE)
        try:
            fcntl.ioctl(self._fd, FBIOGET_VSCREENINFO, buffer, True)
        except OSError as exc:
            raise ScreenInfoError(f"Could not load screen info: {exc.strerror}") from exc
        info = parse_screen_info(buffer)
        log.debug("Loaded screen data. Res: %dx%d", info.xres, info.yres)
        return info

    def close(self) -> None:
        """Release the device; the cached screen information stays readable."""
        if self._fd != -1:
            os.close(self._fd)
            self._fd = -1

    def __enter__(self) -> Framebuffer:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def x_res(self) -> int:
        """Visible horizontal resolution in pixels."""
        return self._info.xres

    @property
    def y_res(self) -> int:
        """Visible vertical resolution in pixels."""
        return self._info.yres

    @property
    def bits_per_pixel(self) -> int:
        """Colour depth of the screen."""
        return self._info.bits_per_pixel

    @property
    def screen_info(self) -> ScreenInfo:
        """Everything the driver reported about the screen."""
        return self._info