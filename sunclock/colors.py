"""Hour-by-hour colour and brightness curves for the sun clock."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator

__all__ = [
    "Color",
    "SUN_COLORS",
    "TEXT_COLORS",
    "SUN_BRIGHTNESS",
    "sun_color",
    "text_color",
    "sun_brightness",
]


@dataclass(frozen=True)
class Color:
    """An 8-bit RGBA colour."""

    r: int
    g: int
    b: int
    a: int = 255

    def __iter__(self) -> Iterator[int]:
        return iter((self.r, self.g, self.b, self.a))


SUN_COLORS: tuple[Color, ...] = (
    Color(0, 0, 0),  # 0 h
    Color(0, 0, 0),
    Color(0, 0, 0),
    Color(0, 0, 0),
    Color(0, 0, 0),
    Color(0, 25, 50),
    Color(25, 75, 150),
    Color(50, 125, 200),
    Color(200, 255, 255),
    Color(210, 255, 255),
    Color(215, 255, 255),
    Color(220, 255, 255),
    Color(225, 255, 255),  # 12 h
    Color(225, 225, 225),
    Color(200, 225, 175),
    Color(200, 200, 150),
    Color(200, 182, 133),
    Color(200, 175, 125),
    Color(175, 75, 75),
    Color(150, 50, 50),
    Color(100, 33, 33),
    Color(50, 10, 10),
    Color(15, 0, 0),
    Color(0, 0, 0),  # 23 h
)

TEXT_COLORS: tuple[Color, ...] = (
    Color(100, 0, 0),  # 0 h
    Color(100, 0, 0),
    Color(100, 0, 0),
    Color(100, 0, 0),
    Color(100, 0, 0),
    Color(100, 0, 0),
    Color(50, 0, 0),
    Color(25, 0, 0),
    Color(0, 0, 0),
    Color(0, 0, 0),
    Color(0, 0, 0),
    Color(0, 0, 0),
    Color(0, 0, 0),  # 12 h
    Color(0, 0, 0),
    Color(0, 0, 0),
    Color(0, 7, 7),
    Color(25, 30, 30),
    Color(50, 50, 50),
    Color(125, 75, 75),
    Color(150, 100, 100),
    Color(125, 75, 75),
    Color(100, 30, 30),
    Color(100, 7, 7),
    Color(100, 0, 0),  # 23 h
)

SUN_BRIGHTNESS: tuple[int, ...] = (
    0, 0, 0, 0, 0, 15, 25, 75,
    100, 100, 100, 100, 100, 100, 100, 100,
    100, 75, 50, 25, 15, 1, 1, 1,
)


def _f32(value: float) -> float:
    """Round a value to single precision."""
    return struct.unpack("f", struct.pack("f", value))[0]


def _bound(hour: int, minute: int) -> tuple[int, int]:
    if hour < 0 or hour > 23:
        hour = 0
    if minute < 0 or minute > 60:
        minute = 0
    return hour, minute


def _blend(this: int, following: int, ratio: float) -> int:
    # Single-precision arithmetic, truncated back to an 8-bit value.
    return int(_f32(this - _f32((this - following) * ratio)))


def _blend_colors(table: tuple[Color, ...], hour: int, minute: int) -> Color:
    hour, minute = _bound(hour, minute)
    this = table[hour]
    following = table[(hour + 1) % 24]
    ratio = _f32(minute / 60.0)
    return Color(
        _blend(this.r, following.r, ratio),
        _blend(this.g, following.g, ratio),
        _blend(this.b, following.b, ratio),
        this.a,
    )


def sun_color(hour: int, minute: int) -> Color:
    """Background colour for the given local time, blended between hours."""
    return _blend_colors(SUN_COLORS, hour, minute)


def text_color(hour: int, minute: int) -> Color:
    """Clock text colour for the given local time, blended between hours."""
    return _blend_colors(TEXT_COLORS, hour, minute)


def sun_brightness(hour: int, minute: int) -> int:
    """Monitor brightness percentage for the given local time."""
    hour, minute = _bound(hour, minute)
    ratio = _f32(minute / 60.0)
    return _blend(SUN_BRIGHTNESS[hour], SUN_BRIGHTNESS[(hour + 1) % 24], ratio)