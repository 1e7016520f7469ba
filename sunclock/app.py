"""Full-screen sunrise clock: the command that draws the clock and runs the schedule."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace

import pygame

from sunclock.clock import ClockTime, Settings, SunClock, clock_time, format_clock
from sunclock.colors import sun_color, text_color
from sunclock.display import DisplayController, I2cDdcMonitor
from sunclock.errors import DdcError, FramebufferError
from sunclock.framebuffer import Framebuffer

__all__ = ["parse_args", "text_position", "main"]

log = logging.getLogger(__name__)

_DEBUG_LABEL_SIZE = 40
_DEBUG_LABEL_COLOR = (253, 249, 0)


def _bus(value: str) -> int | str:
    return int(value) if value.isdigit() else value


def _int_any_base(value: str) -> int:
    return int(value, 0)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse the command line."""
    defaults = Settings()
    parser = argparse.ArgumentParser(
        prog="sunclock", description="Full-screen clock that follows the colour of the sun."
    )
    parser.add_argument(
        "--framebuffer", type=int, default=defaults.framebuffer_device,
        help="framebuffer device number used to find the screen size",
    )
    parser.add_argument(
        "--i2c-bus", type=_bus, default=None,
        help="I2C bus number or device path of the monitor's DDC channel",
    )
    parser.add_argument("--fps", type=int, default=None, help="frames per second")
    parser.add_argument("--text-size", type=int, default=defaults.text_size)
    parser.add_argument(
        "--timezone-offset", type=int, default=defaults.timezone_offset,
        help="hours added to UTC",
    )
    parser.add_argument(
        "--input-code", type=_int_any_base, default=defaults.vcp_input_code,
        help="VCP input source code that wakes the monitor",
    )
    parser.add_argument("--no-leading-zero", action="store_true")
    parser.add_argument(
        "--no-poweroff", action="store_true",
        help="keep the monitor powered when brightness reaches zero",
    )
    parser.add_argument(
        "--debug", action="store_true", help="sweep through a whole day in a few seconds"
    )
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)
    if not -24 < args.timezone_offset < 24:
        parser.error("--timezone-offset must be between -23 and 23")
    if args.fps is not None and args.fps <= 0:
        parser.error("--fps must be positive")
    return args


def text_position(text_width: int, text_size: int, x_res: int, y_res: int) -> tuple[int, int]:
    """Top-left corner that centres text of the given width and size on the screen."""
    return _half(x_res - text_width), _half(y_res - text_size)


def _half(value: int) -> int:
    return value // 2 if value >= 0 else -((-value) // 2)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    base = Settings.debug() if args.debug else Settings()
    return replace(
        base,
        framebuffer_device=args.framebuffer,
        frame_rate=args.fps or base.frame_rate,
        text_size=args.text_size,
        hour_leading_zero=not args.no_leading_zero,
        vcp_input_code=args.input_code,
        timezone_offset=args.timezone_offset,
        poweroff_on_zero_brightness=not args.no_poweroff,
    )


def _should_close() -> bool:
    for event in pygame.event.get():
        if event.type == pygame.QUIT:
            return True
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            return True
    return False


def _draw(screen, font, settings: Settings, current: ClockTime, x_res: int, y_res: int) -> None:
    screen.fill(tuple(sun_color(current.hour, current.minute))[:3])
    text = format_clock(current.hour, current.minute, settings.hour_leading_zero)
    surface = font.render(text, True, tuple(text_color(current.hour, current.minute))[:3])
    screen.blit(
        surface, text_position(surface.get_width(), settings.text_size, x_res, y_res)
    )


def _run_live(screen, font, ticker, sun_clock: SunClock, x_res: int, y_res: int) -> None:
    settings = sun_clock.settings
    print("Sun Clock is now running. Press ESC to quit.")
    now = time.time()
    sun_clock.start(int(now), clock_time(now, settings.timezone_offset))
    while not _should_close():
        now = time.time()
        current = clock_time(now, settings.timezone_offset)
        _draw(screen, font, settings, current, x_res, y_res)
        sun_clock.run_due(int(now), current)
        pygame.display.flip()
        ticker.tick(settings.frame_rate)


def _run_debug(screen, font, ticker, sun_clock: SunClock, x_res: int, y_res: int) -> None:
    settings = sun_clock.settings
    label_font = pygame.font.Font(None, _DEBUG_LABEL_SIZE)
    print("Sun Clock is running in debug mode. Press ESC to quit.")
    sun_clock.start(int(time.time()), ClockTime(0, 0))
    for hour in range(24):
        for minute in range(60):
            if _should_close():
                return
            simulated = ClockTime(hour, minute)
            _draw(screen, font, settings, simulated, x_res, y_res)
            screen.blit(label_font.render("DEBUG MODE", True, _DEBUG_LABEL_COLOR), (20, 20))
            now = int(time.time())
            sun_clock.run_due(now, simulated)
            if sun_clock.tasks:
                print(f"Next task due in {sun_clock.tasks.peek().scheduled_time - now} seconds")
            pygame.display.flip()
            ticker.tick(settings.frame_rate)


def _run(settings: Settings, display: DisplayController, x_res: int, y_res: int, debug: bool) -> None:
    pygame.init()
    try:
        screen = pygame.display.set_mode((x_res, y_res))
        pygame.display.set_caption("Clock Window")
        font = pygame.font.Font(None, settings.text_size)
        ticker = pygame.time.Clock()
        sun_clock = SunClock(display, settings)
        runner = _run_debug if debug else _run_live
        runner(screen, font, ticker, sun_clock, x_res, y_res)
    finally:
        pygame.quit()


def main(argv: list[str] | None = None) -> int:
    """Run the clock until ESC is pressed; returns the exit status."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    settings = _settings_from_args(args)

    monitor = None
    if args.i2c_bus is not None:
        try:
            monitor = I2cDdcMonitor(args.i2c_bus)
        except DdcError as exc:
            print(f"ERROR: Unable to connect to DDC display: {exc}", file=sys.stderr)
            return 1
    else:
        log.warning("No DDC bus given; monitor brightness and power will not be controlled")
    display = DisplayController(monitor)

    try:
        try:
            with Framebuffer(settings.framebuffer_device) as framebuffer:
                x_res, y_res = framebuffer.x_res, framebuffer.y_res
        except FramebufferError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
        _run(settings, display, x_res, y_res, args.debug)
    finally:
        display.close()
    return 0