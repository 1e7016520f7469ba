"""Clock time keeping and the scheduler that drives the monitor through the day."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from sunclock.colors import sun_brightness
from sunclock.display import DisplayController
from sunclock.errors import DdcError
from sunclock.taskheap import Task, TaskCode, TaskHeap, is_valid_task_code

__all__ = [
    "SECONDS_PER_DAY",
    "ClockTime",
    "Settings",
    "SunClock",
    "clock_time",
    "format_clock",
]

log = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class ClockTime:
    """A local wall-clock time of day."""

    hour: int
    minute: int
    second: int = 0


def clock_time(now: float | datetime, timezone_offset: int) -> ClockTime:
    """Time of day for ``now`` (seconds since the epoch, or a datetime) shifted by whole hours."""
    if isinstance(now, datetime):
        now = now.timestamp()
    seconds = math.floor(now) % SECONDS_PER_DAY
    hour, rest = divmod(seconds, 3600)
    minute, second = divmod(rest, 60)
    hour += timezone_offset
    if hour < 0:
        hour += 24
    if hour > 23:
        hour -= 24
    return ClockTime(hour, minute, second)


def format_clock(hour: int, minute: int, leading_zero: bool) -> str:
    """Twelve-hour ``H:MM`` text, with the hour zero-padded when ``leading_zero`` is set."""
    twelve_hour = hour % 12 or 12
    hour_text = f"{twelve_hour:02d}" if leading_zero else str(twelve_hour)
    return f"{hour_text}:{minute:02d}"


@dataclass(frozen=True)
class Settings:
    """Tunables for drawing and for monitor control; durations are in seconds."""

    framebuffer_device: int = 0
    frame_rate: int = 1
    text_size: int = 250
    hour_leading_zero: bool = True
    vcp_input_code: int = 0x03  # DVI-D
    timezone_offset: int = -7
    poweroff_on_zero_brightness: bool = True
    brightness_update_freq: int = 30 * 60
    powercheck_update_freq: int = 15 * 60
    poweron_step_delay: int = 2
    poweron_brightness_delay: int = 2
    toggle_step_delay: int = 2
    toggle_brightness_delay: int = 2
    first_brightness_delay: int = 30 * 60
    first_powercheck_delay: int = 15 * 60
    set_brightness_on_start: bool = True

    def __post_init__(self) -> None:
        if not -24 < self.timezone_offset < 24:
            raise ValueError("timezone_offset must be a valid timezone")

    @classmethod
    def debug(cls, **overrides: object) -> Settings:
        """Settings for the fast day-sweep mode."""
        base = cls(
            frame_rate=60,
            brightness_update_freq=5,
            powercheck_update_freq=5,
            first_brightness_delay=2,
            first_powercheck_delay=1,
            set_brightness_on_start=False,
        )
        return replace(base, **overrides)


class SunClock:
    """Runs scheduled brightness and power tasks against a monitor."""

    def __init__(self, display: DisplayController, settings: Settings | None = None) -> None:
        self.display = display
        self.settings = settings if settings is not None else Settings()
        self.tasks = TaskHeap()
        self.current_brightness = 1
        self.power_check_in_progress = False
        self._handlers: dict[TaskCode, Callable[[int, ClockTime], None]] = {
            TaskCode.NONE: self._nothing,
            TaskCode.SET_INPUT: self._set_input,
            TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR: self._check_power,
            TaskCode.DISPLAY_OFF_AND_RESCHEDULE: self._off_and_reschedule,
            TaskCode.DISPLAY_OFF: self._off,
            TaskCode.DISPLAY_ON_STEP1_AND_RESCHEDULE: self._on_step1_and_reschedule,
            TaskCode.DISPLAY_ON_STEP1: self._on_step1,
            TaskCode.DISPLAY_ON_STEP2_AND_RESCHEDULE: self._on_step2_and_reschedule,
            TaskCode.DISPLAY_ON_STEP2: self._on_step2,
            TaskCode.DISPLAY_TOGGLE_STEP1: self._toggle_step1,
            TaskCode.DISPLAY_TOGGLE_STEP2: self._toggle_step2,
            TaskCode.SET_BRIGHTNESS_AND_RESCHEDULE: self._brightness_and_reschedule,
            TaskCode.SET_BRIGHTNESS: self._brightness,
        }

    def start(self, now: int, clock: ClockTime) -> None:
        """Apply the starting brightness and schedule the recurring checks."""
        now = int(now)
        if self.settings.set_brightness_on_start:
            self._apply_brightness(clock)
        self.tasks.push(
            now + self.settings.first_brightness_delay,
            TaskCode.SET_BRIGHTNESS_AND_RESCHEDULE,
        )
        if self.settings.poweroff_on_zero_brightness:
            self.tasks.push(
                now + self.settings.first_powercheck_delay,
                TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR,
            )

    def run_due(self, now: int, clock: ClockTime) -> list[Task]:
        """Run every task due by ``now``; returns the tasks run, in order."""
        done = []
        for task in self.tasks.pop_due(int(now)):
            self.execute(task, now, clock)
            done.append(task)
        return done

    def execute(self, task: Task, now: int, clock: ClockTime) -> None:
        """Carry out one task; ``clock`` is the time the brightness follows."""
        if not is_valid_task_code(task.code):
            log.error("Attempted to run invalid task!")
            return
        self._handlers[TaskCode(task.code)](int(now), clock)

    def _ddc(self, action: Callable[..., object], *args: int) -> None:
        try:
            action(*args)
        except DdcError as exc:
            log.warning("DDC command failed: %s", exc)

    def _reschedule_check(self, now: int) -> None:
        self.tasks.push(
            now + self.settings.powercheck_update_freq,
            TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR,
        )
        self.power_check_in_progress = False

    def _apply_brightness(self, clock: ClockTime) -> None:
        target = sun_brightness(clock.hour, clock.minute)
        self._ddc(self.display.set_brightness, target)
        self.current_brightness = target

    def _nothing(self, now: int, clock: ClockTime) -> None:
        pass

    def _set_input(self, now: int, clock: ClockTime) -> None:
        self._ddc(self.display.set_input, self.settings.vcp_input_code)

    def _check_power(self, now: int, clock: ClockTime) -> None:
        if self.power_check_in_progress:
            self.tasks.push(now + 1, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)
            return
        self.power_check_in_progress = True
        log.debug("Checking display power; brightness is %d%%", self.current_brightness)
        if self.current_brightness:
            self.tasks.push(0, TaskCode.DISPLAY_ON_STEP1_AND_RESCHEDULE)
        else:
            self.tasks.push(0, TaskCode.DISPLAY_OFF_AND_RESCHEDULE)

    def _off_and_reschedule(self, now: int, clock: ClockTime) -> None:
        self._reschedule_check(now)
        self._off(now, clock)

    def _off(self, now: int, clock: ClockTime) -> None:
        self._ddc(self.display.power_off)

    def _on_step1_and_reschedule(self, now: int, clock: ClockTime) -> None:
        if self.display.is_on():
            self._reschedule_check(now)
            log.debug("Requested display to power on but it was already on")
            return
        self._set_input(now, clock)
        self.tasks.push(
            now + self.settings.poweron_step_delay,
            TaskCode.DISPLAY_ON_STEP2_AND_RESCHEDULE,
        )

    def _on_step1(self, now: int, clock: ClockTime) -> None:
        self._set_input(now, clock)
        self.tasks.push(now + self.settings.poweron_step_delay, TaskCode.DISPLAY_ON_STEP2)

    def _on_step2_and_reschedule(self, now: int, clock: ClockTime) -> None:
        self._reschedule_check(now)
        self._on_step2(now, clock)

    def _on_step2(self, now: int, clock: ClockTime) -> None:
        self._ddc(self.display.power_on)
        self.tasks.push(
            now + self.settings.poweron_brightness_delay, TaskCode.SET_BRIGHTNESS
        )

    def _toggle_step1(self, now: int, clock: ClockTime) -> None:
        self._set_input(now, clock)
        self.tasks.push(
            now + self.settings.toggle_step_delay, TaskCode.DISPLAY_TOGGLE_STEP2
        )

    def _toggle_step2(self, now: int, clock: ClockTime) -> None:
        self._ddc(self.display.toggle_power)
        self.tasks.push(
            now + self.settings.toggle_brightness_delay, TaskCode.SET_BRIGHTNESS
        )

    def _brightness_and_reschedule(self, now: int, clock: ClockTime) -> None:
        self.tasks.push(
            now + self.settings.brightness_update_freq,
            TaskCode.SET_BRIGHTNESS_AND_RESCHEDULE,
        )
        self._apply_brightness(clock)

    def _brightness(self, now: int, clock: ClockTime) -> None:
        self._apply_brightness(clock)