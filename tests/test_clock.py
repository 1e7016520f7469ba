from datetime import datetime, timezone

import pytest

from sunclock.clock import ClockTime, Settings, SunClock, clock_time, format_clock
from sunclock.colors import sun_brightness
from sunclock.display import (
    POWER_TOGGLE,
    VCP_BRIGHTNESS,
    VCP_INPUT_SOURCE,
    VCP_POWER_MODE,
    DisplayController,
    VcpValue,
)
from sunclock.taskheap import Task, TaskCode

NOW = 1_700_000_000


class FakeMonitor:
    def __init__(self, power=1, input_source=3):
        self.power = power
        self.input_source = input_source
        self.writes = []
        self.closed = False

    def get_vcp(self, code):
        sl = self.power if code == VCP_POWER_MODE else self.input_source
        return VcpValue(code, 0, 0, 0xFF, 0, sl)

    def set_vcp(self, code, value):
        self.writes.append((code, value))
        if code == VCP_POWER_MODE:
            self.power = 1 if self.power == POWER_TOGGLE else POWER_TOGGLE
        elif code == VCP_INPUT_SOURCE:
            self.input_source = value

    def close(self):
        self.closed = True


def make_clock(monitor=None, settings=None):
    return SunClock(DisplayController(monitor), settings or Settings())


def drain(sun_clock):
    return [sun_clock.tasks.pop() for _ in range(len(sun_clock.tasks))]


def test_clock_time_epoch_is_midnight():
    assert clock_time(0, 0) == ClockTime(0, 0, 0)


def test_clock_time_from_datetime():
    moment = datetime(2024, 5, 6, 13, 45, 30, tzinfo=timezone.utc)
    assert clock_time(moment, 0) == ClockTime(13, 45, 30)


@pytest.mark.parametrize("offset", [-23, -7, 0, 5, 23])
def test_clock_time_offset_wraps_hours(offset):
    base = clock_time(NOW, 0)
    shifted = clock_time(NOW, offset)
    assert shifted.hour == (base.hour + offset) % 24
    assert (shifted.minute, shifted.second) == (base.minute, base.second)


def test_clock_time_fields_in_range():
    for step in range(0, 86400, 997):
        value = clock_time(NOW + step, -7)
        assert 0 <= value.hour <= 23
        assert 0 <= value.minute <= 59
        assert 0 <= value.second <= 59


@pytest.mark.parametrize(
    "hour, minute, leading, expected",
    [
        (0, 5, True, "12:05"),
        (13, 7, True, "01:07"),
        (13, 7, False, "1:07"),
        (12, 30, True, "12:30"),
    ],
)
def test_format_clock(hour, minute, leading, expected):
    assert format_clock(hour, minute, leading) == expected


def test_format_clock_morning_and_evening_match():
    for hour in range(12):
        assert format_clock(hour, 15, True) == format_clock(hour + 12, 15, True)


def test_settings_reject_bad_timezone():
    with pytest.raises(ValueError):
        Settings(timezone_offset=24)


def test_debug_settings_are_faster():
    debug = Settings.debug()
    normal = Settings()
    assert debug.brightness_update_freq < normal.brightness_update_freq
    assert debug.powercheck_update_freq < normal.powercheck_update_freq
    assert debug.set_brightness_on_start is False


def test_start_sets_brightness_and_schedules():
    monitor = FakeMonitor()
    settings = Settings()
    sun_clock = make_clock(monitor, settings)
    sun_clock.start(NOW, ClockTime(12, 0))
    assert monitor.writes == [(VCP_BRIGHTNESS, sun_brightness(12, 0))]
    assert sun_clock.current_brightness == sun_brightness(12, 0)
    assert drain(sun_clock) == [
        Task(NOW + settings.first_powercheck_delay, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR),
        Task(NOW + settings.first_brightness_delay, TaskCode.SET_BRIGHTNESS_AND_RESCHEDULE),
    ]


def test_start_without_poweroff_schedules_only_brightness():
    sun_clock = make_clock(FakeMonitor(), Settings(poweroff_on_zero_brightness=False))
    sun_clock.start(NOW, ClockTime(12, 0))
    assert [task.code for task in drain(sun_clock)] == [
        TaskCode.SET_BRIGHTNESS_AND_RESCHEDULE
    ]


def test_debug_start_does_not_touch_monitor():
    monitor = FakeMonitor()
    sun_clock = make_clock(monitor, Settings.debug())
    sun_clock.start(NOW, ClockTime(0, 0))
    assert monitor.writes == []
    assert len(sun_clock.tasks) == 2


def test_brightness_task_reschedules():
    monitor = FakeMonitor()
    settings = Settings()
    sun_clock = make_clock(monitor, settings)
    sun_clock.execute(Task(NOW, TaskCode.SET_BRIGHTNESS_AND_RESCHEDULE), NOW, ClockTime(12, 0))
    assert monitor.writes == [(VCP_BRIGHTNESS, sun_brightness(12, 0))]
    assert sun_clock.tasks.peek() == Task(
        NOW + settings.brightness_update_freq, TaskCode.SET_BRIGHTNESS_AND_RESCHEDULE
    )


def test_brightness_tracked_without_monitor():
    sun_clock = make_clock(None)
    sun_clock.execute(Task(NOW, TaskCode.SET_BRIGHTNESS), NOW, ClockTime(12, 0))
    assert sun_clock.current_brightness == sun_brightness(12, 0)
    assert len(sun_clock.tasks) == 0


def test_zero_brightness_turns_display_off():
    monitor = FakeMonitor()
    settings = Settings()
    sun_clock = make_clock(monitor, settings)
    sun_clock.current_brightness = 0
    sun_clock.tasks.push(NOW, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)
    done = sun_clock.run_due(NOW, ClockTime(2, 0))
    assert [task.code for task in done] == [
        TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR,
        TaskCode.DISPLAY_OFF_AND_RESCHEDULE,
    ]
    assert monitor.writes == [(VCP_POWER_MODE, POWER_TOGGLE)]
    assert sun_clock.power_check_in_progress is False
    assert drain(sun_clock) == [
        Task(NOW + settings.powercheck_update_freq, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)
    ]


def test_zero_brightness_with_display_already_off_sends_nothing():
    monitor = FakeMonitor(power=POWER_TOGGLE)
    sun_clock = make_clock(monitor)
    sun_clock.current_brightness = 0
    sun_clock.tasks.push(NOW, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)
    sun_clock.run_due(NOW, ClockTime(2, 0))
    assert monitor.writes == []


def test_nonzero_brightness_with_display_on_only_reschedules():
    monitor = FakeMonitor()
    settings = Settings()
    sun_clock = make_clock(monitor, settings)
    sun_clock.tasks.push(NOW, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)
    done = sun_clock.run_due(NOW, ClockTime(12, 0))
    assert [task.code for task in done] == [
        TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR,
        TaskCode.DISPLAY_ON_STEP1_AND_RESCHEDULE,
    ]
    assert monitor.writes == []
    assert drain(sun_clock) == [
        Task(NOW + settings.powercheck_update_freq, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)
    ]


def test_nonzero_brightness_wakes_display_in_two_steps():
    monitor = FakeMonitor(power=POWER_TOGGLE)
    settings = Settings()
    sun_clock = make_clock(monitor, settings)
    sun_clock.tasks.push(NOW, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)
    sun_clock.run_due(NOW, ClockTime(12, 0))
    assert monitor.writes == [(VCP_INPUT_SOURCE, settings.vcp_input_code)]
    step2 = NOW + settings.poweron_step_delay
    assert sun_clock.tasks.peek() == Task(step2, TaskCode.DISPLAY_ON_STEP2_AND_RESCHEDULE)

    sun_clock.run_due(step2, ClockTime(12, 0))
    assert monitor.writes[-1] == (VCP_POWER_MODE, POWER_TOGGLE)
    assert sun_clock.power_check_in_progress is False
    assert drain(sun_clock) == [
        Task(step2 + settings.poweron_brightness_delay, TaskCode.SET_BRIGHTNESS),
        Task(step2 + settings.powercheck_update_freq, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR),
    ]


def test_locked_power_check_is_deferred():
    sun_clock = make_clock(FakeMonitor())
    sun_clock.power_check_in_progress = True
    sun_clock.execute(Task(NOW, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR), NOW, ClockTime(1, 0))
    assert drain(sun_clock) == [Task(NOW + 1, TaskCode.CHECK_SHOULD_TOGGLE_DISPLAY_PWR)]


def test_toggle_steps():
    monitor = FakeMonitor()
    settings = Settings()
    sun_clock = make_clock(monitor, settings)
    sun_clock.execute(Task(NOW, TaskCode.DISPLAY_TOGGLE_STEP1), NOW, ClockTime(9, 0))
    assert monitor.writes == [(VCP_INPUT_SOURCE, settings.vcp_input_code)]
    step2 = sun_clock.tasks.pop()
    assert step2 == Task(NOW + settings.toggle_step_delay, TaskCode.DISPLAY_TOGGLE_STEP2)
    sun_clock.execute(step2, step2.scheduled_time, ClockTime(9, 0))
    assert monitor.writes[-1] == (VCP_POWER_MODE, POWER_TOGGLE)
    assert sun_clock.tasks.pop() == Task(
        step2.scheduled_time + settings.toggle_brightness_delay, TaskCode.SET_BRIGHTNESS
    )


def test_set_input_task_sends_input_code():
    monitor = FakeMonitor(input_source=0)
    settings = Settings(vcp_input_code=0x0F)
    sun_clock = make_clock(monitor, settings)
    sun_clock.execute(Task(NOW, TaskCode.SET_INPUT), NOW, ClockTime(9, 0))
    assert monitor.writes == [(VCP_INPUT_SOURCE, 0x0F)]


def test_run_due_leaves_future_tasks():
    sun_clock = make_clock(FakeMonitor())
    sun_clock.tasks.push(NOW + 10, TaskCode.NONE)
    assert sun_clock.run_due(NOW, ClockTime(9, 0)) == []
    assert len(sun_clock.tasks) == 1