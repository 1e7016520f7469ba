# sunclock

sunclock is a full-screen wall clock for a small display that is always on,
such as a Raspberry Pi with a monitor attached. The background colour
follows the sky through the day. It is black at night, blue at dawn, white
in daylight and red in the evening. The clock text changes colour too, so it
stays readable against the background.

sunclock can also control the monitor over DDC/CI on a Linux I²C bus. It
sets the panel brightness to suit the time of day. When the brightness
reaches zero it can turn the monitor off, and later turn it back on.

## Installation

```
pip install sunclock
```

To run the tests:

```
pip install "sunclock[test]"
pytest
```

## Running

```
sunclock
```

The window size comes from the Linux framebuffer device (`/dev/fb0` by
default). The time is drawn in 12-hour `HH:MM` form in the middle of the
window. Press ESC or close the window to quit.

Options:

- `--framebuffer N`: the framebuffer device number used to find the screen
  size. The default is 0.
- `--i2c-bus BUS`: the I²C bus number, or a device path, for the monitor's
  DDC channel. For example, `--i2c-bus 1` opens `/dev/i2c-1`. Without this
  option the monitor's brightness and power are not controlled.
- `--fps N`: frames per second. The default is 1, or 60 with `--debug`.
- `--text-size N`: the font size of the clock text. The default is 250.
- `--timezone-offset H`: whole hours added to UTC, from -23 to 23. The
  default is -7.
- `--input-code CODE`: the VCP input-source code used to wake the monitor.
  It accepts decimal or `0x` hex. The default is `0x03`.
- `--no-leading-zero`: drop the zero in front of one-digit hours.
- `--no-poweroff`: do not switch the monitor off when the brightness is zero.
- `--debug`: go through a whole simulated day, one minute per frame, with a
  "DEBUG MODE" label and faster scheduling.
- `--verbose`: log at debug level.

The command exits with status 1 if it cannot open the framebuffer device or
the DDC bus.

## How it works

- `sunclock.colors` holds the hourly tables `SUN_COLORS`, `TEXT_COLORS` and
  `SUN_BRIGHTNESS`. The functions `sun_color`, `text_color` and
  `sun_brightness` blend each hour's value toward the next hour's value
  according to the minute. Hours outside 0–23 and minutes outside 0–60 are
  treated as 0.
- `sunclock.taskheap` is a time-ordered scheduler. `TaskHeap.push` stores a
  `Task` with a `TaskCode` and a scheduled time. `peek` and `pop` return the
  earliest task and raise `HeapUnderflowError` when the heap is empty.
  `pop_due(now)` yields every task that is due.
- `sunclock.framebuffer` opens a framebuffer device as a `Framebuffer`.
  `Framebuffer` is a context manager and exposes `x_res`, `y_res`,
  `bits_per_pixel` and the full `screen_info`. `parse_screen_info` decodes a
  raw `fb_var_screeninfo` structure.
- `sunclock.display` builds and parses DDC/CI VCP packets
  (`build_set_vcp_packet`, `build_get_vcp_packet`, `parse_get_vcp_reply`).
  `I2cDdcMonitor` talks to the monitor through an I²C device.
  `DisplayController` adds `set_brightness` (bounded to 0–100), `set_input`,
  `toggle_power`, `power_on`, `power_off` and `is_on`. If no monitor is
  given, the commands raise `DdcError` and `is_on` reports that the display
  is on.
- `sunclock.clock` converts a timestamp to a `ClockTime` with `clock_time`
  and formats it with `format_clock`. `SunClock` runs the scheduled tasks.
  With the default `Settings` it refreshes the brightness every 30 minutes
  and checks every 15 minutes whether the monitor should be powered on or
  off. Failed DDC commands are logged and do not stop the clock.
- `sunclock.app` contains `main`, which draws the clock with pygame and runs
  the schedule.

All errors derive from `sunclock.errors.SunClockError`.

## Library use

```python
from sunclock.colors import sun_color, sun_brightness
from sunclock.clock import format_clock

print(sun_color(6, 30))          # Color(r=37, g=100, b=175, a=255)
print(sun_brightness(18, 0))     # 50
print(format_clock(9, 5, True))  # "09:05"
```

## Limitations

- The clock opens a pygame window. It does not draw into the framebuffer
  device; the framebuffer is used only to read the screen size.
- The time zone is a fixed hour offset from UTC. Daylight saving time is not
  taken into account.
- Monitor control works only through a Linux I²C device given with
  `--i2c-bus`. The monitor must support DDC/CI.