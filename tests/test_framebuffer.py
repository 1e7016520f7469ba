import fcntl
import struct

import pytest

from sunclock import framebuffer
from sunclock.errors import FramebufferError, FramebufferOpenError, ScreenInfoError
from sunclock.framebuffer import (
    FBIOGET_VSCREENINFO,
    SCREENINFO_SIZE,
    Bitfield,
    Framebuffer,
    device_path,
    parse_screen_info,
)


def _raw_info(xres=1920, yres=1080, bpp=32):
    values = list(range(100, 140))
    values[0] = xres
    values[1] = yres
    values[6] = bpp
    return struct.pack("=40I", *values)


def test_device_path_uses_dev_fb():
    assert device_path(0) == "/dev/fb0"


def test_parse_screen_info_reads_fields():
    info = parse_screen_info(_raw_info(800, 480, 16))
    assert info.xres == 800
    assert info.yres == 480
    assert info.bits_per_pixel == 16
    assert info.xres_virtual == 102
    assert info.red == Bitfield(108, 109, 110)
    assert info.transp == Bitfield(117, 118, 119)
    assert info.nonstd == 120
    assert info.colorspace == 135


def test_parse_screen_info_accepts_bytearray():
    info = parse_screen_info(bytearray(_raw_info(640, 360)))
    assert (info.xres, info.yres) == (640, 360)


def test_parse_screen_info_rejects_short_data():
    with pytest.raises(ScreenInfoError):
        parse_screen_info(b"\x00" * (SCREENINFO_SIZE - 1))


def test_negative_number_raises():
    with pytest.raises(FramebufferError):
        Framebuffer(-1)


def test_missing_device_raises_open_error(monkeypatch, tmp_path):
    monkeypatch.setattr(framebuffer, "DEVICE_PREFIX", str(tmp_path / "fb"))
    with pytest.raises(FramebufferOpenError) as info:
        Framebuffer(3)
    assert info.value.path == str(tmp_path / "fb3")


def test_non_framebuffer_file_raises_screen_info_error(monkeypatch, tmp_path):
    (tmp_path / "fb0").write_bytes(b"")
    monkeypatch.setattr(framebuffer, "DEVICE_PREFIX", str(tmp_path / "fb"))
    with pytest.raises(ScreenInfoError):
        Framebuffer(0)


def test_open_reads_screen_info(monkeypatch, tmp_path):
    (tmp_path / "fb1").write_bytes(b"")
    monkeypatch.setattr(framebuffer, "DEVICE_PREFIX", str(tmp_path / "fb"))
    requests = []

    def fake_ioctl(fd, request, buffer, mutate=True):
        requests.append(request)
        buffer[:] = _raw_info(1280, 720, 24)
        return 0

    monkeypatch.setattr(fcntl, "ioctl", fake_ioctl)
    with Framebuffer(1) as fb:
        assert fb.x_res == 1280
        assert fb.y_res == 720
        assert fb.bits_per_pixel == 24
        assert fb.screen_info.xres == 1280
    assert requests == [FBIOGET_VSCREENINFO]
    assert fb.x_res == 1280


def test_close_is_idempotent(monkeypatch, tmp_path):
    (tmp_path / "fb2").write_bytes(b"")
    monkeypatch.setattr(framebuffer, "DEVICE_PREFIX", str(tmp_path / "fb"))

    def fake_ioctl(fd, request, buffer, mutate=True):
        buffer[:] = _raw_info(100, 50)
        return 0

    monkeypatch.setattr(fcntl, "ioctl", fake_ioctl)
    fb = Framebuffer(2)
    fb.close()
    fb.close()
    assert fb.y_res == 50