"""Exceptions raised by the sun clock."""

from __future__ import annotations

__all__ = [
    "SunClockError",
    "FramebufferError",
    "FramebufferOpenError",
    "ScreenInfoError",
    "DdcError",
]


class SunClockError(Exception):
    """Base class for every error the clock raises."""


class FramebufferError(SunClockError):
    """The framebuffer could not be accessed."""


class FramebufferOpenError(FramebufferError):
    """The framebuffer device could not be opened."""

    def __init__(self, path: str, reason: str | None = None) -> None:
        message = f"Failed to open framebuffer device at {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path
        self.reason = reason


class ScreenInfoError(FramebufferError):
    """The screen information could not be read from the framebuffer."""

    def __init__(self, message: str = "Could not load screen info") -> None:
        super().__init__(message)


class DdcError(SunClockError):
    """A DDC/CI exchange with the monitor failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status