"""A time-ordered queue of scheduled display tasks."""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator

from sunclock.errors import SunClockError

__all__ = [
    "TaskCode",
    "Task",
    "TaskHeap",
    "HeapUnderflowError",
    "is_valid_task_code",
    "task_code_name",
]

log = logging.getLogger(__name__)


class TaskCode(IntEnum):
    """Kinds of work the scheduler can run."""

    NONE = 0
    SET_INPUT = 1
    CHECK_SHOULD_TOGGLE_DISPLAY_PWR = 2
    DISPLAY_OFF_AND_RESCHEDULE = 3
    DISPLAY_OFF = 4
    DISPLAY_ON_STEP1_AND_RESCHEDULE = 5
    DISPLAY_ON_STEP1 = 6
    DISPLAY_ON_STEP2_AND_RESCHEDULE = 7
    DISPLAY_ON_STEP2 = 8
    DISPLAY_TOGGLE_STEP1 = 9
    DISPLAY_TOGGLE_STEP2 = 10
    SET_BRIGHTNESS_AND_RESCHEDULE = 11
    SET_BRIGHTNESS = 12


class HeapUnderflowError(SunClockError, IndexError):
    """Raised when taking a task from an empty heap."""


def is_valid_task_code(code: object) -> bool:
    """Whether ``code`` names one of the known task kinds."""
    if isinstance(code, bool) or not isinstance(code, int):
        return False
    return TaskCode.NONE <= code <= TaskCode.SET_BRIGHTNESS


def task_code_name(code: object) -> str:
    """Readable name of a task code, or ``"INVALID CODE"``."""
    if not is_valid_task_code(code):
        return "INVALID CODE"
    return TaskCode(code).name


@dataclass
class Task:
    """A unit of work due at ``scheduled_time`` (seconds since the epoch)."""

    scheduled_time: int = -1
    code: TaskCode = TaskCode.NONE


class TaskHeap:
    """Min-heap of tasks keyed on their scheduled time; ties run in push order."""

    def __init__(self) -> None:
        self._heap: list[tuple[int, int, Task]] = []
        self._counter = itertools.count()

    def push(self, scheduled_time: int, code: TaskCode | int) -> Task:
        """Schedule a task and return it."""
        if not is_valid_task_code(code):
            raise ValueError("Attempted to create task with invalid task type")
        task = Task(scheduled_time, TaskCode(code))
        heapq.heappush(self._heap, (scheduled_time, next(self._counter), task))
        log.debug("Pushed task {%s, %s}", scheduled_time, task.code.name)
        return task

    def pop(self) -> Task:
        """Remove and return the earliest task."""
        if not self._heap:
            raise HeapUnderflowError("Heap underflow")
        task = heapq.heappop(self._heap)[2]
        log.debug("Popped task {%s, %s}", task.scheduled_time, task.code.name)
        return task

    def peek(self) -> Task:
        """Return the earliest task without removing it."""
        if not self._heap:
            raise HeapUnderflowError("Heap underflow")
        return self._heap[0][2]

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def pop_due(self, now: int) -> Iterator[Task]:
        """Yield and remove tasks due at or before ``now``.

        Tasks pushed while iterating are considered too, so work scheduled
        for an earlier time runs in the same pass.
        """
        while self._heap and self._heap[0][0] <= now:
            yield self.pop()