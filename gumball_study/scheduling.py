from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic time source.

    The token field and the session read time only through this interface,
    so tests can drive them frame by frame.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Wall clock used by the pygame shell."""

    def now(self) -> float:
        return time.monotonic()


class Animated(Protocol):
    @property
    def running(self) -> bool: ...
    def start(self) -> None: ...
    def stop(self) -> None: ...
    def update(self) -> None: ...


class StimulusSlot:
    """Holds the single animation allowed to tick at a time.

    Showing a new stimulus always stops the one before it.
    """

    def __init__(self) -> None:
        self._active: Animated | None = None

    @property
    def active(self) -> Animated | None:
        return self._active

    def show(self, stimulus: Animated) -> None:
        self.clear()
        self._active = stimulus
        stimulus.start()

    def clear(self) -> None:
        if self._active is not None:
            self._active.stop()
            self._active = None

    def update(self) -> None:
        if self._active is not None:
            self._active.update()
