# -*- coding: utf-8 -*-
########################
# timing_model.py
########################
# Purpose:
# - Clock sources for gameplay. The clock is the single source of truth for song time.
# - TimingModel is a manually driven clock (tests, simulation, syncing from an external player position).
# - MonotonicClock follows the wall clock while playing (interactive driver).
#
# Design notes:
# - Gameplay code only reads current_time_seconds(). It never keeps its own wall clock.
# - No Qt usage. Keep this module pure and deterministic.
# - Time never runs while paused, and is clamped to non-negative.
#
########################
# Interfaces:
# Public protocols:
# - Clock
#   - current_time_seconds() -> float
#   - is_playing() -> bool
#   - play() -> None
#   - pause() -> None
#   - seek(seconds: float) -> None
#
# Public classes:
# - class TimingModel (Clock)
#   - advance(elapsed_seconds: float) -> None
#   - update_player_time_seconds(player_time_seconds: float) -> None
# - class MonotonicClock (Clock)
#   - __init__(time_source: Callable[[], float] = time.monotonic)
#
# Outputs:
# - song time consumed by SessionController.tick and the judgement path.
#
########################

from __future__ import annotations

import time
from typing import Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def current_time_seconds(self) -> float: ...

    def is_playing(self) -> bool: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...


class TimingModel:
    def __init__(self) -> None:
        self._song_time_seconds = 0.0
        self._is_playing = False

    def current_time_seconds(self) -> float:
        return float(self._song_time_seconds)

    def is_playing(self) -> bool:
        return bool(self._is_playing)

    def play(self) -> None:
        self._is_playing = True

    def pause(self) -> None:
        self._is_playing = False

    def seek(self, seconds: float) -> None:
        self._song_time_seconds = max(0.0, float(seconds))

    def advance(self, elapsed_seconds: float) -> None:
        # A paused player does not move, whatever the caller says.
        if not self._is_playing:
            return
        value = float(elapsed_seconds)
        if value <= 0.0:
            return
        self._song_time_seconds += value

    def update_player_time_seconds(self, player_time_seconds: float) -> None:
        value = float(player_time_seconds)
        if value < 0.0:
            value = 0.0
        self._song_time_seconds = value


class MonotonicClock:
    def __init__(self, time_source: Callable[[], float] = time.monotonic) -> None:
        self._time_source = time_source
        self._base_seconds = 0.0
        self._started_at: Optional[float] = None

    def current_time_seconds(self) -> float:
        if self._started_at is None:
            return float(self._base_seconds)
        elapsed = float(self._time_source()) - self._started_at
        return float(self._base_seconds + max(0.0, elapsed))

    def is_playing(self) -> bool:
        return self._started_at is not None

    def play(self) -> None:
        if self._started_at is None:
            self._started_at = float(self._time_source())

    def pause(self) -> None:
        if self._started_at is None:
            return
        self._base_seconds = self.current_time_seconds()
        self._started_at = None

    def seek(self, seconds: float) -> None:
        self._base_seconds = max(0.0, float(seconds))
        if self._started_at is not None:
            self._started_at = float(self._time_source())


def _run_unit_tests() -> None:
    model = TimingModel()
    model.advance(1.0)
    assert model.current_time_seconds() == 0.0

    model.play()
    model.advance(1.5)
    assert abs(model.current_time_seconds() - 1.5) < 1e-9

    model.update_player_time_seconds(-5.0)
    assert model.current_time_seconds() == 0.0

    fake_now = [10.0]
    clock = MonotonicClock(lambda: fake_now[0])
    clock.play()
    fake_now[0] = 12.0
    clock.pause()
    fake_now[0] = 20.0
    assert abs(clock.current_time_seconds() - 2.0) < 1e-9


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_model.py: ok")
