# -*- coding: utf-8 -*-
########################
# timers.py
########################
# Purpose:
# - Cooperative timers for the single threaded engine.
# - Countdown backs each active note's expiry. IntervalTicker backs the scheduler poll.
#
# Design notes:
# - No wall clock here. Timers only move when the owner feeds them observed clock progress,
#   so they cannot drift from the audio clock and they stop when the clock stops.
# - Pausing freezes the remaining time. Resuming continues from it, never from the full duration.
#
########################
# Interfaces:
# Public classes:
# - class Countdown
#   - __init__(duration_seconds: float)
#   - remaining_seconds() -> float
#   - is_paused() -> bool
#   - is_expired() -> bool
#   - pause() -> None
#   - resume() -> None
#   - cancel() -> None
#   - advance(elapsed_seconds: float) -> bool   # True exactly once, on the advance that expires it
# - class IntervalTicker
#   - __init__(interval_seconds: float)
#   - start(*, fire_immediately: bool = True) -> None
#   - stop() -> None
#   - is_running() -> bool
#   - advance(elapsed_seconds: float) -> bool   # True when at least one interval has elapsed
#
########################

from __future__ import annotations


class Countdown:
    def __init__(self, duration_seconds: float) -> None:
        self._remaining_seconds = max(0.0, float(duration_seconds))
        self._is_paused = False
        self._is_done = False

    def remaining_seconds(self) -> float:
        return float(self._remaining_seconds)

    def is_paused(self) -> bool:
        return bool(self._is_paused)

    def is_expired(self) -> bool:
        return self._is_done and self._remaining_seconds <= 0.0

    def pause(self) -> None:
        self._is_paused = True

    def resume(self) -> None:
        self._is_paused = False

    def cancel(self) -> None:
        self._is_done = True

    def advance(self, elapsed_seconds: float) -> bool:
        if self._is_done or self._is_paused:
            return False
        elapsed = float(elapsed_seconds)
        if elapsed > 0.0:
            self._remaining_seconds = max(0.0, self._remaining_seconds - elapsed)
        if self._remaining_seconds <= 0.0:
            self._is_done = True
            return True
        return False


class IntervalTicker:
    def __init__(self, interval_seconds: float) -> None:
        interval = float(interval_seconds)
        if interval <= 0.0:
            raise ValueError("interval_seconds must be positive")
        self._interval_seconds = interval
        self._accumulated_seconds = 0.0
        self._is_running = False
        self._fire_pending = False

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    def is_running(self) -> bool:
        return bool(self._is_running)

    def start(self, *, fire_immediately: bool = True) -> None:
        self._is_running = True
        self._accumulated_seconds = 0.0
        self._fire_pending = bool(fire_immediately)

    def stop(self) -> None:
        self._is_running = False
        self._fire_pending = False

    def advance(self, elapsed_seconds: float) -> bool:
        if not self._is_running:
            return False

        elapsed = float(elapsed_seconds)
        if elapsed > 0.0:
            self._accumulated_seconds += elapsed

        is_due = self._fire_pending
        self._fire_pending = False
        if self._accumulated_seconds >= self._interval_seconds:
            # Several overdue intervals collapse into a single fire.
            self._accumulated_seconds %= self._interval_seconds
            is_due = True
        return is_due


def _run_unit_tests() -> None:
    countdown = Countdown(1.0)
    assert not countdown.advance(0.4)
    countdown.pause()
    assert not countdown.advance(10.0)
    assert abs(countdown.remaining_seconds() - 0.6) < 1e-9
    countdown.resume()
    assert countdown.advance(0.6)
    assert not countdown.advance(1.0)

    ticker = IntervalTicker(0.05)
    ticker.start()
    assert ticker.advance(0.0)
    assert not ticker.advance(0.02)
    assert ticker.advance(0.04)


if __name__ == "__main__":
    _run_unit_tests()
    print("timers.py: ok")
