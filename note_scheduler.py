# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Decide when each chart note must be presented, given lookahead and travel time.
# - Emits one SpawnRequest per chart index per chart load, in chart order.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Spawn instant of note i is notes[i].time - note_speed, clamped to track start.
#   Notes that would have to appear before the track begins appear on the first poll instead,
#   with a travel shortened to what is left.
# - A poll spawns every unscheduled note whose spawn instant lies in [now - slack, now + lookahead].
# - A note whose spawn instant is already more than slack behind is dropped: never spawned, never judged.
#   Dropped notes are counted and logged at debug level for diagnostics.
# - Spawn instants are non-decreasing in chart order, so a single scan pointer is enough.
#   The cursor set is kept alongside it and is the record of what was scheduled.
#
########################
# Interfaces:
# Public classes:
# - class ChartScheduler
#   - __init__(*, lookahead_seconds: float, poll_interval_seconds: float, late_slack_seconds: float,
#              track_start_seconds: float = 0.0)
#   - load(chart: gameplay_models.Chart) -> None
#   - chart() -> Optional[gameplay_models.Chart]
#   - start() -> None
#   - stop() -> None
#   - reset() -> None
#   - is_running() -> bool
#   - is_exhausted() -> bool
#   - poll(now_seconds: float) -> list[SpawnRequest]
#   - advance(elapsed_seconds: float, now_seconds: float) -> list[SpawnRequest]
#   - scheduled_indices() -> frozenset[int]
#   - dropped_indices() -> frozenset[int]
#
# Inputs:
# - Chart and the current clock time.
#
# Outputs:
# - SpawnRequest values consumed by SessionController, which hands them to NoteRegistry.
#
########################

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional, Set

import gameplay_models
import timers


logger = logging.getLogger(__name__)


class ChartScheduler:
    def __init__(
        self,
        *,
        lookahead_seconds: float,
        poll_interval_seconds: float,
        late_slack_seconds: float,
        track_start_seconds: float = 0.0,
    ) -> None:
        lookahead = float(lookahead_seconds)
        poll_interval = float(poll_interval_seconds)
        if lookahead <= 0.0:
            raise ValueError("lookahead_seconds must be positive")
        if not 0.0 < poll_interval <= lookahead:
            raise ValueError("poll_interval_seconds must be positive and no larger than lookahead_seconds")
        if float(late_slack_seconds) < 0.0:
            raise ValueError("late_slack_seconds must not be negative")

        self._lookahead_seconds = lookahead
        self._late_slack_seconds = float(late_slack_seconds)
        self._track_start_seconds = float(track_start_seconds)
        self._ticker = timers.IntervalTicker(poll_interval)

        self._chart: Optional[gameplay_models.Chart] = None
        self._next_index = 0
        self._scheduled: Set[int] = set()
        self._dropped: Set[int] = set()

    @property
    def lookahead_seconds(self) -> float:
        return self._lookahead_seconds

    @property
    def poll_interval_seconds(self) -> float:
        return self._ticker.interval_seconds

    @property
    def late_slack_seconds(self) -> float:
        return self._late_slack_seconds

    def chart(self) -> Optional[gameplay_models.Chart]:
        return self._chart

    def load(self, chart: gameplay_models.Chart) -> None:
        self.reset()
        self._chart = chart

    def start(self) -> None:
        if self._ticker.is_running():
            return
        self._ticker.start(fire_immediately=True)

    def stop(self) -> None:
        self._ticker.stop()

    def reset(self) -> None:
        self._ticker.stop()
        self._next_index = 0
        self._scheduled.clear()
        self._dropped.clear()

    def is_running(self) -> bool:
        return self._ticker.is_running()

    def is_exhausted(self) -> bool:
        if self._chart is None:
            return True
        return self._next_index >= len(self._chart.notes)

    def scheduled_indices(self) -> FrozenSet[int]:
        return frozenset(self._scheduled)

    def dropped_indices(self) -> FrozenSet[int]:
        return frozenset(self._dropped)

    def spawn_instant_seconds(self, index: int) -> float:
        if self._chart is None:
            raise RuntimeError("no chart loaded")
        return max(self._track_start_seconds, self._chart.spawn_instant_seconds(index))

    def advance(self, elapsed_seconds: float, now_seconds: float) -> List[gameplay_models.SpawnRequest]:
        if not self._ticker.advance(elapsed_seconds):
            return []
        return self.poll(now_seconds)

    def poll(self, now_seconds: float) -> List[gameplay_models.SpawnRequest]:
        if self._chart is None:
            return []

        now = float(now_seconds)
        window_start = now - self._late_slack_seconds
        window_end = now + self._lookahead_seconds
        notes = self._chart.notes
        requests: List[gameplay_models.SpawnRequest] = []

        while self._next_index < len(notes):
            index = self._next_index
            spawn_instant = self.spawn_instant_seconds(index)
            if spawn_instant > window_end:
                break

            self._next_index += 1
            if index in self._scheduled or index in self._dropped:
                continue

            note = notes[index]
            if spawn_instant < window_start:
                self._dropped.add(index)
                logger.debug(
                    "dropped late note %d lane=%s: spawn instant %.3f is %.3f s behind %.3f",
                    index,
                    note.lane,
                    spawn_instant,
                    now - spawn_instant,
                    now,
                )
                continue

            self._scheduled.add(index)
            requests.append(
                gameplay_models.SpawnRequest(
                    chart_index=index,
                    lane=note.lane,
                    travel_duration_seconds=float(note.time_seconds) - spawn_instant,
                    target_time_seconds=float(note.time_seconds),
                )
            )

        return requests


def _run_unit_tests() -> None:
    chart = gameplay_models.Chart(
        note_speed_seconds=2.0,
        notes=(
            gameplay_models.ChartNote(time_seconds=1.0, lane="ll"),
            gameplay_models.ChartNote(time_seconds=3.0, lane="rr"),
        ),
    )
    scheduler = ChartScheduler(lookahead_seconds=0.1, poll_interval_seconds=0.05, late_slack_seconds=0.05)
    scheduler.load(chart)
    scheduler.start()

    first = scheduler.advance(0.0, 0.0)
    assert [(item.chart_index, item.travel_duration_seconds) for item in first] == [(0, 1.0)]
    assert scheduler.poll(0.0) == []

    second = scheduler.poll(0.95)
    assert [item.chart_index for item in second] == [1]
    assert scheduler.is_exhausted()

    scheduler.reset()
    scheduler.load(chart)
    assert [item.chart_index for item in scheduler.poll(2.0)] == []
    assert scheduler.dropped_indices() == frozenset({0, 1})


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
