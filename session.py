# -*- coding: utf-8 -*-
########################
# session.py
########################
# Purpose:
# - Session controller for one play of one chart.
# - Composes ChartScheduler + NoteRegistry + JudgeEngine around an injected Clock and Presentation.
# - Owns the Idle / Playing / Paused state machine and the aggregate score.
#
# Design notes:
# - No Qt usage. The Qt driver (session_driver.py) and tests call tick() from outside.
# - Explicitly constructed. No module level game instance.
# - tick() reads the clock and feeds the observed progress to every timer. Nothing here reads a wall clock,
#   so when the audio clock stops, scheduling and expiry stop with it.
# - Inputs and transitions that are not legal in the current state are ignored and logged, never raised.
#   The one exception is a malformed chart, which load() rejects with ChartValidationError.
#
########################
# Interfaces:
# Public enums:
# - class SessionState(str, enum.Enum): IDLE | PLAYING | PAUSED
#
# Public dataclasses:
# - SessionSnapshot(state, song_time_seconds, score, combo, max_combo, active_note_count,
#                   dropped_note_count, held_lanes, chart_title)
#
# Public classes:
# - class SessionController
#   - __init__(*, clock, presentation, judgement_windows, lookahead_seconds, poll_interval_seconds,
#              late_slack_seconds, expiry_grace_seconds: Optional[float] = None)
#   - from_config(app_config, *, clock, presentation) -> SessionController
#   - load(chart: gameplay_models.Chart) -> bool
#   - play() -> bool
#   - pause() -> bool
#   - reset() -> bool
#   - toggle_play_pause() -> bool
#   - on_lane_activate(lane: str) -> Optional[JudgementEvent]
#   - on_lane_deactivate(lane: str) -> None
#   - tick() -> list[JudgementEvent]
#   - is_complete() -> bool
#   - snapshot() -> SessionSnapshot
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import Dict, List, Optional, Tuple

import chart_loader
import gameplay_models
import judge
import note_registry
import note_scheduler
import presentation as presentation_module
import timing_model


logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class SessionSnapshot:
    state: SessionState
    song_time_seconds: float
    score: Dict[str, int]
    combo: int
    max_combo: int
    active_note_count: int
    dropped_note_count: int
    held_lanes: Tuple[str, ...]
    chart_title: Optional[str]

    def to_dict(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "song_time_seconds": round(self.song_time_seconds, 6),
            "score": dict(self.score),
            "combo": self.combo,
            "max_combo": self.max_combo,
            "active_note_count": self.active_note_count,
            "dropped_note_count": self.dropped_note_count,
            "held_lanes": list(self.held_lanes),
            "chart_title": self.chart_title,
        }


class SessionController:
    def __init__(
        self,
        *,
        clock: timing_model.Clock,
        presentation: presentation_module.Presentation,
        judgement_windows: judge.JudgementWindows,
        lookahead_seconds: float,
        poll_interval_seconds: float,
        late_slack_seconds: float,
        expiry_grace_seconds: Optional[float] = None,
    ) -> None:
        self._clock = clock
        self._presentation = presentation

        grace = judgement_windows.ok_seconds if expiry_grace_seconds is None else expiry_grace_seconds
        self._scheduler = note_scheduler.ChartScheduler(
            lookahead_seconds=lookahead_seconds,
            poll_interval_seconds=poll_interval_seconds,
            late_slack_seconds=late_slack_seconds,
        )
        self._registry = note_registry.NoteRegistry(presentation, expiry_grace_seconds=float(grace))
        self._judge = judge.JudgeEngine(
            self._registry,
            judgement_windows,
            presentation,
            clock.current_time_seconds,
        )
        self._registry.set_expiry_handler(self._on_note_expired)
        self._registry.pause()

        self._state = SessionState.IDLE
        self._chart: Optional[gameplay_models.Chart] = None
        self._last_tick_seconds = 0.0
        self._held_lanes: List[str] = []
        self._tick_events: List[gameplay_models.JudgementEvent] = []

    @classmethod
    def from_config(
        cls,
        app_config,
        *,
        clock: timing_model.Clock,
        presentation: presentation_module.Presentation,
    ) -> "SessionController":
        windows = judge.JudgementWindows(
            perfect_seconds=float(app_config.judgement.perfect_window_seconds),
            ok_seconds=float(app_config.judgement.ok_window_seconds),
        )
        return cls(
            clock=clock,
            presentation=presentation,
            judgement_windows=windows,
            lookahead_seconds=float(app_config.scheduler.lookahead_seconds),
            poll_interval_seconds=float(app_config.scheduler.poll_interval_seconds),
            late_slack_seconds=float(app_config.scheduler.late_slack_seconds),
            expiry_grace_seconds=app_config.judgement.resolved_expiry_grace_seconds(),
        )

    # -----------------
    # Accessors
    # -----------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def chart(self) -> Optional[gameplay_models.Chart]:
        return self._chart

    @property
    def clock(self) -> timing_model.Clock:
        return self._clock

    @property
    def scheduler(self) -> note_scheduler.ChartScheduler:
        return self._scheduler

    @property
    def registry(self) -> note_registry.NoteRegistry:
        return self._registry

    @property
    def judge_engine(self) -> judge.JudgeEngine:
        return self._judge

    def score_state(self) -> judge.ScoreState:
        return self._judge.score_state()

    # -----------------
    # Transitions
    # -----------------

    def load(self, chart: gameplay_models.Chart) -> bool:
        # Rejected charts leave the session untouched.
        chart_loader.validate_chart(chart)

        if self._state is not SessionState.IDLE:
            self.reset()

        self._chart = chart
        self._scheduler.load(chart)
        logger.info("loaded chart %r with %d notes", chart.title, len(chart.notes))
        return True

    def play(self) -> bool:
        if self._chart is None:
            logger.warning("play ignored: no chart loaded")
            return False
        if self._state is SessionState.PLAYING:
            return False

        self._clock.play()
        self._registry.resume()
        self._scheduler.start()
        self._last_tick_seconds = float(self._clock.current_time_seconds())
        self._state = SessionState.PLAYING
        logger.info("playing at %.3f", self._last_tick_seconds)

        # Spawn what is already due instead of waiting for the first tick.
        self.tick()
        return True

    def pause(self) -> bool:
        if self._state is not SessionState.PLAYING:
            logger.warning("pause ignored in state %s", self._state.value)
            return False

        self.tick()
        self._clock.pause()
        self._registry.pause()
        self._scheduler.stop()
        self._state = SessionState.PAUSED
        logger.info("paused at %.3f", self._clock.current_time_seconds())
        return True

    def reset(self) -> bool:
        was_active = self._state is not SessionState.IDLE

        self._clock.pause()
        self._clock.seek(0.0)
        self._registry.pause()
        self._registry.clear()
        self._scheduler.reset()
        self._judge.reset()
        self._held_lanes.clear()
        self._tick_events.clear()
        self._last_tick_seconds = 0.0
        self._state = SessionState.IDLE

        if was_active:
            logger.info("session reset")
        return was_active

    def toggle_play_pause(self) -> bool:
        if self._state is SessionState.PLAYING:
            return self.pause()
        return self.play()

    # -----------------
    # Input path
    # -----------------

    def on_lane_activate(self, lane: str) -> Optional[gameplay_models.JudgementEvent]:
        lane_id = str(lane)
        if lane_id not in gameplay_models.LANE_IDS:
            logger.debug("ignored activation of unknown lane %r", lane)
            return None
        if lane_id not in self._held_lanes:
            self._held_lanes.append(lane_id)

        if self._state is not SessionState.PLAYING:
            return None

        # Bring spawns and expiries up to the press time before matching.
        self.tick()
        return self._judge.on_lane_activate(lane_id, observed_time_seconds=self._clock.current_time_seconds())

    def on_lane_deactivate(self, lane: str) -> None:
        if lane in self._held_lanes:
            self._held_lanes.remove(lane)

    # -----------------
    # Timer loop
    # -----------------

    def tick(self) -> List[gameplay_models.JudgementEvent]:
        """Advance expiry countdowns and scheduler polling by the clock progress since the last tick.

        Returns the misses forced by expiry during this tick.
        """
        if self._state is not SessionState.PLAYING:
            return []

        now = float(self._clock.current_time_seconds())
        elapsed = max(0.0, now - self._last_tick_seconds)
        self._last_tick_seconds = max(self._last_tick_seconds, now)

        self._tick_events = []
        # Expire existing notes before spawning, so new notes are not charged for time before they existed.
        self._registry.advance(elapsed)

        for request in self._scheduler.advance(elapsed, now):
            self._registry.spawn(
                lane=request.lane,
                travel_duration_seconds=request.travel_duration_seconds,
                target_time_seconds=request.target_time_seconds,
                now_seconds=now,
                chart_index=request.chart_index,
            )

        events = self._tick_events
        self._tick_events = []
        return events

    def _on_note_expired(self, note: note_registry.ActiveNote) -> None:
        event = self._judge.on_note_expired(note)
        if event is not None:
            self._tick_events.append(event)

    def is_complete(self) -> bool:
        return self._chart is not None and self._scheduler.is_exhausted() and len(self._registry) == 0

    def snapshot(self) -> SessionSnapshot:
        score_state = self._judge.score_state()
        return SessionSnapshot(
            state=self._state,
            song_time_seconds=float(self._clock.current_time_seconds()),
            score=score_state.as_dict(),
            combo=score_state.combo,
            max_combo=score_state.max_combo,
            active_note_count=len(self._registry),
            dropped_note_count=len(self._scheduler.dropped_indices()),
            held_lanes=tuple(self._held_lanes),
            chart_title=self._chart.title if self._chart is not None else None,
        )
