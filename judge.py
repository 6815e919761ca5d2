# -*- coding: utf-8 -*-
########################
# judge.py
########################
# Purpose:
# - Hit judgement and scoring engine.
# - Matches a lane activation to the best unjudged ActiveNote within the ok window.
# - Forces a miss when a note's expiry countdown runs out.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - A press that finds no note is a whiff: no judgement, no score change. Only expiry produces a miss.
# - NoteRegistry owns the notes; JudgeEngine marks them judged through NoteRegistry.try_mark_judged.
#
########################
# Interfaces:
# Public dataclasses:
# - JudgementWindows(perfect_seconds: float, ok_seconds: float)
#   - classify_delta(delta_seconds: float) -> Optional[Grade]
# - ScoreState(perfect_count: int, ok_count: int, miss_count: int, combo: int, max_combo: int)
#   - apply_grade(grade: Grade) -> None
#   - as_dict() -> dict[str, int]
#
# Public functions:
# - evaluate_grade(target_time_seconds: float, observed_time_seconds: float, windows: JudgementWindows) -> Optional[Grade]
#
# Public classes:
# - class JudgeEngine
#   - __init__(registry: NoteRegistry, windows: JudgementWindows, presentation: Presentation,
#              song_time_provider: Callable[[], float])
#   - score_state() -> ScoreState
#   - judgement_windows() -> JudgementWindows
#   - recent_judgements() -> list[JudgementEvent]
#   - reset() -> None
#   - on_lane_activate(lane: str, *, observed_time_seconds: Optional[float] = None) -> Optional[JudgementEvent]
#   - on_note_expired(note: ActiveNote) -> Optional[JudgementEvent]
#
# Inputs:
# - lane activations and song time from the session clock.
#
# Outputs:
# - JudgementEvent objects, Presentation.show_judgment calls and the score.
#
########################

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
from typing import Callable, Deque, Dict, List, Optional

import gameplay_models
import note_registry
import presentation as presentation_module


logger = logging.getLogger(__name__)

RECENT_JUDGEMENTS_LIMIT = 64


@dataclass(frozen=True)
class JudgementWindows:
    perfect_seconds: float
    ok_seconds: float

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.perfect_seconds) < float(self.ok_seconds):
            raise ValueError("judgement windows must satisfy 0 <= perfect_seconds < ok_seconds")

    def classify_delta(self, delta_seconds: float) -> Optional[gameplay_models.Grade]:
        abs_delta = abs(float(delta_seconds))
        if abs_delta <= float(self.perfect_seconds):
            return gameplay_models.Grade.PERFECT
        if abs_delta <= float(self.ok_seconds):
            return gameplay_models.Grade.OK
        return None


def evaluate_grade(
    target_time_seconds: float,
    observed_time_seconds: float,
    windows: JudgementWindows,
) -> Optional[gameplay_models.Grade]:
    return windows.classify_delta(float(target_time_seconds) - float(observed_time_seconds))


@dataclass
class ScoreState:
    perfect_count: int = 0
    ok_count: int = 0
    miss_count: int = 0
    combo: int = 0
    max_combo: int = 0

    def apply_grade(self, grade: gameplay_models.Grade) -> None:
        if grade is gameplay_models.Grade.PERFECT:
            self.perfect_count += 1
            self.combo += 1
        elif grade is gameplay_models.Grade.OK:
            self.ok_count += 1
            self.combo += 1
        elif grade is gameplay_models.Grade.MISS:
            self.miss_count += 1
            self.combo = 0

        if self.combo > self.max_combo:
            self.max_combo = self.combo

    def count_for(self, grade: gameplay_models.Grade) -> int:
        return self.as_dict()[grade.value]

    def as_dict(self) -> Dict[str, int]:
        return {
            gameplay_models.Grade.PERFECT.value: self.perfect_count,
            gameplay_models.Grade.OK.value: self.ok_count,
            gameplay_models.Grade.MISS.value: self.miss_count,
        }


class JudgeEngine:
    def __init__(
        self,
        registry: note_registry.NoteRegistry,
        windows: JudgementWindows,
        presentation: presentation_module.Presentation,
        song_time_provider: Callable[[], float],
    ) -> None:
        self._registry = registry
        self._judgement_windows = windows
        self._presentation = presentation
        self._song_time_provider = song_time_provider
        self._score_state = ScoreState()
        self._recent_judgements: Deque[gameplay_models.JudgementEvent] = deque(maxlen=RECENT_JUDGEMENTS_LIMIT)

    def score_state(self) -> ScoreState:
        return self._score_state

    def judgement_windows(self) -> JudgementWindows:
        return self._judgement_windows

    def recent_judgements(self) -> List[gameplay_models.JudgementEvent]:
        return list(self._recent_judgements)

    def reset(self) -> None:
        self._score_state = ScoreState()
        self._recent_judgements.clear()

    def on_lane_activate(
        self,
        lane: str,
        *,
        observed_time_seconds: Optional[float] = None,
    ) -> Optional[gameplay_models.JudgementEvent]:
        observed = float(self._song_time_provider() if observed_time_seconds is None else observed_time_seconds)

        note = self._registry.find_best_match(
            lane=str(lane),
            observed_time_seconds=observed,
            window_seconds=float(self._judgement_windows.ok_seconds),
        )
        if note is None:
            return None

        grade = evaluate_grade(note.target_time_seconds, observed, self._judgement_windows)
        if grade is None:
            return None

        if not self._registry.try_mark_judged(note):
            return None

        return self._commit(note, grade=grade, time_seconds=observed)

    def on_note_expired(self, note: note_registry.ActiveNote) -> Optional[gameplay_models.JudgementEvent]:
        if not self._registry.try_mark_judged(note):
            return None

        now = float(self._song_time_provider())
        logger.debug("note %s lane=%s expired unjudged at %.3f", note.note_id, note.lane, now)
        return self._commit(note, grade=gameplay_models.Grade.MISS, time_seconds=now)

    def _commit(
        self,
        note: note_registry.ActiveNote,
        *,
        grade: gameplay_models.Grade,
        time_seconds: float,
    ) -> gameplay_models.JudgementEvent:
        self._score_state.apply_grade(grade)
        self._registry.remove(note)

        event = gameplay_models.JudgementEvent(
            time_seconds=float(time_seconds),
            lane=note.lane,
            note_time_seconds=note.target_time_seconds,
            delta_seconds=float(time_seconds) - note.target_time_seconds,
            grade=grade,
            handle=note.handle,
        )
        self._recent_judgements.append(event)
        self._presentation.show_judgment(grade, note.handle)
        return event


def _run_unit_tests() -> None:
    windows = JudgementWindows(perfect_seconds=0.15, ok_seconds=0.22)
    assert evaluate_grade(1.0, 1.02, windows) is gameplay_models.Grade.PERFECT
    assert evaluate_grade(1.0, 1.19, windows) is gameplay_models.Grade.OK
    assert evaluate_grade(1.0, 1.5, windows) is None

    recorder = presentation_module.RecordingPresentation()
    registry = note_registry.NoteRegistry(recorder, expiry_grace_seconds=windows.ok_seconds)
    now = [0.0]
    engine = JudgeEngine(registry, windows, recorder, lambda: now[0])
    registry.set_expiry_handler(engine.on_note_expired)

    registry.spawn(lane="ll", travel_duration_seconds=1.0, target_time_seconds=1.0, now_seconds=0.0)
    assert engine.on_lane_activate("rr", observed_time_seconds=1.0) is None
    hit = engine.on_lane_activate("ll", observed_time_seconds=1.02)
    assert hit is not None
    assert hit.grade is gameplay_models.Grade.PERFECT
    assert engine.score_state().perfect_count == 1
    assert len(registry) == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("judge.py: ok")
