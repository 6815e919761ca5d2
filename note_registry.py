# -*- coding: utf-8 -*-
########################
# note_registry.py
########################
# Purpose:
# - Owns the bag of ActiveNote instances from spawn until removal.
# - Provides lane lookup for judgement and drives each note's expiry countdown.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Per lane lists are kept in target time order, so lookups scan a short sorted list.
# - judged is checked and set in one place (try_mark_judged). A hit and an expiry for the same note
#   cannot both succeed.
# - Expiry countdowns only move through advance(), fed with observed clock progress.
#
########################
# Interfaces:
# Public dataclasses:
# - ActiveNote(note_id: int, lane: str, target_time_seconds: float, chart_index: int,
#              spawned_at_seconds: float, handle: object, judged: bool = False)
#
# Public classes:
# - class NoteRegistry
#   - __init__(presentation: Presentation, *, expiry_grace_seconds: float,
#              on_expired: Optional[Callable[[ActiveNote], None]] = None)
#   - set_expiry_handler(on_expired: Callable[[ActiveNote], None]) -> None
#   - spawn(*, lane, travel_duration_seconds, target_time_seconds, now_seconds, chart_index=-1) -> ActiveNote
#   - find_best_match(*, lane, observed_time_seconds, window_seconds) -> Optional[ActiveNote]
#   - try_mark_judged(note: ActiveNote) -> bool
#   - remove(note: ActiveNote) -> None
#   - clear() -> None
#   - pause() -> None
#   - resume() -> None
#   - advance(elapsed_seconds: float) -> list[ActiveNote]
#   - active_notes() -> list[ActiveNote]
#   - contains(note: ActiveNote) -> bool
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional

import presentation as presentation_module
import timers


logger = logging.getLogger(__name__)

@dataclass(eq=False)
class ActiveNote:
    note_id: int
    lane: str
    target_time_seconds: float
    chart_index: int
    spawned_at_seconds: float
    handle: Any = None
    judged: bool = False
    expiry: timers.Countdown = field(default_factory=lambda: timers.Countdown(0.0), repr=False)


class NoteRegistry:
    def __init__(
        self,
        presentation: presentation_module.Presentation,
        *,
        expiry_grace_seconds: float,
        on_expired: Optional[Callable[[ActiveNote], None]] = None,
    ) -> None:
        if float(expiry_grace_seconds) < 0.0:
            raise ValueError("expiry_grace_seconds must not be negative")
        self._presentation = presentation
        self._expiry_grace_seconds = float(expiry_grace_seconds)
        self._on_expired = on_expired
        self._lanes: Dict[str, List[ActiveNote]] = {}
        self._is_paused = False
        self._note_ids = itertools.count(1)

    def set_expiry_handler(self, on_expired: Callable[[ActiveNote], None]) -> None:
        self._on_expired = on_expired

    @property
    def expiry_grace_seconds(self) -> float:
        return self._expiry_grace_seconds

    def is_paused(self) -> bool:
        return bool(self._is_paused)

    def __len__(self) -> int:
        return sum(len(lane_list) for lane_list in self._lanes.values())

    def active_notes(self) -> List[ActiveNote]:
        notes = [note for lane_list in self._lanes.values() for note in lane_list]
        notes.sort(key=lambda item: (item.target_time_seconds, item.note_id))
        return notes

    def contains(self, note: ActiveNote) -> bool:
        return any(candidate is note for candidate in self._lanes.get(note.lane, []))

    def spawn(
        self,
        *,
        lane: str,
        travel_duration_seconds: float,
        target_time_seconds: float,
        now_seconds: float,
        chart_index: int = -1,
    ) -> ActiveNote:
        target = float(target_time_seconds)
        now = float(now_seconds)

        # The countdown is anchored to the judgement instant, plus the grace that keeps late presses judgeable.
        expiry = timers.Countdown(max(0.0, target - now) + self._expiry_grace_seconds)
        if self._is_paused:
            expiry.pause()

        handle = self._presentation.spawn(str(lane), float(travel_duration_seconds))
        note = ActiveNote(
            note_id=next(self._note_ids),
            lane=str(lane),
            target_time_seconds=target,
            chart_index=int(chart_index),
            spawned_at_seconds=now,
            handle=handle,
            expiry=expiry,
        )

        lane_list = self._lanes.setdefault(note.lane, [])
        insert_at = len(lane_list)
        while insert_at > 0 and lane_list[insert_at - 1].target_time_seconds > target:
            insert_at -= 1
        lane_list.insert(insert_at, note)

        logger.debug(
            "spawned note %s lane=%s target=%.3f now=%.3f expires_in=%.3f",
            note.note_id,
            note.lane,
            target,
            now,
            expiry.remaining_seconds(),
        )
        return note

    def find_best_match(
        self,
        *,
        lane: str,
        observed_time_seconds: float,
        window_seconds: float,
    ) -> Optional[ActiveNote]:
        observed = float(observed_time_seconds)
        window = float(window_seconds)

        best_note: Optional[ActiveNote] = None
        best_abs_delta = 0.0

        for candidate in self._lanes.get(str(lane), []):
            if candidate.judged:
                continue
            abs_delta = abs(candidate.target_time_seconds - observed)
            if abs_delta >= window:
                continue
            # Lane lists are in target time order, so on a tie the earlier note is already held.
            if best_note is None or abs_delta < best_abs_delta:
                best_note = candidate
                best_abs_delta = abs_delta

        return best_note

    def try_mark_judged(self, note: ActiveNote) -> bool:
        if note.judged:
            return False
        note.judged = True
        note.expiry.cancel()
        return True

    def remove(self, note: ActiveNote) -> None:
        lane_list = self._lanes.get(note.lane)
        if not lane_list:
            return
        for index, candidate in enumerate(lane_list):
            if candidate is note:
                del lane_list[index]
                break
        else:
            return

        note.expiry.cancel()
        self._presentation.release(note.handle)

    def clear(self) -> None:
        notes = self.active_notes()
        self._lanes.clear()
        for note in notes:
            note.expiry.cancel()
            self._presentation.release(note.handle)
        if notes:
            logger.debug("cleared %d active notes without judgement", len(notes))

    def pause(self) -> None:
        self._is_paused = True
        for note in self.active_notes():
            note.expiry.pause()

    def resume(self) -> None:
        self._is_paused = False
        for note in self.active_notes():
            note.expiry.resume()

    def advance(self, elapsed_seconds: float) -> List[ActiveNote]:
        """Count down every expiry and hand the notes that ran out to the expiry handler.

        Returns the notes that expired on this advance, in target time order. Notes already
        judged by a hit never expire because judging cancels their countdown.
        """
        if self._is_paused:
            return []

        expired = [note for note in self.active_notes() if note.expiry.advance(elapsed_seconds)]
        for note in expired:
            if self._on_expired is not None:
                self._on_expired(note)
            elif self.try_mark_judged(note):
                self.remove(note)
        return expired
