# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models shared by the timing engine.
# - Defines lane ids, the immutable Chart representation, grades and gameplay events.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses.
# - Chart validation lives in chart_loader.py. Constructing a Chart directly does not validate.
#
########################
# Interfaces:
# Public constants:
# - LANE_IDS: tuple[str, ...]  ("ll", "lm", "rm", "rr")
# - DEFAULT_LANE_KEYS: dict[str, str]  Qt key name -> lane id (Z, C, Left, Right)
# - DEFAULT_PLAY_PAUSE_KEY: str  ("Space")
#
# Public enums:
# - class Grade(str, enum.Enum): PERFECT | OK | MISS
#
# Public dataclasses:
# - ChartNote(time_seconds: float, lane: str)
# - Chart(note_speed_seconds: float, notes: tuple[ChartNote, ...], title: str, artist: str, audio: str)
# - SpawnRequest(chart_index: int, lane: str, travel_duration_seconds: float, target_time_seconds: float)
# - JudgementEvent(time_seconds: float, lane: str, note_time_seconds: float, delta_seconds: float,
#                  grade: Grade, handle: object)
#
# Inputs/Outputs:
# - These types are exchanged between chart_loader, note_scheduler, note_registry, judge and session.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Any, Dict, Tuple


LANE_IDS: Tuple[str, ...] = ("ll", "lm", "rm", "rr")

# Qt key names. Copy before mutating.
DEFAULT_LANE_KEYS: Dict[str, str] = {"Z": "ll", "C": "lm", "Left": "rm", "Right": "rr"}
DEFAULT_PLAY_PAUSE_KEY = "Space"


class Grade(str, enum.Enum):
    PERFECT = "perfect"
    OK = "ok"
    MISS = "miss"


@dataclass(frozen=True)
class ChartNote:
    time_seconds: float
    lane: str


@dataclass(frozen=True)
class Chart:
    note_speed_seconds: float
    notes: Tuple[ChartNote, ...]
    title: str = ""
    artist: str = ""
    audio: str = ""

    def spawn_instant_seconds(self, index: int) -> float:
        return float(self.notes[index].time_seconds) - float(self.note_speed_seconds)

    @property
    def duration_seconds(self) -> float:
        if not self.notes:
            return 0.0
        return float(self.notes[-1].time_seconds)


@dataclass(frozen=True)
class SpawnRequest:
    chart_index: int
    lane: str
    travel_duration_seconds: float
    target_time_seconds: float


@dataclass(frozen=True)
class JudgementEvent:
    time_seconds: float
    lane: str
    note_time_seconds: float
    delta_seconds: float
    grade: Grade
    handle: Any = None
