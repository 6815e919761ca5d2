# -*- coding: utf-8 -*-
########################
# presentation.py
########################
# Purpose:
# - Capability interface between the timing engine and whatever draws notes.
# - Ships a recording implementation for headless runs and tests.
#
# Design notes:
# - The engine never touches presentation state directly. It only calls spawn, release and show_judgment.
# - Handles are opaque to the engine. It stores them and hands them back.
# - No Qt usage. session_driver.SignalPresentation is the Qt backed implementation.
#
########################
# Interfaces:
# Public protocols:
# - Presentation
#   - spawn(lane: str, duration_seconds: float) -> object
#   - release(handle: object) -> None
#   - show_judgment(grade: gameplay_models.Grade, handle: object) -> None
#
# Public classes:
# - class RecordingPresentation
#   - spawned: list[tuple[int, str, float]]
#   - released: list[int]
#   - judgments: list[tuple[Grade, int]]
#   - live_handles() -> set[int]
#
########################

from __future__ import annotations

import itertools
from typing import Any, List, Protocol, Set, Tuple, runtime_checkable

import gameplay_models


@runtime_checkable
class Presentation(Protocol):
    def spawn(self, lane: str, duration_seconds: float) -> Any: ...

    def release(self, handle: Any) -> None: ...

    def show_judgment(self, grade: gameplay_models.Grade, handle: Any) -> None: ...


class RecordingPresentation:
    """Headless presentation that records every call.

    Handles are increasing integers so assertions can refer to them.
    """

    def __init__(self) -> None:
        self._handle_counter = itertools.count(1)
        self.spawned: List[Tuple[int, str, float]] = []
        self.released: List[int] = []
        self.judgments: List[Tuple[gameplay_models.Grade, int]] = []

    def spawn(self, lane: str, duration_seconds: float) -> int:
        handle = next(self._handle_counter)
        self.spawned.append((handle, str(lane), float(duration_seconds)))
        return handle

    def release(self, handle: Any) -> None:
        self.released.append(int(handle))

    def show_judgment(self, grade: gameplay_models.Grade, handle: Any) -> None:
        self.judgments.append((grade, int(handle)))

    def live_handles(self) -> Set[int]:
        return {handle for handle, _lane, _duration in self.spawned} - set(self.released)
