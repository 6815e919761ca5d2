# -*- coding: utf-8 -*-
########################
# session_driver.py
########################
# Purpose:
# - Qt glue around SessionController.
# - Ticks the session from a QTimer, routes InputRouter signals into it, and exposes the
#   presentation calls as Qt signals through SignalPresentation.
#
# Design notes:
# - The timer only decides how often tick() runs. How far the engine advances is always read from the clock.
# - The timer stops while the session is not Playing.
# - The event filter is shared by any window that installs it, the same way the harness controller works.
#
########################
# Interfaces:
# Public classes:
# - class SignalPresentation(PyQt6.QtCore.QObject)   (implements presentation.Presentation)
#   - Signals:
#     - noteSpawned(object handle, str lane, float duration_seconds)
#     - noteReleased(object handle)
#     - judgmentShown(str grade, object handle)
#
# - class SessionDriver(PyQt6.QtCore.QObject)
#   - Signals:
#     - stateChanged(str)
#     - snapshotUpdated(object)   # session.SessionSnapshot
#   - Methods:
#     - attach_router(router: InputRouter) -> None
#     - play() / pause() / reset() / toggle_play_pause() -> bool
#       reset() also zeroes the attached router's press counters.
#     - eventFilter(watched, event) -> bool
#
########################

from __future__ import annotations

import itertools
from typing import Any, Optional

from PyQt6.QtCore import QEvent, QObject, QTimer, pyqtSignal
from PyQt6.QtGui import QKeyEvent

import gameplay_models
import input_router
import session as session_module


class SignalPresentation(QObject):
    noteSpawned = pyqtSignal(object, str, float)
    noteReleased = pyqtSignal(object)
    judgmentShown = pyqtSignal(str, object)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._handle_counter = itertools.count(1)

    def spawn(self, lane: str, duration_seconds: float) -> Any:
        handle = next(self._handle_counter)
        self.noteSpawned.emit(handle, str(lane), float(duration_seconds))
        return handle

    def release(self, handle: Any) -> None:
        self.noteReleased.emit(handle)

    def show_judgment(self, grade: gameplay_models.Grade, handle: Any) -> None:
        self.judgmentShown.emit(grade.value, handle)


class SessionDriver(QObject):
    stateChanged = pyqtSignal(str)
    snapshotUpdated = pyqtSignal(object)

    def __init__(
        self,
        session: session_module.SessionController,
        *,
        tick_interval_ms: int = 16,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._router: Optional[input_router.InputRouter] = None

        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(int(tick_interval_ms))
        self._tick_timer.timeout.connect(self._on_tick)

    @property
    def session(self) -> session_module.SessionController:
        return self._session

    def attach_router(self, router: input_router.InputRouter) -> None:
        self._router = router
        router.laneActivated.connect(self._on_lane_activated)
        router.laneDeactivated.connect(self._on_lane_deactivated)
        router.playPauseToggled.connect(self.toggle_play_pause)

    # -----------------
    # Transitions
    # -----------------

    def play(self) -> bool:
        changed = self._session.play()
        self._sync_timer()
        return changed

    def pause(self) -> bool:
        changed = self._session.pause()
        self._sync_timer()
        return changed

    def reset(self) -> bool:
        changed = self._session.reset()
        if self._router is not None:
            # Press counters are per run.
            self._router.reset_stats()
        self._sync_timer()
        return changed

    def toggle_play_pause(self) -> bool:
        changed = self._session.toggle_play_pause()
        self._sync_timer()
        return changed

    def _sync_timer(self) -> None:
        if self._session.state is session_module.SessionState.PLAYING:
            if not self._tick_timer.isActive():
                self._tick_timer.start()
        else:
            self._tick_timer.stop()
        self.stateChanged.emit(self._session.state.value)
        self.snapshotUpdated.emit(self._session.snapshot())

    # -----------------
    # Event filter and timer loop
    # -----------------

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if self._router is not None:
            if event.type() == QEvent.Type.KeyPress and isinstance(event, QKeyEvent):
                if self._router.handle_key_press(event):
                    return True
            if event.type() == QEvent.Type.KeyRelease and isinstance(event, QKeyEvent):
                if self._router.handle_key_release(event):
                    return True
            if event.type() in (QEvent.Type.WindowDeactivate, QEvent.Type.FocusOut):
                self._router.clear_pressed_keys()
        return super().eventFilter(watched, event)

    def _on_tick(self) -> None:
        self._session.tick()
        self.snapshotUpdated.emit(self._session.snapshot())

    def _on_lane_activated(self, lane: str) -> None:
        self._session.on_lane_activate(lane)
        self.snapshotUpdated.emit(self._session.snapshot())

    def _on_lane_deactivated(self, lane: str) -> None:
        self._session.on_lane_deactivate(lane)
