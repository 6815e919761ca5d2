# -*- coding: utf-8 -*-
########################
# game_window.py
########################
# Purpose:
# - Minimal Qt window for interactive play: one status line and the last judgement.
# - Hosts the keyboard focus that SessionDriver filters lane keys from.
#
# Design notes:
# - The window never touches the session. It renders snapshots and judgements it is handed,
#   and asks for a reset through resetRequested.
# - Escape is the only key the window handles itself. Lane keys and Space are consumed by the
#   driver's event filter before keyPressEvent runs.
#
########################
# Interfaces:
# Public classes:
# - class GameWindow(PyQt6.QtWidgets.QWidget)
#   - Signals:
#     - resetRequested()
#   - Methods:
#     - show_snapshot(snapshot: session.SessionSnapshot) -> None
#     - show_judgment(grade: str, handle: object) -> None
#     - status_text() -> str
#     - judgement_text() -> str
#
########################

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent
from PyQt6.QtWidgets import QLabel, QVBoxLayout, QWidget

import session as session_module


class GameWindow(QWidget):
    resetRequested = pyqtSignal()

    def __init__(self, chart_title: str = "", parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"Lanebeat - {chart_title or 'untitled'}")

        layout = QVBoxLayout(self)
        self._status_label = QLabel("Space to play", self)
        self._judgement_label = QLabel("", self)
        layout.addWidget(self._status_label)
        layout.addWidget(self._judgement_label)

        self.resize(640, 160)

    def show_snapshot(self, snapshot: session_module.SessionSnapshot) -> None:
        score = snapshot.score
        self._status_label.setText(
            f"{snapshot.state.value}  t={snapshot.song_time_seconds:.2f}  "
            f"perfect={score['perfect']} ok={score['ok']} miss={score['miss']}  "
            f"combo={snapshot.combo}  held={' '.join(snapshot.held_lanes)}"
        )
        if snapshot.state is session_module.SessionState.IDLE:
            self._judgement_label.setText("")

    def show_judgment(self, grade: str, _handle: object) -> None:
        self._judgement_label.setText(str(grade).upper())

    def status_text(self) -> str:
        return self._status_label.text()

    def judgement_text(self) -> str:
        return self._judgement_label.text()

    def keyPressEvent(self, event: Optional[QKeyEvent]) -> None:  # noqa: N802
        if event is None:
            return

        if event.key() == Qt.Key.Key_Escape:
            self.resetRequested.emit()
            event.accept()
            return

        super().keyPressEvent(event)
