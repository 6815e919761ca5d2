# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Keyboard front end for the four lanes (ll, lm, rm, rr) and the play/pause key.
# - Translates QKeyEvent into logical lane activations and play/pause toggles, emitted as Qt signals.
#
# Design notes:
# - Key names come from config (KeysConfig) and are resolved to Qt.Key codes once, at construction.
# - A held key produces one activation:
#   - auto repeat events are swallowed and counted as ignored presses.
#   - a second press of a key that is already down is swallowed the same way.
# - The router never judges timing. SessionController reads the clock when it receives the activation.
#
########################
# Interfaces:
# Public functions:
# - resolve_key_code(key_name: str) -> int
# - build_key_to_lane_map(lane_keys: dict[str, str]) -> dict[int, str]
#
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - laneActivated(str)
#     - laneDeactivated(str)
#     - playPauseToggled()
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - lane_for_key(key_code: int) -> Optional[str]
#     - clear_pressed_keys() -> None
#     - reset_stats() -> None
#
# Inputs:
# - QKeyEvent values forwarded by SessionDriver.eventFilter.
#
# Outputs:
# - Lane ids consumed by SessionController.on_lane_activate / on_lane_deactivate.
#
########################

from __future__ import annotations

from typing import Dict, Optional, Set

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent

import gameplay_models


def resolve_key_code(key_name: str) -> int:
    """Map a Qt key name such as "Z" or "Left" to its Qt.Key integer value."""
    text = str(key_name or "").strip()
    key_constant = getattr(Qt.Key, "Key_" + text, None)
    if key_constant is None:
        raise ValueError(f"Unknown Qt key name: {key_name!r}")
    return int(key_constant.value)


def build_key_to_lane_map(lane_keys: Dict[str, str]) -> Dict[int, str]:
    return {resolve_key_code(key_name): str(lane) for key_name, lane in lane_keys.items()}


class InputRouter(QObject):
    """
    Maps lane keys to lane ids for the session driver.

    This object only:
      - maps keys to lane ids
      - emits laneActivated / laneDeactivated on real presses and releases
      - emits playPauseToggled for the play/pause key
    """

    laneActivated = pyqtSignal(str)
    laneDeactivated = pyqtSignal(str)
    playPauseToggled = pyqtSignal()

    def __init__(
        self,
        parent: Optional[QObject] = None,
        lane_keys: Optional[Dict[str, str]] = None,
        play_pause_key: str = gameplay_models.DEFAULT_PLAY_PAUSE_KEY,
    ) -> None:
        """
        lane_keys:
            Optional override for the key map, as Qt key names to lane ids.
            If omitted: Z, C, Left, Right drive ll, lm, rm, rr.
        play_pause_key:
            Qt key name that toggles play and pause.
        """
        super().__init__(parent)

        self._key_to_lane: Dict[int, str] = build_key_to_lane_map(
            dict(lane_keys) if lane_keys is not None else gameplay_models.DEFAULT_LANE_KEYS
        )
        self._play_pause_key = resolve_key_code(play_pause_key)

        # Keys currently down. Cleared on focus loss.
        self._pressed_keys: Set[int] = set()

        self._total_presses: int = 0
        self._ignored_presses: int = 0

    # ------------------------------------------------------------------
    # Public API used by session_driver
    # ------------------------------------------------------------------

    def lane_for_key(self, key_code: int) -> Optional[str]:
        return self._key_to_lane.get(int(key_code))

    def _is_routed_key(self, key_code: int) -> bool:
        return key_code in self._key_to_lane or key_code == self._play_pause_key

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """
        Route one key press to a lane activation or a play/pause toggle.

        Returns True when the key belongs to the router, so the event is not propagated.
        """
        key_code = int(event.key())

        # Ignore auto repeat so holding a key does not spam activations.
        if event.isAutoRepeat() or key_code in self._pressed_keys:
            if self._is_routed_key(key_code):
                self._ignored_presses += 1
                return True
            return False

        if not self._is_routed_key(key_code):
            return False

        self._pressed_keys.add(key_code)

        if key_code == self._play_pause_key:
            self.playPauseToggled.emit()
            return True

        self._total_presses += 1
        self.laneActivated.emit(self._key_to_lane[key_code])
        return True

    def handle_key_release(self, event: QKeyEvent) -> bool:
        """
        Route one key release to a lane deactivation.

        Returns True when the key belongs to the router, so the event is not propagated.
        """
        key_code = int(event.key())

        if event.isAutoRepeat():
            return self._is_routed_key(key_code)

        was_pressed = key_code in self._pressed_keys
        self._pressed_keys.discard(key_code)

        lane = self._key_to_lane.get(key_code)
        if lane is not None and was_pressed:
            self.laneDeactivated.emit(lane)

        return self._is_routed_key(key_code)

    def clear_pressed_keys(self) -> None:
        """
        Release every held lane.

        Called by the driver on focus loss or window deactivation.
        """
        held_lanes = [self._key_to_lane[key] for key in sorted(self._pressed_keys) if key in self._key_to_lane]
        self._pressed_keys.clear()
        for lane in held_lanes:
            self.laneDeactivated.emit(lane)

    def reset_stats(self) -> None:
        self._total_presses = 0
        self._ignored_presses = 0

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    @property
    def total_presses(self) -> int:
        return self._total_presses

    @property
    def ignored_presses(self) -> int:
        return self._ignored_presses


def _run_unit_tests() -> None:
    router = InputRouter()

    assert router.lane_for_key(int(Qt.Key.Key_Z.value)) == "ll"
    assert router.lane_for_key(int(Qt.Key.Key_C.value)) == "lm"
    assert router.lane_for_key(int(Qt.Key.Key_Left.value)) == "rm"
    assert router.lane_for_key(int(Qt.Key.Key_Right.value)) == "rr"
    assert router.lane_for_key(int(Qt.Key.Key_Space.value)) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
