"""
lanebeat.py

Entrypoint for the lane timing engine.

Modes
- Default: opens a small PyQt6 window. Keyboard lanes Z, C, Left, Right; Space toggles play and pause;
  Escape resets. The window shows session state and score as text.
- --simulate: headless playthrough on a manually driven clock. Each note is pressed at
  note time + --press-offset (or never, with --no-press). Prints the final snapshot as JSON.

Integration
- Loads config (config.py) and the chart (chart_loader.py, or demo_chart.py when --chart is omitted)
- Builds one SessionController with the clock and presentation for the chosen mode
- GUI mode wires GameWindow + InputRouter + SessionDriver and starts the Qt event loop
"""

from __future__ import annotations

import argparse
from collections import deque
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import chart_loader
import config as config_module
import demo_chart
import gameplay_models
import presentation
import session as session_module
import timing_model


logger = logging.getLogger(__name__)


def run_simulation(
    chart: gameplay_models.Chart,
    app_config: config_module.AppConfig,
    *,
    press_offset_seconds: Optional[float] = 0.0,
    step_seconds: Optional[float] = None,
) -> session_module.SessionSnapshot:
    """Play the chart to the end on a TimingModel clock.

    press_offset_seconds=None means the player never presses, so every spawned note expires.
    """
    clock = timing_model.TimingModel()
    recorder = presentation.RecordingPresentation()
    session = session_module.SessionController.from_config(app_config, clock=clock, presentation=recorder)

    step = float(step_seconds) if step_seconds is not None else app_config.scheduler.tick_interval_ms / 1000.0

    session.load(chart)
    session.play()

    pending_presses = deque()
    if press_offset_seconds is not None:
        pending_presses.extend(
            sorted((note.time_seconds + float(press_offset_seconds), note.lane) for note in chart.notes)
        )

    end_seconds = (
        chart.duration_seconds
        + app_config.judgement.resolved_expiry_grace_seconds()
        + max(0.0, float(press_offset_seconds or 0.0))
        + 1.0
    )

    while clock.current_time_seconds() < end_seconds:
        clock.advance(step)
        while pending_presses and pending_presses[0][0] <= clock.current_time_seconds():
            _press_time, lane = pending_presses.popleft()
            session.on_lane_activate(lane)
            session.on_lane_deactivate(lane)
        session.tick()
        if not pending_presses and session.is_complete():
            break

    snapshot = session.snapshot()
    logger.info("simulation finished: %s", snapshot.score)
    return snapshot


def _load_chart(chart_path: Optional[Path]) -> gameplay_models.Chart:
    if chart_path is None:
        return demo_chart.build_demo_chart()
    return chart_loader.load_chart_file(chart_path)


def _run_gui(chart: gameplay_models.Chart, app_config: config_module.AppConfig) -> int:
    from PyQt6.QtWidgets import QApplication

    import game_window
    import input_router
    import session_driver

    qt_application = QApplication(sys.argv)

    window = game_window.GameWindow(chart.title)

    signal_presentation = session_driver.SignalPresentation(window)
    session = session_module.SessionController.from_config(
        app_config,
        clock=timing_model.MonotonicClock(),
        presentation=signal_presentation,
    )
    session.load(chart)

    driver = session_driver.SessionDriver(
        session,
        tick_interval_ms=app_config.scheduler.tick_interval_ms,
        parent=window,
    )
    router = input_router.InputRouter(
        parent=window,
        lane_keys=app_config.keys.lanes,
        play_pause_key=app_config.keys.play_pause,
    )
    driver.attach_router(router)
    window.installEventFilter(driver)

    driver.snapshotUpdated.connect(window.show_snapshot)
    signal_presentation.judgmentShown.connect(window.show_judgment)
    window.resetRequested.connect(driver.reset)

    window.show()
    return int(qt_application.exec())


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lanebeat timing engine")
    parser.add_argument("--chart", type=Path, default=None, help="Chart JSON file. Defaults to the built-in demo chart.")
    parser.add_argument("--config", type=Path, default=None, help="Config JSON file. Overrides the default search.")
    parser.add_argument("--simulate", action="store_true", help="Run a headless playthrough and print the result.")
    parser.add_argument("--press-offset", type=float, default=0.0, help="Simulated press offset from each note, in seconds.")
    parser.add_argument("--no-press", action="store_true", help="Simulate a player who never presses.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Optional[list] = None) -> int:
    parsed_args = build_argument_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app_config, _config_path = config_module.load_config(parsed_args.config)
        chart = _load_chart(parsed_args.chart)
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2), file=sys.stderr)
        return 2

    if parsed_args.simulate:
        snapshot = run_simulation(
            chart,
            app_config,
            press_offset_seconds=None if parsed_args.no_press else float(parsed_args.press_offset),
        )
        print(json.dumps({"ok": True, "snapshot": snapshot.to_dict()}, ensure_ascii=False, indent=2))
        return 0

    return _run_gui(chart, app_config)


if __name__ == "__main__":
    raise SystemExit(main())
