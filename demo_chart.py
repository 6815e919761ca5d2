# demo_chart.py
from __future__ import annotations

from typing import Any, Dict

import chart_loader
import gameplay_models


def build_demo_chart_payload(*, note_speed_seconds: float = 1.0) -> Dict[str, Any]:
    # One note per half second, walking the lanes left to right and back to the left pair.
    lane_pattern = ["ll", "lm", "rm", "rr", "ll", "lm"]
    first_note_seconds = 1.0
    step_interval_seconds = 0.5

    notes = [
        {"time": first_note_seconds + index * step_interval_seconds, "lane": lane}
        for index, lane in enumerate(lane_pattern)
    ]
    return {
        "title": "Break",
        "artist": "",
        "audio": "break.mp3",
        "noteSpeed": float(note_speed_seconds),
        "notes": notes,
    }


def build_demo_chart(*, note_speed_seconds: float = 1.0) -> gameplay_models.Chart:
    return chart_loader.chart_from_mapping(build_demo_chart_payload(note_speed_seconds=note_speed_seconds))
