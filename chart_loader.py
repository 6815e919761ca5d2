# -*- coding: utf-8 -*-
########################
# chart_loader.py
########################
# Purpose:
# - Validate chart payloads and convert them into gameplay_models.Chart.
# - Reject malformed charts at load time so the session never sees them.
#
# Key Logic:
# - Payload shape is the JSON chart record: noteSpeed, notes[{time, lane}], title, artist, audio.
# - Strict contract:
#   - every number must be finite. NaN and Infinity literals are rejected.
#   - noteSpeed must be positive.
#   - note times must be non-decreasing in file order. Charts are never re-sorted here.
#   - lanes must be one of gameplay_models.LANE_IDS, spelled exactly (no case folding).
#   - metadata is passed through untouched.
#
########################
# Interfaces:
# Public exceptions:
# - class ChartValidationError(ValueError)
#
# Public functions:
# - chart_from_mapping(payload: Mapping[str, Any]) -> gameplay_models.Chart
# - chart_from_json_text(text: str) -> gameplay_models.Chart
# - load_chart_file(chart_path: pathlib.Path) -> gameplay_models.Chart
# - validate_chart(chart: gameplay_models.Chart) -> None
#
# Inputs:
# - Plain mappings or UTF-8 JSON text.
#
# Outputs:
# - Immutable Chart, or ChartValidationError.
#
########################

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

import gameplay_models


class ChartValidationError(ValueError):
    """Raised when a chart payload is malformed and must be rejected."""


class ChartNoteRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    time: float = Field(allow_inf_nan=False, description="Judgement instant in seconds from track start.")
    lane: str = Field(description="One of ll, lm, rm, rr.")

    @field_validator("lane")
    @classmethod
    def validate_lane(cls, value: str) -> str:
        if value not in gameplay_models.LANE_IDS:
            raise ValueError(f"unknown lane {value!r}, expected one of: {', '.join(gameplay_models.LANE_IDS)}")
        return value


class ChartRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    note_speed: float = Field(
        alias="noteSpeed",
        gt=0.0,
        allow_inf_nan=False,
        description="Travel time from spawn to judgement line.",
    )
    notes: List[ChartNoteRecord] = Field(default_factory=list)
    title: str = ""
    artist: str = ""
    audio: str = ""

    @model_validator(mode="after")
    def validate_note_order(self) -> "ChartRecord":
        previous_time = None
        for index, note in enumerate(self.notes):
            if previous_time is not None and note.time < previous_time:
                raise ValueError(
                    f"notes must be ordered by time: note {index} at {note.time} follows {previous_time}"
                )
            previous_time = note.time
        return self


def chart_from_mapping(payload: Mapping[str, Any]) -> gameplay_models.Chart:
    if not isinstance(payload, Mapping):
        raise ChartValidationError("Chart root must be an object")

    try:
        record = ChartRecord.model_validate(dict(payload))
    except ValidationError as exception:
        raise ChartValidationError(f"Chart validation failed:\n{exception}") from exception

    notes = tuple(gameplay_models.ChartNote(time_seconds=float(note.time), lane=note.lane) for note in record.notes)
    return gameplay_models.Chart(
        note_speed_seconds=float(record.note_speed),
        notes=notes,
        title=record.title,
        artist=record.artist,
        audio=record.audio,
    )


def chart_from_json_text(text: str) -> gameplay_models.Chart:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exception:
        raise ChartValidationError(f"Chart is not valid JSON: {exception}") from exception
    return chart_from_mapping(parsed)


def load_chart_file(chart_path: Path) -> gameplay_models.Chart:
    try:
        raw_text = Path(chart_path).read_text(encoding="utf-8")
    except OSError as exception:
        raise ChartValidationError(f"Failed to read chart file: {chart_path}. Error: {exception}") from exception
    return chart_from_json_text(raw_text)


def validate_chart(chart: gameplay_models.Chart) -> None:
    """Check a Chart built in code against the same rules as chart_from_mapping."""
    if not math.isfinite(float(chart.note_speed_seconds)) or not float(chart.note_speed_seconds) > 0.0:
        raise ChartValidationError(f"noteSpeed must be a positive finite number, got {chart.note_speed_seconds}")

    previous_time = None
    for index, note in enumerate(chart.notes):
        if note.lane not in gameplay_models.LANE_IDS:
            raise ChartValidationError(f"note {index} has unknown lane {note.lane!r}")
        if not math.isfinite(float(note.time_seconds)):
            raise ChartValidationError(f"note {index} has a non-finite time {note.time_seconds}")
        if previous_time is not None and float(note.time_seconds) < previous_time:
            raise ChartValidationError(
                f"notes must be ordered by time: note {index} at {note.time_seconds} follows {previous_time}"
            )
        previous_time = float(note.time_seconds)
