import json

import pytest

import chart_loader
import demo_chart
from gameplay_models import Chart, ChartNote


def test_valid_payload_becomes_chart():
    chart = chart_loader.chart_from_mapping(
        {
            "noteSpeed": 2.0,
            "title": "Break",
            "audio": "break.mp3",
            "notes": [{"time": 1.0, "lane": "ll"}, {"time": 1.0, "lane": "rr"}],
        }
    )

    assert chart.note_speed_seconds == 2.0
    assert chart.notes == (ChartNote(time_seconds=1.0, lane="ll"), ChartNote(time_seconds=1.0, lane="rr"))
    assert chart.title == "Break"
    assert chart.audio == "break.mp3"
    assert chart.spawn_instant_seconds(0) == -1.0


def test_demo_chart_is_ordered_and_valid():
    chart = demo_chart.build_demo_chart()
    chart_loader.validate_chart(chart)

    assert [note.lane for note in chart.notes] == ["ll", "lm", "rm", "rr", "ll", "lm"]
    assert chart.duration_seconds == 3.5


@pytest.mark.parametrize(
    "payload",
    [
        {"noteSpeed": 1.0, "notes": [{"time": 2.0, "lane": "ll"}, {"time": 1.0, "lane": "ll"}]},
        {"noteSpeed": 0.0, "notes": []},
        {"noteSpeed": -1.0, "notes": []},
        {"noteSpeed": 1.0, "notes": [{"time": 1.0, "lane": "middle"}]},
        {"notes": []},
        [],
    ],
)
def test_malformed_payload_is_rejected(payload):
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.chart_from_mapping(payload)


def test_bad_json_text_is_rejected():
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.chart_from_json_text("{not json")


def test_load_chart_file(tmp_path):
    chart_path = tmp_path / "chart.json"
    chart_path.write_text(json.dumps(demo_chart.build_demo_chart_payload(note_speed_seconds=1.5)), encoding="utf-8")

    chart = chart_loader.load_chart_file(chart_path)

    assert chart.note_speed_seconds == 1.5
    assert len(chart.notes) == 6


def test_missing_chart_file_is_rejected(tmp_path):
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.load_chart_file(tmp_path / "missing.json")


def test_validate_chart_checks_code_built_charts():
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.validate_chart(Chart(note_speed_seconds=1.0, notes=(ChartNote(time_seconds=1.0, lane="x"),)))
    chart_loader.validate_chart(Chart(note_speed_seconds=1.0, notes=()))


@pytest.mark.parametrize(
    "text",
    [
        '{"noteSpeed": 1.0, "notes": [{"time": NaN, "lane": "ll"}]}',
        '{"noteSpeed": 1.0, "notes": [{"time": 1.0, "lane": "ll"}, {"time": Infinity, "lane": "rr"}]}',
        '{"noteSpeed": 1.0, "notes": [{"time": -Infinity, "lane": "ll"}]}',
        '{"noteSpeed": Infinity, "notes": []}',
        '{"noteSpeed": NaN, "notes": []}',
    ],
)
def test_non_finite_numbers_are_rejected(text):
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.chart_from_json_text(text)


@pytest.mark.parametrize("lane", ["LL", " ll ", "Rr"])
def test_lane_ids_must_be_canonical(lane):
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.chart_from_mapping({"noteSpeed": 1.0, "notes": [{"time": 1.0, "lane": lane}]})
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.validate_chart(Chart(note_speed_seconds=1.0, notes=(ChartNote(time_seconds=1.0, lane=lane),)))


@pytest.mark.parametrize(
    "chart",
    [
        Chart(note_speed_seconds=1.0, notes=(ChartNote(time_seconds=float("nan"), lane="ll"),)),
        Chart(
            note_speed_seconds=1.0,
            notes=(ChartNote(time_seconds=1.0, lane="ll"), ChartNote(time_seconds=float("inf"), lane="lm")),
        ),
        Chart(note_speed_seconds=float("inf"), notes=()),
        Chart(note_speed_seconds=float("nan"), notes=()),
    ],
)
def test_validate_chart_rejects_non_finite_numbers(chart):
    with pytest.raises(chart_loader.ChartValidationError):
        chart_loader.validate_chart(chart)
