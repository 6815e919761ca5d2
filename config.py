"""
config.py

Typed configuration loading and validation for Lanebeat.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If LANEBEAT_CONFIG_PATH is set, that file is used and must exist.
- Otherwise Lanebeat searches these paths in order and uses the first one that exists:
  1) ./lanebeat_config.json (current working directory)
  2) <user config dir>/Lanebeat/Lanebeat/lanebeat_config.json
- If none exists, the built-in defaults are used.

Example config file (lanebeat_config.json)
{
  "scheduler": {
    "lookahead_seconds": 0.1,
    "poll_interval_seconds": 0.05,
    "late_slack_seconds": 0.05,
    "tick_interval_ms": 16
  },
  "judgement": {
    "perfect_window_seconds": 0.15,
    "ok_window_seconds": 0.22,
    "expiry_grace_seconds": null
  },
  "keys": {
    "lanes": {"Z": "ll", "C": "lm", "Left": "rm", "Right": "rr"},
    "play_pause": "Space"
  }
}
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

import gameplay_models


class SchedulerConfig(BaseModel):
    lookahead_seconds: float = Field(default=0.1, gt=0.0, description="Horizon added to the clock when polling.")
    poll_interval_seconds: float = Field(default=0.05, gt=0.0, description="Clock progress between polls.")
    late_slack_seconds: float = Field(
        default=0.05,
        ge=0.0,
        description="How far behind the clock a spawn instant may be and still spawn.",
    )
    tick_interval_ms: int = Field(default=16, ge=1, le=1000, description="Qt driver tick interval.")

    @model_validator(mode="after")
    def validate_poll_interval(self) -> "SchedulerConfig":
        if self.poll_interval_seconds > self.lookahead_seconds:
            raise ValueError("poll_interval_seconds must not exceed lookahead_seconds")
        return self


class JudgementConfig(BaseModel):
    perfect_window_seconds: float = Field(default=0.15, ge=0.0)
    ok_window_seconds: float = Field(default=0.22, gt=0.0)
    expiry_grace_seconds: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Time a note stays judgeable past its target. Defaults to ok_window_seconds.",
    )

    @model_validator(mode="after")
    def validate_window_order(self) -> "JudgementConfig":
        if self.perfect_window_seconds >= self.ok_window_seconds:
            raise ValueError("perfect_window_seconds must be smaller than ok_window_seconds")
        return self

    def resolved_expiry_grace_seconds(self) -> float:
        if self.expiry_grace_seconds is None:
            return float(self.ok_window_seconds)
        return float(self.expiry_grace_seconds)


def _default_lane_keys() -> Dict[str, str]:
    return dict(gameplay_models.DEFAULT_LANE_KEYS)


class KeysConfig(BaseModel):
    lanes: Dict[str, str] = Field(default_factory=_default_lane_keys, description="Qt key name -> lane id.")
    play_pause: str = Field(
        default=gameplay_models.DEFAULT_PLAY_PAUSE_KEY,
        description="Qt key name that toggles play and pause.",
    )

    @field_validator("lanes")
    @classmethod
    def validate_lanes(cls, value: Dict[str, str]) -> Dict[str, str]:
        normalized: Dict[str, str] = {}
        for key_name, lane in value.items():
            lane_id = (lane or "").strip().lower()
            if lane_id not in gameplay_models.LANE_IDS:
                raise ValueError(f"key {key_name!r} maps to unknown lane {lane!r}")
            normalized[key_name.strip()] = lane_id
        return normalized


class AppConfig(BaseModel):
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    judgement: JudgementConfig = Field(default_factory=JudgementConfig)
    keys: KeysConfig = Field(default_factory=KeysConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("Lanebeat", "Lanebeat"))
    return [
        Path.cwd() / "lanebeat_config.json",
        config_directory / "lanebeat_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("LANEBEAT_CONFIG_PATH", "").strip()
    if explicit_path_text:
        explicit_path = Path(explicit_path_text)
        if not explicit_path.exists():
            raise FileNotFoundError(f"LANEBEAT_CONFIG_PATH points at a missing file: {explicit_path}")
        return explicit_path

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path
    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - LANEBEAT_LOOKAHEAD_SECONDS
    - LANEBEAT_POLL_INTERVAL_SECONDS
    - LANEBEAT_LATE_SLACK_SECONDS
    - LANEBEAT_TICK_INTERVAL_MS
    - LANEBEAT_PERFECT_WINDOW_SECONDS
    - LANEBEAT_OK_WINDOW_SECONDS
    - LANEBEAT_EXPIRY_GRACE_SECONDS
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            section = dict(section)
        else:
            section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    scheduler_section = ensure_nested(updated_config, "scheduler")
    judgement_section = ensure_nested(updated_config, "judgement")

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    override_float("LANEBEAT_LOOKAHEAD_SECONDS", scheduler_section, "lookahead_seconds")
    override_float("LANEBEAT_POLL_INTERVAL_SECONDS", scheduler_section, "poll_interval_seconds")
    override_float("LANEBEAT_LATE_SLACK_SECONDS", scheduler_section, "late_slack_seconds")
    override_int("LANEBEAT_TICK_INTERVAL_MS", scheduler_section, "tick_interval_ms")

    override_float("LANEBEAT_PERFECT_WINDOW_SECONDS", judgement_section, "perfect_window_seconds")
    override_float("LANEBEAT_OK_WINDOW_SECONDS", judgement_section, "ok_window_seconds")
    override_float("LANEBEAT_EXPIRY_GRACE_SECONDS", judgement_section, "expiry_grace_seconds")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "defaults"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": config.model_dump(),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
