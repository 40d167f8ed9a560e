#!/usr/bin/env python3
"""Shared configuration loader for gif-text tools."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from errors import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "delay": 100,
    "output_path": "./output.gif",
    "palette": "plan9",
    "decoder_formats": ["JPEG", "PNG"],
    "frame": {
        "width": 300,
        "height": 300,
        "resample": "lanczos",
    },
    "caption_band": {
        "height": 25,
        "background": [255, 255, 255],
        "foreground": [0, 0, 0],
        "text_x": 10,
        "baseline_offset": 20,
        "icon_size": 20,
        "icon_margin": 5,
        "font_path": "",
        "font_size": 13,
    },
    "icons": {
        "folder": "./icons",
        "glyphs": {
            "✅": "verifica.png",
            "❌": "fechar.png",
        },
    },
    "pipeline": {
        "executor": "process",
        "max_workers": 4,
        "frame_timeout_seconds": 30.0,
        "poll_interval_seconds": 0.05,
        "hole_policy": "strict",
    },
}


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def resolve_path(path_value: Union[str, Path]) -> str:
    """Resolve a config path relative to the project root."""
    path = Path(path_value).expanduser()
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return str(path)


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    cfg_path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH
    cfg = deepcopy(DEFAULT_CONFIG)

    if cfg_path.exists():
        user_cfg = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
        cfg = _deep_merge(cfg, user_cfg)

    if overrides:
        cfg = _deep_merge(cfg, overrides)

    validate_config(cfg)
    return cfg


def _positive_int(value: Any, key: str, minimum: int = 1) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"'{key}' must be an integer >= {minimum}, got {value!r}")


def validate_config(cfg: dict[str, Any]) -> None:
    """Reject malformed gif-text settings before any pipeline is built."""
    _positive_int(cfg.get("delay"), "delay", minimum=0)

    frame_cfg = cfg.get("frame", {})
    _positive_int(frame_cfg.get("width"), "frame.width")
    _positive_int(frame_cfg.get("height"), "frame.height")

    band = cfg.get("caption_band", {})
    _positive_int(band.get("height"), "caption_band.height")
    _positive_int(band.get("font_size"), "caption_band.font_size")

    glyphs = cfg.get("icons", {}).get("glyphs")
    if not isinstance(glyphs, dict) or not all(
        isinstance(k, str) and isinstance(v, str) and k and v for k, v in glyphs.items()
    ):
        raise ConfigError("'icons.glyphs' must map glyph strings to icon file names")

    pipeline = cfg.get("pipeline", {})
    if pipeline.get("executor") not in ("thread", "process"):
        raise ConfigError(
            f"Unknown executor '{pipeline.get('executor')}'. Allowed: thread, process"
        )
    if str(pipeline.get("hole_policy", "")).lower() not in ("strict", "lenient"):
        raise ConfigError(
            f"Unknown hole policy '{pipeline.get('hole_policy')}'. Allowed: strict, lenient"
        )
    _positive_int(pipeline.get("max_workers"), "pipeline.max_workers")
    timeout = pipeline.get("frame_timeout_seconds")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
        raise ConfigError(f"'pipeline.frame_timeout_seconds' must be a number, got {timeout!r}")
