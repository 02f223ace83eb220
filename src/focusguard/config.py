"""Application settings for FocusGuard: defaults, a prefs file, then environment."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

PREFS_PATH = os.path.join(os.path.expanduser("~"), ".focusguard_prefs.json")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_ENV_PREFIX = "FOCUSGUARD_"


@dataclass
class AppConfig:
    # Camera / detection
    camera_index: int = 0
    detection_interval_ms: int = 100  # ~10 detections per second
    min_detection_confidence: float = 0.5

    # UI
    ui_refresh_ms: int = 500
    show_summary_chart: bool = True

    # Logging
    log_level: str = "INFO"


def load_config(
    prefs_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Defaults, overridden by the JSON prefs file, overridden by FOCUSGUARD_* variables."""
    cfg = AppConfig()
    _apply(cfg, _read_prefs(prefs_path or PREFS_PATH), source="prefs")

    env = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}
    for f in fields(AppConfig):
        key = _ENV_PREFIX + f.name.upper()
        if key in env:
            overrides[f.name] = env[key]
    # FOCUSGUARD_NO_CHART=1 is the short form used by launch scripts
    if env.get(_ENV_PREFIX + "NO_CHART", "").lower() in {"1", "true", "yes"}:
        overrides["show_summary_chart"] = False
    _apply(cfg, overrides, source="environment")
    return cfg


def _read_prefs(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable preferences file %s", path, exc_info=True)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Ignoring preferences file %s: expected a JSON object", path)
        return {}
    return raw


def _apply(cfg: AppConfig, values: Mapping[str, Any], source: str) -> None:
    defaults = AppConfig()
    for f in fields(AppConfig):
        if f.name not in values:
            continue
        default = getattr(defaults, f.name)
        try:
            value = _convert(values[f.name], type(default))
        except (TypeError, ValueError):
            logger.warning("Invalid %s value for %s: %r", source, f.name, values[f.name])
            continue
        setattr(cfg, f.name, value)


def _convert(value: Any, target: type) -> Any:
    if target is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in {"1", "true", "yes", "on"}:
            return True
        if text in {"0", "false", "no", "off"}:
            return False
        raise ValueError(value)
    if target is int:
        if isinstance(value, bool):
            raise TypeError(value)
        return int(value)
    if target is float:
        return float(value)
    if target is str:
        return str(value)
    return value


__all__ = [
    "AppConfig",
    "LOG_FORMAT",
    "PREFS_PATH",
    "load_config",
]
