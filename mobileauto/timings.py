# mobileauto/timings.py
"""
@file timings.py
@brief Time configuration presets and defaults for element resolution.
"""

from __future__ import annotations
from copy import deepcopy
from typing import Any, Dict


TIMEOUT_FIELDS: Dict[str, Dict[str, Any]] = {
    "resolve_element": {"timeout": 15.0, "interval": 0.25, "retry_count": 3},
    "visibility_poll": {"timeout": 15.0, "interval": 0.25},
    "fallback_lookup": {"timeout": 2.0, "interval": 0.25},
    "http_request": {"timeout": 30.0, "interval": 0.25},
}

SCALAR_FIELDS: Dict[str, Any] = {
    "backoff_base": 1.0,
    "backoff_cap": 5.0,
    "condition_attempts": 5,
    "condition_initial_delay": 0.5,
    "parallel_workers": 8,
    "app_ready_pause": 2.0,
}

PRESET_OVERRIDES: Dict[str, Dict[str, Any]] = {
    "fast": {
        "resolve_element": {"timeout": 8.0, "interval": 0.1, "retry_count": 2},
        "visibility_poll": {"timeout": 8.0, "interval": 0.1},
        "fallback_lookup": {"timeout": 1.0, "interval": 0.1},
        "backoff_base": 0.5,
        "backoff_cap": 2.0,
        "condition_initial_delay": 0.25,
        "app_ready_pause": 1.0,
    },
    "slow": {
        "resolve_element": {"timeout": 25.0, "interval": 0.5, "retry_count": 4},
        "visibility_poll": {"timeout": 25.0, "interval": 0.5},
        "fallback_lookup": {"timeout": 4.0, "interval": 0.5},
        "http_request": {"timeout": 60.0},
        "backoff_cap": 8.0,
        "condition_attempts": 6,
        "app_ready_pause": 4.0,
    },
    "ci": {
        "resolve_element": {"timeout": 30.0, "interval": 0.5, "retry_count": 5},
        "visibility_poll": {"timeout": 30.0, "interval": 0.5},
        "fallback_lookup": {"timeout": 5.0, "interval": 0.5},
        "http_request": {"timeout": 120.0},
        "backoff_base": 2.0,
        "backoff_cap": 10.0,
        "condition_attempts": 6,
        "condition_initial_delay": 1.0,
        "parallel_workers": 4,
        "app_ready_pause": 5.0,
    },
}


def list_presets() -> Dict[str, Dict[str, Any]]:
    return {"default": {}, **PRESET_OVERRIDES}


def build_preset_values(preset: str) -> Dict[str, Any]:
    preset_key = (preset or "default").lower()
    values: Dict[str, Any] = {}
    values.update(deepcopy(TIMEOUT_FIELDS))
    values.update(deepcopy(SCALAR_FIELDS))

    if preset_key == "default":
        return values

    overrides = PRESET_OVERRIDES.get(preset_key)
    if overrides is None:
        raise ValueError(f"Unknown timing preset: {preset}")

    for key, value in overrides.items():
        if key in TIMEOUT_FIELDS:
            base = deepcopy(values[key])
            base.update(value)
            values[key] = base
        else:
            values[key] = value

    return values
