# mobileauto/config.py
"""
@file config.py
@brief Run-scope timing configuration for element resolution.

TimeConfig.current() looks in three places, first match wins:
  1. the innermost TimeConfig.override(...) block on this thread
  2. the run config installed for this thread (install_run_config)
  3. the process default ("default" preset)
"""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .timings import SCALAR_FIELDS, TIMEOUT_FIELDS, build_preset_values, list_presets
from .waits import backoff_delay

_SETTING_KEYS = ("timeout", "interval", "retry_count")

_state = threading.local()


@dataclass(frozen=True)
class WaitSettings:
    """Time allowed for one kind of wait: total timeout, poll interval, attempts."""
    timeout: float
    interval: float
    retry_count: Optional[int] = None

    @classmethod
    def coerce(cls, name: str, value: Any) -> WaitSettings:
        if isinstance(value, WaitSettings):
            return value
        if not isinstance(value, Mapping):
            raise ValueError(f"Invalid timeout setting for {name}: {value!r}")
        retry_count = value.get("retry_count")
        return cls(
            timeout=float(value["timeout"]),
            interval=float(value["interval"]),
            retry_count=int(retry_count) if retry_count is not None else None,
        )

    def merged(self, name: str, patch: Mapping[str, Any]) -> WaitSettings:
        """Copy with the non-None keys of `patch` applied."""
        unknown = sorted(set(patch) - set(_SETTING_KEYS))
        if unknown:
            raise ValueError(f"Unknown keys for {name}: {', '.join(unknown)}")
        changes: Dict[str, Any] = {}
        if patch.get("timeout") is not None:
            changes["timeout"] = float(patch["timeout"])
        if patch.get("interval") is not None:
            changes["interval"] = float(patch["interval"])
        if patch.get("retry_count") is not None:
            changes["retry_count"] = int(patch["retry_count"])
        return replace(self, **changes)


def _scalar(name: str, value: Any) -> Any:
    return int(value) if isinstance(SCALAR_FIELDS[name], int) else float(value)


class TimeConfig:
    """
    Timeouts, retry counts and backoff parameters for one run.

    Instances are treated as values: replace() and build_from() return new
    configs, and each WaitSettings is frozen.
    """

    _default_instance: Optional[TimeConfig] = None
    _lock = threading.Lock()

    resolve_element: WaitSettings
    visibility_poll: WaitSettings
    fallback_lookup: WaitSettings
    http_request: WaitSettings
    backoff_base: float
    backoff_cap: float
    condition_attempts: int
    condition_initial_delay: float
    parallel_workers: int
    app_ready_pause: float

    def __init__(self, preset: Optional[str] = None):
        self.preset = (preset or "default").lower()
        values = build_preset_values(self.preset)
        for name in TIMEOUT_FIELDS:
            setattr(self, name, WaitSettings.coerce(name, values[name]))
        for name in SCALAR_FIELDS:
            setattr(self, name, _scalar(name, values[name]))
        self._check()

    def __repr__(self) -> str:
        return f"TimeConfig(preset={self.preset!r})"

    def _merge(self, overrides: Mapping[str, Any]) -> None:
        for key, value in overrides.items():
            if key in TIMEOUT_FIELDS:
                if isinstance(value, WaitSettings):
                    setattr(self, key, value)
                elif isinstance(value, Mapping):
                    setattr(self, key, getattr(self, key).merged(key, value))
                else:
                    raise ValueError(f"Invalid override for {key}: {value!r}")
            elif key in SCALAR_FIELDS:
                setattr(self, key, _scalar(key, value))
            else:
                raise ValueError(f"Unknown TimeConfig field: {key}")
        self._check()

    def _check(self) -> None:
        if self.condition_attempts < 1:
            raise ValueError("condition_attempts must be >= 1")
        if self.parallel_workers < 1:
            raise ValueError("parallel_workers must be >= 1")
        retry_count = self.resolve_element.retry_count
        if retry_count is not None and retry_count < 1:
            raise ValueError("resolve_element.retry_count must be >= 1")

    def replace(self, **overrides: Any) -> TimeConfig:
        """New config with overrides applied; self is left untouched."""
        # settings are frozen and scalars immutable: nothing mutable is shared
        updated = copy.copy(self)
        updated._merge(overrides)
        return updated

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"preset": self.preset}
        for name in TIMEOUT_FIELDS:
            setting: WaitSettings = getattr(self, name)
            data[name] = {key: getattr(setting, key) for key in _SETTING_KEYS}
        for name in SCALAR_FIELDS:
            data[name] = getattr(self, name)
        return data

    def backoff_delay(self, attempt: int) -> float:
        """Pause after failed resolution attempt `attempt` (1-based)."""
        return backoff_delay(attempt, base=self.backoff_base, cap=self.backoff_cap)

    @classmethod
    def build_from(
        cls,
        *,
        preset: str = "default",
        overrides: Optional[Mapping[str, Any]] = None,
        app_defaults: Optional[Mapping[str, Any]] = None,
    ) -> TimeConfig:
        """
        Layer preset, object-map app defaults and explicit overrides, in
        that order. app_defaults understands `default_timeout` (applied to
        both lookup and visibility waits) and `retry_attempts`.
        """
        cfg = cls(preset)
        layers: List[Mapping[str, Any]] = [_app_layer(app_defaults or {}), overrides or {}]
        for layer in layers:
            if layer:
                cfg._merge(layer)
        return cfg

    @classmethod
    def default(cls) -> TimeConfig:
        """Process-wide default config, created on first use."""
        with cls._lock:
            if cls._default_instance is None:
                cls._default_instance = cls("default")
            return cls._default_instance

    @classmethod
    def install_run_config(cls, config: TimeConfig) -> None:
        _state.run_config = config

    @classmethod
    def clear_run_config(cls) -> None:
        _state.run_config = None

    @classmethod
    def current(cls) -> TimeConfig:
        stack = _override_stack()
        if stack:
            return stack[-1]
        run_config = getattr(_state, "run_config", None)
        return run_config if run_config is not None else cls.default()

    @classmethod
    @contextmanager
    def override(cls, **overrides: Any) -> Iterator[TimeConfig]:
        """Apply overrides on top of current() for the duration of the block."""
        config = cls.current().replace(**overrides)
        stack = _override_stack()
        stack.append(config)
        try:
            yield config
        finally:
            stack.pop()

    @classmethod
    def reset_to_defaults(cls) -> None:
        """Drop the cached default and this thread's run/override state."""
        with cls._lock:
            cls._default_instance = None
        _state.run_config = None
        _state.overrides = []


def _override_stack() -> List[TimeConfig]:
    stack = getattr(_state, "overrides", None)
    if stack is None:
        stack = _state.overrides = []
    return stack


def _app_layer(app_defaults: Mapping[str, Any]) -> Dict[str, Any]:
    layer: Dict[str, Any] = {}
    timeout = app_defaults.get("default_timeout")
    if timeout is not None:
        layer["resolve_element"] = {"timeout": timeout}
        layer["visibility_poll"] = {"timeout": timeout}
    retry_attempts = app_defaults.get("retry_attempts")
    if retry_attempts is not None:
        layer.setdefault("resolve_element", {})["retry_count"] = retry_attempts
    return layer


def available_presets() -> Dict[str, Dict[str, Any]]:
    return list_presets()
