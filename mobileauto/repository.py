# mobileauto/repository.py
"""
@file repository.py
@brief YAML object map: named element descriptors plus app settings.
"""

from __future__ import annotations
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft202012Validator

from mobileauto.config import TimeConfig
from mobileauto.descriptor import ElementDescriptor
from mobileauto.exceptions import ConfigError

SCHEMA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "schemas", "object_map.schema.json")


@dataclass(frozen=True)
class AppConfig:
    name: str = "app"
    default_timeout: Optional[float] = None
    retry_attempts: Optional[int] = None
    artifacts_dir: str = "screenshots"
    timing_preset: str = "default"


def _load_schema(path: str = SCHEMA_PATH) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class Repository:
    """
    Loads an object map (YAML) of named element descriptors plus app settings.

    elements:
      settings_option:
        selector: "id:org.wikipedia.alpha:id/explore_overflow_settings"
        description: Settings Option
      nav_drawer:
        using: xpath
        value: '//*[@content-desc="Open navigation drawer"]'
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self._raw = self._load_yaml(self.path)
        self._validate(self._raw)
        self._app = self._parse_app_config(self._raw.get("app") or {})
        self._descriptors = self._build_descriptors(self._raw.get("elements") or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "<memory>") -> Repository:
        repo = cls.__new__(cls)
        repo.path = path
        repo._raw = data
        repo._validate(data)
        repo._app = repo._parse_app_config(data.get("app") or {})
        repo._descriptors = repo._build_descriptors(data.get("elements") or {})
        return repo

    @staticmethod
    def _load_yaml(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise ConfigError(f"Object map YAML not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Object map YAML must be a mapping at root.")
        return data

    @staticmethod
    def _validate(data: Dict[str, Any]) -> None:
        validator = Draft202012Validator(_load_schema())
        errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
        if errors:
            lines = ["Object map schema validation failed:"]
            for e in errors:
                lines.append(f"- {'.'.join(str(p) for p in e.path) or '<root>'}: {e.message}")
            raise ConfigError("\n".join(lines))

    @staticmethod
    def _parse_app_config(d: Dict[str, Any]) -> AppConfig:
        return AppConfig(
            name=str(d.get("name", "app")),
            default_timeout=float(d["default_timeout"]) if d.get("default_timeout") is not None else None,
            retry_attempts=int(d["retry_attempts"]) if d.get("retry_attempts") is not None else None,
            artifacts_dir=str(d.get("artifacts_dir", "screenshots")),
            timing_preset=str(d.get("timing_preset", "default")),
        )

    @staticmethod
    def _humanize(name: str) -> str:
        return name.replace("_", " ").strip().title()

    def _build_descriptors(self, elements: Dict[str, Any]) -> Dict[str, List[ElementDescriptor]]:
        built: Dict[str, List[ElementDescriptor]] = {}
        for ename, entry in elements.items():
            description = str(entry.get("description") or self._humanize(ename))
            where = f"elements.{ename}"
            try:
                primary = ElementDescriptor.from_entry(entry, description)
                chain = [primary]
                for i, fallback in enumerate(entry.get("fallbacks") or [], start=1):
                    chain.append(ElementDescriptor.parse(fallback, f"{description} (fallback {i})"))
            except ConfigError as e:
                raise ConfigError(f"{where}: {e}") from e
            built[ename] = chain
        return built

    @property
    def app(self) -> AppConfig:
        return self._app

    def time_config(self, overrides: Optional[Dict[str, Any]] = None) -> TimeConfig:
        """Run-scope TimeConfig: preset from the map, then app defaults, then overrides."""
        return TimeConfig.build_from(
            preset=self._app.timing_preset,
            overrides=overrides,
            app_defaults={
                "default_timeout": self._app.default_timeout,
                "retry_attempts": self._app.retry_attempts,
            },
        )

    def descriptor(self, name: str) -> ElementDescriptor:
        return self.candidates(name)[0]

    def candidates(self, name: str) -> List[ElementDescriptor]:
        """Primary descriptor followed by its fallbacks."""
        if name not in self._descriptors:
            raise ConfigError(f"Unknown element: {name}")
        return list(self._descriptors[name])

    def __getitem__(self, name: str) -> ElementDescriptor:
        return self.descriptor(name)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def list_elements(self) -> List[str]:
        return sorted(self._descriptors.keys())
