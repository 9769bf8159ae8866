# mobileauto/descriptor.py
"""
@file descriptor.py
@brief Immutable element descriptors with tagged locator strategies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .exceptions import ConfigError

UIAUTOMATOR_PREFIX = "-android uiautomator:"


class Strategy(Enum):
    """Locator strategy; the value is the WebDriver `using` string."""
    ID = "id"
    ACCESSIBILITY_ID = "accessibility id"
    UIAUTOMATOR = "-android uiautomator"
    XPATH = "xpath"


_USING_ALIASES: Dict[str, Strategy] = {
    "id": Strategy.ID,
    "accessibility id": Strategy.ACCESSIBILITY_ID,
    "accessibility_id": Strategy.ACCESSIBILITY_ID,
    "~": Strategy.ACCESSIBILITY_ID,
    "android": Strategy.UIAUTOMATOR,
    "uiautomator": Strategy.UIAUTOMATOR,
    "-android uiautomator": Strategy.UIAUTOMATOR,
    "xpath": Strategy.XPATH,
}


@dataclass(frozen=True)
class ElementDescriptor:
    """
    A selector plus a human-readable label identifying one UI element query.
    """
    strategy: Strategy
    selector: str
    description: str

    def __post_init__(self) -> None:
        if not isinstance(self.strategy, Strategy):
            raise ConfigError(f"Unknown locator strategy: {self.strategy!r}")
        if not self.selector or not self.selector.strip():
            raise ConfigError(f"Descriptor '{self.description}' has an empty selector")
        if not self.description or not self.description.strip():
            raise ConfigError(f"Descriptor for '{self.selector}' has an empty description")

    @property
    def cache_key(self) -> Tuple[str, str]:
        return (self.selector, self.description)

    @property
    def using(self) -> str:
        return self.strategy.value

    def to_webdriver(self) -> Dict[str, str]:
        return {"using": self.strategy.value, "value": self.selector}

    def __str__(self) -> str:
        return f"{self.description} ({self.strategy.name.lower()}: {self.selector})"

    @classmethod
    def by_id(cls, resource_id: str, description: str) -> ElementDescriptor:
        return cls(Strategy.ID, resource_id, description)

    @classmethod
    def by_accessibility_id(cls, label: str, description: str) -> ElementDescriptor:
        return cls(Strategy.ACCESSIBILITY_ID, label, description)

    @classmethod
    def by_uiautomator(cls, query: str, description: str) -> ElementDescriptor:
        return cls(Strategy.UIAUTOMATOR, query, description)

    @classmethod
    def by_xpath(cls, path: str, description: str) -> ElementDescriptor:
        return cls(Strategy.XPATH, path, description)

    @classmethod
    def parse(cls, selector: str, description: str) -> ElementDescriptor:
        """
        Parse a legacy prefixed selector string.

        Supported forms:
          id:<resource-id>
          ~<accessibility label>
          -android uiautomator:<UiSelector query>
          //<xpath> or (<xpath>)
        """
        if not isinstance(selector, str) or not selector.strip():
            raise ConfigError(f"Descriptor '{description}' has an empty selector")
        text = selector.strip()
        if text.startswith(UIAUTOMATOR_PREFIX):
            return cls(Strategy.UIAUTOMATOR, text[len(UIAUTOMATOR_PREFIX):], description)
        if text.startswith("id:"):
            return cls(Strategy.ID, text[len("id:"):], description)
        if text.startswith("~"):
            return cls(Strategy.ACCESSIBILITY_ID, text[1:], description)
        if text.startswith("/") or text.startswith("("):
            return cls(Strategy.XPATH, text, description)
        raise ConfigError(
            f"Cannot infer locator strategy for '{selector}' ({description}). "
            "Use an 'id:', '~', '-android uiautomator:' or xpath selector."
        )

    @classmethod
    def from_entry(cls, entry: Dict[str, Any], description: str) -> ElementDescriptor:
        """Build from an object-map entry: {using, value} or {selector}."""
        desc = str(entry.get("description") or description)
        if "selector" in entry:
            return cls.parse(str(entry["selector"]), desc)
        using = str(entry.get("using", "")).strip().lower()
        strategy = _USING_ALIASES.get(using)
        if strategy is None:
            raise ConfigError(f"{description}: unknown locator strategy '{entry.get('using')}'")
        return cls(strategy, str(entry.get("value", "")), desc)
