"""
mobileauto - cached, retrying element resolution for Appium sessions.

This package provides:
- Resolver: descriptor -> element handle with caching, retry and backoff
- PageActions: click / set_value / verify helpers on top of the Resolver
- Repository: YAML object map of named element descriptors
- AppiumSession: RemoteSession over the WebDriver HTTP protocol
- Capabilities: local Appium and BrowserStack capability builders
"""

from mobileauto.actions import PageActions
from mobileauto.appium import AppiumSession
from mobileauto.config import TimeConfig
from mobileauto.descriptor import ElementDescriptor, Strategy
from mobileauto.exceptions import (
    ActionError,
    ConditionTimeout,
    ConfigError,
    InvalidArgument,
    MobileAutoError,
    RemoteSessionError,
    ResolutionFailure,
)
from mobileauto.interfaces import RemoteSession
from mobileauto.metrics import PerformanceCounters, ScenarioMetrics
from mobileauto.repository import Repository
from mobileauto.resolver import Resolver

__all__ = [
    "PageActions",
    "AppiumSession",
    "TimeConfig",
    "ElementDescriptor",
    "Strategy",
    "ActionError",
    "ConditionTimeout",
    "ConfigError",
    "InvalidArgument",
    "MobileAutoError",
    "RemoteSessionError",
    "ResolutionFailure",
    "RemoteSession",
    "PerformanceCounters",
    "ScenarioMetrics",
    "Repository",
    "Resolver",
]

__version__ = "1.0.0"
