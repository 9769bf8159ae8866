# mobileauto/capabilities.py
"""
@file capabilities.py
@brief W3C capability builders for local Appium and BrowserStack sessions.
"""

from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import load_dotenv

from .exceptions import ConfigError

log = logging.getLogger("mobileauto.capabilities")

DEFAULT_PROFILE = "samsung_s22"
DEFAULT_BROWSERSTACK_APP = "bs://42650ff818c4ba52714893f62d97a6fda227e5ef"
BROWSERSTACK_HUB = "https://hub.browserstack.com/wd/hub"
LOCAL_HUB = "http://127.0.0.1:4723/wd/hub"
REQUIRED_BROWSERSTACK_ENV = ("BROWSERSTACK_USERNAME", "BROWSERSTACK_ACCESS_KEY")
# variables the builders read; all of them are part of the cache key
CAPABILITY_ENV_KEYS = (
    "BROWSERSTACK_USERNAME",
    "BROWSERSTACK_ACCESS_KEY",
    "BROWSERSTACK_APP_URL",
    "BROWSERSTACK_PROJECT_NAME",
    "DEBUG",
    "PLATFORM_VERSION",
    "DEVICE_NAME",
    "APP_PATH",
)

Env = Mapping[str, str]


@dataclass(frozen=True)
class DeviceProfile:
    device_name: str
    os_version: str


DEVICE_PROFILES: Dict[str, DeviceProfile] = {
    "samsung_s22": DeviceProfile("Samsung Galaxy S22 Ultra", "12.0"),
    "samsung_s21": DeviceProfile("Samsung Galaxy S21", "11.0"),
    "pixel_6": DeviceProfile("Google Pixel 6", "13.0"),
}

_capabilities_cache: Dict[str, Dict[str, Any]] = {}


def load_env(path: Optional[Union[str, os.PathLike]] = None) -> bool:
    """Load a .env file into os.environ without overriding existing values."""
    return load_dotenv(dotenv_path=path, override=False)


def _env(env: Optional[Env]) -> Env:
    return os.environ if env is None else env


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def is_browserstack(env: Optional[Env] = None) -> bool:
    return _flag(_env(env).get("BROWSERSTACK"))


def get_device_profile(name: Optional[str] = None) -> DeviceProfile:
    """Return the named profile, falling back to the default for unknown names."""
    profile = DEVICE_PROFILES.get(name or DEFAULT_PROFILE)
    if profile is None:
        log.warning("Unknown device profile '%s', using '%s'", name, DEFAULT_PROFILE)
        profile = DEVICE_PROFILES[DEFAULT_PROFILE]
    return profile


def validate_environment(env: Optional[Env] = None) -> None:
    """Raise ConfigError if BrowserStack credentials are missing."""
    source = _env(env)
    missing = [key for key in REQUIRED_BROWSERSTACK_ENV if not source.get(key)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")


def default_build_name(today: Optional[date] = None) -> str:
    return f"Wiki Build {(today or date.today()).isoformat()}"


def browserstack_capabilities(
    *,
    device_profile: str = DEFAULT_PROFILE,
    session_name: str = "Wiki App Test",
    build_name: Optional[str] = None,
    app_url: Optional[str] = None,
    env: Optional[Env] = None,
) -> Dict[str, Any]:
    source = _env(env)
    device = get_device_profile(device_profile)
    return {
        "platformName": "android",
        "appium:deviceName": device.device_name,
        "appium:osVersion": device.os_version,
        "appium:app": app_url or source.get("BROWSERSTACK_APP_URL") or DEFAULT_BROWSERSTACK_APP,
        "appium:automationName": "UiAutomator2",
        "appium:newCommandTimeout": 300,
        "appium:appWaitTimeout": 30000,
        "appium:deviceReadyTimeout": 30000,
        "bstack:options": {
            "userName": source.get("BROWSERSTACK_USERNAME"),
            "accessKey": source.get("BROWSERSTACK_ACCESS_KEY"),
            "projectName": source.get("BROWSERSTACK_PROJECT_NAME") or "Wiki Demo App",
            "buildName": build_name or default_build_name(),
            "sessionName": session_name,
            "appiumVersion": "2.0.0",
            "debug": _flag(source.get("DEBUG")),
            "networkLogs": True,
            "appiumLogs": True,
            "video": True,
            "deviceLogs": True,
        },
    }


def local_capabilities(
    *,
    device_name: Optional[str] = None,
    app_path: Optional[str] = None,
    platform_version: Optional[str] = None,
    env: Optional[Env] = None,
) -> Dict[str, Any]:
    source = _env(env)
    return {
        "platformName": "Android",
        "appium:platformVersion": platform_version or source.get("PLATFORM_VERSION") or "11.0",
        "appium:deviceName": device_name or source.get("DEVICE_NAME") or "emulator-5554",
        "appium:automationName": "UiAutomator2",
        "appium:app": app_path or source.get("APP_PATH") or os.path.abspath("LocalSample.apk"),
        "appium:appWaitTimeout": 30000,
        "appium:deviceReadyTimeout": 30000,
        "appium:newCommandTimeout": 300,
        "appium:noReset": False,
        "appium:fullReset": False,
        "appium:ignoreUnimportantViews": True,
    }


def get_capabilities(env: Optional[Env] = None, **options: Any) -> Dict[str, Any]:
    """
    Build capabilities for the current environment.

    BROWSERSTACK=true selects BrowserStack (credentials required), otherwise
    a local Appium device. Results are cached per option set and the values
    of CAPABILITY_ENV_KEYS; callers receive a copy.
    """
    source = _env(env)
    browserstack = is_browserstack(source)
    cache_key = json.dumps(
        {
            "browserstack": browserstack,
            "env": {key: source.get(key) for key in CAPABILITY_ENV_KEYS},
            "options": options,
        },
        sort_keys=True,
        default=str,
    )
    cached = _capabilities_cache.get(cache_key)
    if cached is not None:
        log.debug("Returning cached capabilities configuration")
        return deepcopy(cached)

    log.info("Generating %s capabilities", "BrowserStack" if browserstack else "Local")
    try:
        if browserstack:
            validate_environment(source)
            capabilities = browserstack_capabilities(env=source, **options)
        else:
            capabilities = local_capabilities(env=source, **options)
    except TypeError as e:
        raise ConfigError(f"Capabilities configuration failed: {e}") from e

    _capabilities_cache[cache_key] = capabilities
    return deepcopy(capabilities)


def clear_capabilities_cache() -> None:
    _capabilities_cache.clear()


def remote_endpoint(env: Optional[Env] = None) -> str:
    """Hub URL: BrowserStack when enabled, else APPIUM_SERVER_URL or the local default."""
    source = _env(env)
    if is_browserstack(source):
        return BROWSERSTACK_HUB
    return source.get("APPIUM_SERVER_URL") or LOCAL_HUB


def redact(capabilities: Dict[str, Any]) -> Dict[str, Any]:
    """Copy with the BrowserStack access key masked, for printing."""
    data = deepcopy(capabilities)
    options = data.get("bstack:options")
    if isinstance(options, dict) and options.get("accessKey"):
        options["accessKey"] = "***"
    return data
