# mobileauto/appium.py
"""
@file appium.py
@brief RemoteSession over the W3C WebDriver HTTP protocol (Appium / BrowserStack hub).
"""

from __future__ import annotations

import base64
import json as jsonlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import TimeConfig
from .descriptor import ElementDescriptor
from .exceptions import ElementNotFoundError, RemoteSessionError
from .interfaces import RemoteSession
from .waits import wait_until_passes

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"


@dataclass(frozen=True)
class ElementRef:
    element_id: str


def _extract_value(payload: Dict[str, Any]) -> Any:
    # W3C WebDriver wraps results in {"value": ...}
    if "value" in payload:
        return payload["value"]
    return payload


def _extract_element_id(element_obj: Any) -> str:
    if not isinstance(element_obj, dict):
        raise RemoteSessionError(f"Unexpected element payload type: {type(element_obj).__name__}")
    if element_obj.get(W3C_ELEMENT_KEY):
        return str(element_obj[W3C_ELEMENT_KEY])
    # Legacy JSONWire key
    if element_obj.get("ELEMENT"):
        return str(element_obj["ELEMENT"])
    raise RemoteSessionError(f"Could not extract element id from payload keys: {sorted(element_obj.keys())}")


class AppiumSession(RemoteSession):
    """
    RemoteSession over the W3C WebDriver HTTP endpoints of an Appium server
    (local or BrowserStack hub).
    """

    def __init__(
        self,
        server_url: str,
        *,
        timeout_s: Optional[float] = None,
        polling_interval: Optional[float] = None,
        http: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not server_url:
            raise ValueError("server_url is required")
        cfg = TimeConfig.current()
        self.server_url = server_url.rstrip("/")
        self.timeout_s = float(timeout_s) if timeout_s is not None else cfg.http_request.timeout
        self.polling_interval = float(polling_interval) if polling_interval is not None else cfg.http_request.interval
        self.log = logger or logging.getLogger("mobileauto.appium")
        self.session_id: Optional[str] = None
        self._http = http or requests.Session()

    def __enter__(self) -> AppiumSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.delete_session()

    def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.server_url}{path}"
        try:
            response = self._http.request(method, url, json=json, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise RemoteSessionError(
                f"Failed to call Appium server: {e}", method=method, url=url,
            ) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            error = message = None
            if isinstance(payload, dict):
                value = _extract_value(payload)
                if isinstance(value, dict):
                    error = value.get("error")
                    message = value.get("message")
            raise RemoteSessionError(
                f"Appium HTTP {response.status_code} for {method} {path}"
                + (f": {error or message}" if (error or message) else ""),
                method=method,
                url=url,
                status_code=response.status_code,
                error=error,
                response_json=payload if isinstance(payload, dict) else None,
            )

        if not isinstance(payload, dict):
            raise RemoteSessionError(
                f"Appium returned non-JSON response for {method} {path}",
                method=method,
                url=url,
                status_code=response.status_code,
            )
        return payload

    def _require_session(self) -> str:
        if not self.session_id:
            raise RemoteSessionError("No active Appium session (call create_session first)")
        return self.session_id

    def _element_path(self, handle: ElementRef, suffix: str) -> str:
        return f"/session/{self._require_session()}/element/{handle.element_id}/{suffix}"

    # --- Session lifecycle ---

    def create_session(self, capabilities: Dict[str, Any]) -> str:
        """
        Create a session from W3C capabilities (wrapped in alwaysMatch).
        """
        if not isinstance(capabilities, dict) or not capabilities:
            raise ValueError("capabilities must be a non-empty dict")

        payload = {"capabilities": {"alwaysMatch": capabilities, "firstMatch": [{}]}}
        self.log.info("Creating WebDriver session at %s", self.server_url)
        response = self._request("POST", "/session", json=payload)

        # {"value": {"sessionId": ...}} (W3C) or {"sessionId": ...} (legacy)
        value = _extract_value(response)
        session_id = value.get("sessionId") if isinstance(value, dict) else None
        session_id = session_id or response.get("sessionId")
        if not session_id:
            raise RemoteSessionError(
                "Appium did not return a sessionId in the create_session response",
                method="POST",
                url=f"{self.server_url}/session",
                response_json=response,
            )
        self.session_id = str(session_id)
        self.log.info("Session created: %s", self.session_id)
        return self.session_id

    def delete_session(self) -> None:
        if not self.session_id:
            return
        session_id = self.session_id
        try:
            self._request("DELETE", f"/session/{session_id}")
            self.log.info("Session cleaned up: %s", session_id)
        finally:
            self.session_id = None

    # --- RemoteSession ---

    def find_elements(self, descriptor: ElementDescriptor) -> List[ElementRef]:
        session_id = self._require_session()
        response = self._request("POST", f"/session/{session_id}/elements", json=descriptor.to_webdriver())
        value = _extract_value(response)
        if not isinstance(value, list):
            raise RemoteSessionError(
                "Unexpected /elements response shape (expected list)",
                method="POST",
                url=f"{self.server_url}/session/{session_id}/elements",
                response_json=response,
            )
        return [ElementRef(_extract_element_id(item)) for item in value]

    def locate(self, descriptor: ElementDescriptor, timeout: float) -> Optional[ElementRef]:
        """
        Poll POST /elements until something matches or `timeout` runs out.

        Transport errors are retried inside the same window; the last one is
        raised if the window closes on an error instead of an empty result.
        """
        def first_match() -> ElementRef:
            refs = self.find_elements(descriptor)
            if not refs:
                raise ElementNotFoundError(descriptor.description, timeout)
            return refs[0]

        try:
            return wait_until_passes(
                first_match,
                timeout=timeout,
                interval=self.polling_interval,
                exceptions=(ElementNotFoundError, RemoteSessionError),
                description=f"{descriptor.description} to exist",
                sleep=self.sleep,
            )
        except ElementNotFoundError:
            return None

    def is_visible(self, handle: ElementRef) -> bool:
        return bool(_extract_value(self._request("GET", self._element_path(handle, "displayed"))))

    def click(self, handle: ElementRef) -> None:
        self._request("POST", self._element_path(handle, "click"), json={})

    def get_text(self, handle: ElementRef) -> str:
        value = _extract_value(self._request("GET", self._element_path(handle, "text")))
        return "" if value is None else str(value)

    def set_value(self, handle: ElementRef, text: str) -> None:
        self._request("POST", self._element_path(handle, "value"), json={"text": text})

    def clear(self, handle: ElementRef) -> None:
        self._request("POST", self._element_path(handle, "clear"), json={})

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def screenshot(self) -> bytes:
        session_id = self._require_session()
        value = _extract_value(self._request("GET", f"/session/{session_id}/screenshot"))
        if not isinstance(value, str):
            raise RemoteSessionError("Unexpected /screenshot response shape (expected base64 string)")
        try:
            return base64.b64decode(value)
        except ValueError as e:
            raise RemoteSessionError(f"Failed to decode screenshot base64: {e}") from e

    # --- Extras ---

    def execute_script(self, script: str, args: Optional[List[Any]] = None) -> Any:
        session_id = self._require_session()
        response = self._request(
            "POST", f"/session/{session_id}/execute/sync", json={"script": script, "args": args or []},
        )
        return _extract_value(response)

    def set_session_status(self, status: str, reason: str) -> None:
        """Report pass/fail to BrowserStack via its executor hook."""
        if status not in {"passed", "failed"}:
            raise ValueError(f"status must be 'passed' or 'failed', got {status!r}")
        command = {"action": "setSessionStatus", "arguments": {"status": status, "reason": reason}}
        self.execute_script("browserstack_executor: " + jsonlib.dumps(command))
        self.log.info("BrowserStack session status updated: %s", status)
