# mobileauto/exceptions.py
"""
@file exceptions.py
@brief Custom exception classes for the mobile automation layer.
"""

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .resolver import ResolutionAttempt


class MobileAutoError(Exception):
    """Base exception for the framework."""
    pass


class ConfigError(MobileAutoError):
    """Raised when YAML/environment configuration is invalid."""
    pass


class InvalidArgument(MobileAutoError, ValueError):
    """Raised when a helper receives an empty or blank input."""
    pass


class RemoteSessionError(MobileAutoError):
    """
    Raised by a RemoteSession when a transport call fails.

    Attributes:
        method: HTTP method of the failing call (if any)
        url: Target URL of the failing call (if any)
        status_code: HTTP status returned by the server (if any)
        error: WebDriver error code, e.g. "no such element"
    """

    def __init__(
        self,
        message: str,
        *,
        method: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        response_json: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.error = error
        self.response_json = response_json


class ElementNotFoundError(MobileAutoError):
    """Raised (or recorded) when a lookup matched nothing within its timeout."""

    def __init__(self, description: str, timeout: float):
        self.description = description
        self.timeout = timeout
        super().__init__(f"Element {description} not found within {timeout}s")


class ElementNotVisibleError(MobileAutoError):
    """Raised (or recorded) when an element exists but is not displayed."""

    def __init__(self, description: str, timeout: float):
        self.description = description
        self.timeout = timeout
        super().__init__(f"Element {description} not displayed within {timeout}s")


class ResolutionFailure(MobileAutoError):
    """
    Raised when an element never became available after all attempts.

    Contains every attempt made so the failing step can show what happened.
    """

    def __init__(
        self,
        description: str,
        attempts: List[ResolutionAttempt],
        timeout: float,
        last_error: Optional[BaseException] = None,
        artifacts: Optional[Dict[str, str]] = None,
    ):
        self.description = description
        self.attempts = attempts
        self.timeout = timeout
        self.last_error = last_error
        self.artifacts = artifacts or {}
        super().__init__(self.__str__())

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    def __str__(self) -> str:
        lines = [
            f"ResolutionFailure: failed to locate {self.description} "
            f"after {self.attempt_count} attempts (timeout={self.timeout}s)",
        ]
        if self.last_error is not None:
            lines.append(f"Last error: {type(self.last_error).__name__}: {self.last_error}")
        if self.attempts:
            lines.append("Attempts:")
            for a in self.attempts:
                lines.append(f"  {a.number}. {a.kind} after {a.elapsed:.2f}s err={a.error}")
        if self.artifacts:
            lines.append(f"Artifacts: {self.artifacts}")
        return "\n".join(lines)


class ConditionTimeout(MobileAutoError):
    """Raised when a polled condition never held within its attempt budget."""

    def __init__(self, description: str, attempt_count: int, elapsed: Optional[float] = None):
        self.description = description
        self.attempt_count = attempt_count
        self.elapsed = elapsed
        msg = f"Condition not met after {attempt_count} attempts: {description}"
        if elapsed is not None:
            msg += f" [Elapsed: {elapsed:.2f}s]"
        super().__init__(msg)


class ActionError(MobileAutoError):
    """
    Raised when a page action fails.

    Contains information about the action, target element,
    and the underlying cause.
    """

    def __init__(
        self,
        action: str,
        element_name: Optional[str] = None,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.action = action
        self.element_name = element_name
        self.details = details
        self.cause = cause
        self.trace: Optional[str] = None
        super().__init__(self.__str__())

    def __str__(self) -> str:
        base = f"ActionError: action='{self.action}'"
        if self.element_name:
            base += f" element='{self.element_name}'"
        if self.details:
            base += f" details='{self.details}'"
        if self.cause:
            base += f" cause='{type(self.cause).__name__}: {self.cause}'"
        return base

    def get_cause_traceback(self) -> str:
        """Formatted traceback of the wrapped cause, or "" when there is none."""
        if self.cause is None:
            return ""
        return "".join(traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__))
