# mobileauto/actions.py
"""
@file actions.py
@brief Page-level action library built on the Resolver.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence

from .context import tracked_action
from .descriptor import ElementDescriptor
from .exceptions import ActionError, InvalidArgument, MobileAutoError
from .resolver import Resolver


def require_text(value: Any, name: str = "text") -> str:
    """Return the stripped text, or raise InvalidArgument if empty/blank."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"Invalid {name} parameter: must be a non-empty string")
    return value.strip()


class PageActions:
    """
    Keyword action library providing high-level page operations.

    All methods resolve descriptors through the Resolver, delegate to the
    RemoteSession, and wrap unexpected errors in ActionError. Framework
    errors (ResolutionFailure, ConditionTimeout, InvalidArgument) propagate
    unchanged.
    """

    def __init__(self, resolver: Resolver):
        """
        @param resolver Element resolver instance
        """
        self.resolver = resolver

    @property
    def session(self):
        return self.resolver.session

    @tracked_action("click")
    def click(self, target: ElementDescriptor, timeout: Optional[float] = None) -> None:
        """Click element."""
        try:
            handle = self.resolver.resolve(target, timeout=timeout)
            self.session.click(handle)
        except MobileAutoError:
            raise
        except Exception as e:
            raise ActionError("click", element_name=target.description, cause=e) from e

    @tracked_action("get_text")
    def get_text(self, target: ElementDescriptor, timeout: Optional[float] = None) -> str:
        """Return element text."""
        try:
            handle = self.resolver.resolve(target, timeout=timeout)
            return self.session.get_text(handle)
        except MobileAutoError:
            raise
        except Exception as e:
            raise ActionError("get_text", element_name=target.description, cause=e) from e

    @tracked_action("is_displayed")
    def is_displayed(self, target: ElementDescriptor, timeout: Optional[float] = None) -> bool:
        """Resolve element and report whether it is currently displayed."""
        try:
            handle = self.resolver.resolve(target, timeout=timeout)
            return bool(self.session.is_visible(handle))
        except MobileAutoError:
            raise
        except Exception as e:
            raise ActionError("is_displayed", element_name=target.description, cause=e) from e

    @tracked_action("set_value")
    def set_value(
        self,
        target: ElementDescriptor,
        text: str,
        verify: bool = True,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Clear the element and type text into it.

        The text is validated before any lookup; blank input raises
        InvalidArgument. With verify=True the element text must contain the
        typed value afterwards.
        """
        value = require_text(text)
        try:
            handle = self.resolver.resolve(target, timeout=timeout)
            self.session.clear(handle)
            self.session.set_value(handle, value)
            if verify:
                entered = self.session.get_text(handle) or ""
                if value not in entered:
                    raise ActionError(
                        "set_value",
                        element_name=target.description,
                        details=f"Expected: {value!r}, Got: {entered!r}",
                    )
        except MobileAutoError:
            raise
        except Exception as e:
            raise ActionError("set_value", element_name=target.description, cause=e) from e

    @tracked_action("verify_displayed")
    def verify_displayed(self, target: ElementDescriptor, timeout: Optional[float] = None) -> None:
        """Raise ActionError unless the element is displayed."""
        if not self.is_displayed(target, timeout=timeout):
            raise ActionError(
                "verify_displayed",
                element_name=target.description,
                details=f"{target.description} is not displayed",
            )

    @tracked_action("verify_text")
    def verify_text(self, target: ElementDescriptor, expected: str, timeout: Optional[float] = None) -> str:
        """Raise ActionError unless the trimmed element text equals expected."""
        wanted = require_text(expected, "expected")
        actual = (self.get_text(target, timeout=timeout) or "").strip()
        if actual != wanted:
            raise ActionError(
                "verify_text",
                element_name=target.description,
                details=f'Expected "{wanted}", but got "{actual}"',
            )
        return actual

    @tracked_action("click_first_visible")
    def click_first_visible(self, targets: Sequence[ElementDescriptor], timeout: Optional[float] = None) -> ElementDescriptor:
        """
        Try fallback descriptors in order and click the first visible one.
        Nothing is cached or retried.

        @return The descriptor that matched
        @throws ActionError if none of the descriptors is visible
        """
        candidates = list(targets)
        if not candidates:
            raise InvalidArgument("click_first_visible needs at least one descriptor")

        for candidate in candidates:
            handle = self.resolver.find_visible(candidate, timeout=timeout)
            if handle is None:
                self.resolver.log.info("Selector failed: %s", candidate)
                continue
            try:
                self.session.click(handle)
            except MobileAutoError:
                raise
            except Exception as e:
                raise ActionError("click_first_visible", element_name=candidate.description, cause=e) from e
            self.resolver.log.info("Clicked %s", candidate)
            return candidate

        raise ActionError(
            "click_first_visible",
            element_name=candidates[0].description,
            details=f"none of {len(candidates)} selectors matched a visible element",
        )

    @tracked_action("navigate")
    def navigate(self, target: ElementDescriptor, timeout: Optional[float] = None) -> int:
        """
        Click an element that changes screens and drop the element cache.

        @return number of cache entries dropped
        """
        self.click(target, timeout=timeout)
        return self.resolver.invalidate()

    @tracked_action("wait_for_visible")
    def wait_for_visible(
        self,
        target: ElementDescriptor,
        max_attempts: Optional[int] = None,
        initial_delay: Optional[float] = None,
    ) -> Any:
        """
        Poll for the element with doubling delays (uncached lookups).

        @return The visible handle
        @throws ConditionTimeout if the element never became visible
        """
        return self.resolver.await_condition(
            lambda: self.resolver.find_visible(target),
            max_attempts=max_attempts,
            initial_delay=initial_delay,
            description=f"{target.description} to be displayed",
        )
