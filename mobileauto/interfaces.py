# mobileauto/interfaces.py
"""
@file interfaces.py
@brief Abstract collaborator interfaces for the resolution layer.

The Resolver only talks to a RemoteSession; the concrete transport (Appium
over HTTP, BrowserStack, or an in-memory fake) is supplied by the caller.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from .descriptor import ElementDescriptor


class RemoteSession(ABC):
    """
    Abstract device-automation session.

    Element handles returned by `locate` are opaque to the resolution
    layer; they are only ever passed back into this session.
    """

    @abstractmethod
    def locate(self, descriptor: ElementDescriptor, timeout: float) -> Optional[Any]:
        """
        Locate an element, waiting at most `timeout` seconds.

        Args:
            descriptor: Element descriptor (strategy + selector)
            timeout: Upper bound in seconds for the lookup

        Returns:
            Element handle, or None if nothing matched in time

        Raises:
            RemoteSessionError: transport-level failure
        """
        pass

    @abstractmethod
    def is_visible(self, handle: Any) -> bool:
        """Return True if the element is currently displayed."""
        pass

    @abstractmethod
    def click(self, handle: Any) -> None:
        """Click (tap) the element."""
        pass

    @abstractmethod
    def get_text(self, handle: Any) -> str:
        """Return the element text."""
        pass

    @abstractmethod
    def set_value(self, handle: Any, text: str) -> None:
        """Type `text` into the element."""
        pass

    @abstractmethod
    def clear(self, handle: Any) -> None:
        """Clear the element's current value."""
        pass

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Cooperative pause."""
        pass

    @abstractmethod
    def screenshot(self) -> bytes:
        """Return a PNG screenshot of the device screen."""
        pass
