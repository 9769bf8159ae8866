# mobileauto/context.py
"""
@file context.py
@brief Per-thread stack of running page actions, for step logs and error traces.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .exceptions import ActionError

log = logging.getLogger("mobileauto.actions")

_local = threading.local()


@dataclass
class ActionFrame:
    """One running page action; nested actions point at their caller."""
    name: str
    element: Optional[str] = None
    parent: Optional[ActionFrame] = None
    started: float = field(default_factory=time.monotonic)

    @property
    def label(self) -> str:
        return f"{self.name} on '{self.element}'" if self.element else self.name

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def path(self) -> str:
        """Outermost action first: "navigate on 'Back' > click on 'Back'"."""
        frames: List[ActionFrame] = []
        frame: Optional[ActionFrame] = self
        while frame is not None:
            frames.append(frame)
            frame = frame.parent
        return " > ".join(f.label for f in reversed(frames))


def current_frame() -> Optional[ActionFrame]:
    return getattr(_local, "frame", None)


def reset() -> None:
    """Forget any frames left on this thread (test cleanup)."""
    _local.frame = None


@contextmanager
def action_frame(name: str, element: Optional[str] = None) -> Iterator[ActionFrame]:
    frame = ActionFrame(name=name, element=element, parent=current_frame())
    _local.frame = frame
    try:
        yield frame
    finally:
        _local.frame = frame.parent


def tracked_action(action_name: Optional[str] = None):
    """
    Run a PageActions method inside an ActionFrame and log one line with its
    outcome. The target's description is used as the element name, and an
    ActionError raised inside gets the action path as its `trace`.
    """
    def decorator(func):
        name = action_name or func.__name__

        @functools.wraps(func)
        def wrapper(self, target=None, *args, **kwargs):
            element = getattr(target, "description", None)
            with action_frame(name, element) as frame:
                try:
                    result = func(self, target, *args, **kwargs)
                except Exception as exc:
                    first_report = isinstance(exc, ActionError) and exc.trace is None
                    if first_report:
                        exc.trace = frame.path()
                        if exc.cause is not None:
                            log.debug("action=%s cause traceback:\n%s", name, exc.get_cause_traceback())
                    log.error(
                        "action=%s element=%s status=error duration_ms=%d path=%s error=%s",
                        name, element, int(frame.elapsed * 1000), frame.path(), exc,
                    )
                    raise
                log.info(
                    "action=%s element=%s status=ok duration_ms=%d",
                    name, element, int(frame.elapsed * 1000),
                )
                return result

        return wrapper

    return decorator
