# tests/fakes.py
"""
In-memory RemoteSession that records lookups and pauses.
"""

import io
import threading

from PIL import Image

from mobileauto.interfaces import RemoteSession


def png_bytes(size=(4, 4), color=(255, 0, 0)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeElement:
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f"FakeElement({self.name!r})"


class FakeSession(RemoteSession):
    """
    Scripted session. `script[selector]` is a list of outcomes consumed one
    per locate call (the last one repeats): a FakeElement, None, or an
    exception instance to raise.
    """

    def __init__(self):
        self.script = {}
        self.hidden = set()
        self.texts = {}
        self.locate_calls = []
        self.sleeps = []
        self.clicks = []
        self.screenshot_data = png_bytes()
        self.on_locate = None
        self._lock = threading.Lock()

    def add(self, selector, *outcomes):
        self.script[selector] = list(outcomes)
        return outcomes[0] if outcomes else None

    def locate(self, descriptor, timeout):
        with self._lock:
            self.locate_calls.append(descriptor.selector)
            outcomes = self.script.get(descriptor.selector, [None])
            outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if self.on_locate is not None:
            self.on_locate(descriptor)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def is_visible(self, handle):
        return handle not in self.hidden

    def click(self, handle):
        self.clicks.append(handle)

    def get_text(self, handle):
        return self.texts.get(handle, "")

    def set_value(self, handle, text):
        self.texts[handle] = self.texts.get(handle, "") + text

    def clear(self, handle):
        self.texts[handle] = ""

    def sleep(self, seconds):
        with self._lock:
            self.sleeps.append(seconds)

    def screenshot(self):
        if isinstance(self.screenshot_data, BaseException):
            raise self.screenshot_data
        return self.screenshot_data

    def locate_count(self, selector):
        return self.locate_calls.count(selector)
