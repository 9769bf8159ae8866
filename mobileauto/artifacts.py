# mobileauto/artifacts.py
"""
@file artifacts.py
@brief Best-effort diagnostic artifacts (failure screenshots).
"""
from __future__ import annotations

import io
import logging
import os
import re
import time
from typing import Dict, Optional

from PIL import Image

from .interfaces import RemoteSession

log = logging.getLogger("mobileauto.artifacts")


def _ts() -> str:
    """Generate timestamp string for file naming."""
    return time.strftime("%Y%m%d_%H%M%S")


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    os.makedirs(path, exist_ok=True)


def slugify(text: str) -> str:
    """'Eclipse Icon' -> 'eclipse_icon'."""
    slug = re.sub(r"[^a-z0-9]+", "_", (text or "").lower()).strip("_")
    return slug or "element"


def save_png(data: bytes, out_dir: str, name_prefix: str) -> str:
    """
    Decode screenshot bytes with Pillow and write them as PNG.
    Raises if the bytes are not an image.
    """
    ensure_dir(out_dir)
    path = os.path.join(out_dir, f"{name_prefix}_{_ts()}.png")
    with Image.open(io.BytesIO(data)) as img:
        img.save(path, format="PNG")
    return path


def capture_screenshot(session: RemoteSession, out_dir: str, name_prefix: str) -> Optional[str]:
    """
    Try to capture the device screen.
    Returns file path or None if capture fails.
    """
    try:
        return save_png(session.screenshot(), out_dir, name_prefix)
    except Exception as e:
        log.error("Failed to save screenshot '%s': %s: %s", name_prefix, type(e).__name__, e)
        return None


class FailureArtifacts:
    """
    Diagnostic collaborator used by the Resolver on final failure.
    Returns a dict like {"screenshot": "..."} (empty if capture failed).
    """

    def __init__(self, session: RemoteSession, out_dir: str = "screenshots"):
        self.session = session
        self.out_dir = out_dir

    def __call__(self, description: str) -> Dict[str, str]:
        artifacts: Dict[str, str] = {}
        path = capture_screenshot(self.session, self.out_dir, f"error_{slugify(description)}")
        if path:
            log.info("Screenshot saved: %s", path)
            artifacts["screenshot"] = path
        return artifacts
