"""Classify a starting game as platform-integrated or standalone."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .models import ApplicationRecord, LaunchClass

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM_MARKERS: tuple[str, ...] = ("steam",)


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def classify_launch(
    entity: ApplicationRecord,
    markers: Iterable[str] = DEFAULT_PLATFORM_MARKERS,
) -> LaunchClass:
    """
    Decide which start delay applies to ``entity``.

    For each platform marker (``steam`` by default) the entity is
    platform-integrated when its library source names the platform, a launch
    action uses the ``<marker>://`` protocol, or the install directory sits in
    a ``<marker>apps`` library folder.
    """
    try:
        for marker in markers:
            marker = marker.lower()
            if _contains(entity.source, marker):
                return LaunchClass.PLATFORM
            if any(_contains(action.path, f"{marker}://") for action in entity.launch_actions):
                return LaunchClass.PLATFORM
            if _contains(entity.install_directory, f"{marker}apps"):
                return LaunchClass.PLATFORM
    except (AttributeError, TypeError) as exc:  # policy_guard: allow-silent-handler
        logger.debug("Error determining if game is platform-based: %s", exc)
    return LaunchClass.STANDALONE


__all__ = ["DEFAULT_PLATFORM_MARKERS", "classify_launch"]
