"""
Privacy masking for compact surfaces (lock screen, widgets, intent replies).

Applied to engine output after aggregation; the engine itself never masks.
"""

from enum import Enum
from typing import Optional

from liveplan.services.summary import Summary

ELLIPSIS = "…"
ANONYMOUS_PROJECT = "Project"


class PrivacyMode(str, Enum):
    FULL = "full"
    ANONYMIZED = "anonymized"
    HIDDEN = "hidden"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + ELLIPSIS


def abbreviate(text: str, visible: int = 3) -> str:
    if len(text) <= visible:
        return text
    return text[:visible] + "***"


def mask_title(
    title: str,
    mode: PrivacyMode,
    index: Optional[int] = None,
    max_length: int = 24,
) -> str:
    """
    Display string for a task title.

    ``index`` is the 1-based position of the occurrence in the list being
    rendered; with it, anonymized titles read "Task 1", "Task 2", ...
    """
    if mode == PrivacyMode.FULL:
        return truncate(title, max_length)
    if mode == PrivacyMode.ANONYMIZED:
        if index is not None:
            return f"Task {index}"
        return abbreviate(title)
    return ""


def mask_project_title(title: str, mode: PrivacyMode, max_length: int = 24) -> str:
    if mode == PrivacyMode.FULL:
        return truncate(title, max_length)
    if mode == PrivacyMode.ANONYMIZED:
        return ANONYMOUS_PROJECT
    return ""


def mask_summary(summary: Summary, mode: PrivacyMode, max_length: int = 24) -> dict:
    """``Summary.to_dict()`` with every display title masked."""
    payload = summary.to_dict()
    for position, item in enumerate(payload["display_list"], start=1):
        item["title"] = mask_title(item["title"], mode, index=position, max_length=max_length)
    return payload
