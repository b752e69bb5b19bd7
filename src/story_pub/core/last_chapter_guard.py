"""Advisory check used to strengthen hide/delete confirmations."""

from __future__ import annotations

from collections.abc import Iterable

from story_pub.core.visibility import is_qualifying_visible, qualifying_visible_count
from story_pub.domain.models import Chapter


def is_last_qualifying(chapter: Chapter, story_chapters: Iterable[Chapter]) -> bool:
    """True when `chapter` alone keeps its story eligible to stay published.

    The answer can be stale by the time a hide/delete runs; the publication
    transition recomputed inside the write is what actually decides auto-draft.
    """
    if not is_qualifying_visible(chapter):
        return False
    return qualifying_visible_count(story_chapters) == 1
