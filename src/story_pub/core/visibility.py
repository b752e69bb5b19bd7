"""Aggregate chapter visibility into story publication eligibility."""

from __future__ import annotations

from collections.abc import Iterable

from story_pub.domain.models import Chapter, ChapterSlot, Epilogue, Numbered, Prologue


def is_qualifying_slot(slot: ChapterSlot) -> bool:
    """Prologues and regular chapters qualify; epilogues never do."""
    if isinstance(slot, (Prologue, Numbered)):
        return True
    if isinstance(slot, Epilogue):
        return False
    raise TypeError(f"Unsupported chapter slot: {slot!r}")


def is_qualifying_visible(chapter: Chapter) -> bool:
    return is_qualifying_slot(chapter.slot) and chapter.is_published


def qualifying_visible_count(chapters: Iterable[Chapter]) -> int:
    """Count published prologue/regular chapters from the given snapshot."""
    return sum(1 for chapter in chapters if is_qualifying_visible(chapter))
