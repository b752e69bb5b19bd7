"""Chapter slot occupancy and collision checks for one story."""

from __future__ import annotations

from collections.abc import Iterable

from story_pub.domain.errors import InvalidSlotError
from story_pub.domain.models import (
    Chapter,
    ChapterSlot,
    Epilogue,
    Numbered,
    Prologue,
    SlotState,
)

PROLOGUE_TAKEN_MESSAGE = (
    "This story already has a prologue. Only one prologue is allowed per story."
)
EPILOGUE_TAKEN_MESSAGE = (
    "This story already has an epilogue. Only one epilogue is allowed per story."
)


def _other_chapters(
    chapters: Iterable[Chapter], excluding_chapter_id: str | None
) -> list[Chapter]:
    return [chapter for chapter in chapters if chapter.chapter_id != excluding_chapter_id]


def used_numbers(chapters: Iterable[Chapter], excluding_chapter_id: str | None = None) -> set[int]:
    """Numbers held by regular chapters, ignoring the chapter being edited."""
    used: set[int] = set()
    for chapter in _other_chapters(chapters, excluding_chapter_id):
        if isinstance(chapter.slot, Numbered):
            used.add(chapter.slot.number)
    return used


def slot_state(chapters: Iterable[Chapter], excluding_chapter_id: str | None = None) -> SlotState:
    """Compute free slots; available numbers are `{1..max_used+1}` minus used ones."""
    others = _other_chapters(chapters, excluding_chapter_id)
    used = used_numbers(others)
    max_used = max(used, default=0)
    available = frozenset(number for number in range(1, max_used + 2) if number not in used)
    return SlotState(
        available_numbers=available,
        prologue_taken=any(isinstance(chapter.slot, Prologue) for chapter in others),
        epilogue_taken=any(isinstance(chapter.slot, Epilogue) for chapter in others),
    )


def validate_slot(
    chapters: Iterable[Chapter],
    requested: ChapterSlot,
    excluding_chapter_id: str | None = None,
) -> None:
    """Raise `InvalidSlotError` when `requested` collides with another chapter's slot."""
    others = _other_chapters(chapters, excluding_chapter_id)
    if isinstance(requested, Prologue):
        if any(isinstance(chapter.slot, Prologue) for chapter in others):
            raise InvalidSlotError("kind", PROLOGUE_TAKEN_MESSAGE)
        return
    if isinstance(requested, Epilogue):
        if any(isinstance(chapter.slot, Epilogue) for chapter in others):
            raise InvalidSlotError("kind", EPILOGUE_TAKEN_MESSAGE)
        return
    if isinstance(requested, Numbered):
        number = requested.number
        if isinstance(number, bool) or not isinstance(number, int) or number < 1:
            raise InvalidSlotError("number", "Chapter number must be a positive integer.")
        if number in used_numbers(others):
            raise InvalidSlotError(
                "number", f"Chapter number {number} is already used in this story."
            )
        return
    raise TypeError(f"Unsupported chapter slot: {requested!r}")
