"""Display ordering for prologue, numbered chapters, and epilogue."""

from __future__ import annotations

from collections.abc import Iterable

from story_pub.domain.models import Chapter, ChapterSlot, Epilogue, Numbered, Prologue

PROLOGUE_ORDER_KEY = 0
EPILOGUE_ORDER_KEY = 1000
# Numbered chapters are conventionally kept below the epilogue sentinel.
CONVENTIONAL_MAX_NUMBER = EPILOGUE_ORDER_KEY - 1


def order_key(slot: ChapterSlot) -> int:
    """Derived sort key; never stored as the chapter's number."""
    if isinstance(slot, Prologue):
        return PROLOGUE_ORDER_KEY
    if isinstance(slot, Numbered):
        return slot.number
    if isinstance(slot, Epilogue):
        return EPILOGUE_ORDER_KEY
    raise TypeError(f"Unsupported chapter slot: {slot!r}")


def _kind_rank(slot: ChapterSlot) -> int:
    if isinstance(slot, Prologue):
        return 0
    if isinstance(slot, Numbered):
        return 1
    if isinstance(slot, Epilogue):
        return 2
    raise TypeError(f"Unsupported chapter slot: {slot!r}")


def sort_chapters(chapters: Iterable[Chapter]) -> list[Chapter]:
    """Sort chapters by order key; kind rank breaks a tie at the epilogue sentinel."""
    return sorted(chapters, key=lambda chapter: (order_key(chapter.slot), _kind_rank(chapter.slot)))


def exceeds_convention(slot: ChapterSlot) -> bool:
    return isinstance(slot, Numbered) and slot.number > CONVENTIONAL_MAX_NUMBER
