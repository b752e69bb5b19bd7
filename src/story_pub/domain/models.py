"""Core story and chapter domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Visibility = Literal["published", "hidden"]
StoryStatus = Literal["draft", "published"]
ChapterKind = Literal["prologue", "chapter", "epilogue"]


@dataclass(frozen=True)
class Prologue:
    """The single optional opening slot of a story."""


@dataclass(frozen=True)
class Numbered:
    """A regular chapter identified by its author-facing number."""

    number: int


@dataclass(frozen=True)
class Epilogue:
    """The single optional closing slot of a story."""


ChapterSlot = Prologue | Numbered | Epilogue


def slot_kind(slot: ChapterSlot) -> ChapterKind:
    """Return the storage/wire name for one slot variant."""
    if isinstance(slot, Prologue):
        return "prologue"
    if isinstance(slot, Numbered):
        return "chapter"
    if isinstance(slot, Epilogue):
        return "epilogue"
    raise TypeError(f"Unsupported chapter slot: {slot!r}")


def slot_from_kind(kind: str, number: int | None = None) -> ChapterSlot:
    """Build a slot from its wire name; `number` is only read for regular chapters."""
    if kind == "prologue":
        return Prologue()
    if kind == "epilogue":
        return Epilogue()
    if kind == "chapter":
        if number is None:
            raise ValueError("Regular chapters require a number.")
        return Numbered(number=number)
    raise ValueError(f"Unknown chapter kind: {kind!r}")


@dataclass(frozen=True)
class Story:
    """Parent story whose status is derived from its chapters."""

    story_id: str
    title: str
    status: StoryStatus
    created_at_utc: str
    updated_at_utc: str


@dataclass(frozen=True)
class Chapter:
    """One chapter occupying a slot of its story."""

    chapter_id: str
    story_id: str
    slot: ChapterSlot
    visibility: Visibility
    title: str = ""
    created_at_utc: str = ""
    updated_at_utc: str = ""

    @property
    def kind(self) -> ChapterKind:
        return slot_kind(self.slot)

    @property
    def number(self) -> int | None:
        if isinstance(self.slot, Numbered):
            return self.slot.number
        return None

    @property
    def is_published(self) -> bool:
        return self.visibility == "published"


@dataclass(frozen=True)
class SlotState:
    """Which slots are still free for a story."""

    available_numbers: frozenset[int]
    prologue_taken: bool
    epilogue_taken: bool

    @property
    def suggested_number(self) -> int:
        """Default number to pre-fill for a new regular chapter."""
        return min(self.available_numbers)


@dataclass(frozen=True)
class ChapterWriteResult:
    """Outcome of creating or updating a chapter."""

    chapter: Chapter
    story_status_after: StoryStatus
    publish_prompt: bool = False
    auto_drafted: bool = False


@dataclass(frozen=True)
class ChapterDeleteResult:
    """Outcome of deleting a chapter."""

    chapter_id: str
    story_id: str
    story_status_after: StoryStatus
    auto_drafted: bool = False


@dataclass(frozen=True)
class PublishResult:
    """Outcome of an explicit operator publish."""

    story_id: str
    story_status_after: StoryStatus
    changed: bool
