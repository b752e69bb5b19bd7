"""Story publication state transitions driven by chapter mutations.

A story is demoted to draft when its last published prologue/regular chapter
goes away. The reverse never happens automatically: when the first qualifying
chapter appears on a draft story, the transition only raises a publish prompt
and leaves promotion to an explicit operator action.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from story_pub.domain.models import StoryStatus

ChapterEventKind = Literal["chapter_created", "chapter_updated", "chapter_deleted"]


@dataclass(frozen=True)
class ChapterEvent:
    """One chapter mutation with qualifying counts captured around it."""

    kind: ChapterEventKind
    story_id: str
    chapter_id: str
    qualifying_before: int
    qualifying_after: int


@dataclass(frozen=True)
class Transition:
    """Result of applying one chapter event to a story status."""

    status_before: StoryStatus
    status_after: StoryStatus
    auto_drafted: bool = False
    publish_prompt: bool = False

    @property
    def changed(self) -> bool:
        return self.status_before != self.status_after


def apply_chapter_event(status: StoryStatus, event: ChapterEvent) -> Transition:
    """Compute the next story status for one chapter event."""
    before = event.qualifying_before
    after = event.qualifying_after
    if after == 0 and status == "published":
        return Transition(status_before=status, status_after="draft", auto_drafted=True)
    if before == 0 and after >= 1 and status == "draft":
        return Transition(status_before=status, status_after=status, publish_prompt=True)
    return Transition(status_before=status, status_after=status)


def publish(status: StoryStatus) -> Transition:
    """Explicit operator publish; idempotent and does not re-check chapters."""
    return Transition(status_before=status, status_after="published")
