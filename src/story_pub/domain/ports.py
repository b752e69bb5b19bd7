"""Ports for story/chapter persistence."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from story_pub.domain.models import Chapter, ChapterSlot, Story, StoryStatus, Visibility


class StoryUnitOfWork(Protocol):
    """Reads and writes for one story inside its serialized write boundary."""

    def get_story(self) -> Story:
        ...

    def list_chapters(self) -> list[Chapter]:
        ...

    def get_chapter(self, chapter_id: str) -> Chapter | None:
        ...

    def insert_chapter(self, *, slot: ChapterSlot, visibility: Visibility, title: str) -> Chapter:
        ...

    def update_chapter(
        self,
        *,
        chapter_id: str,
        slot: ChapterSlot,
        visibility: Visibility,
        title: str,
    ) -> Chapter:
        ...

    def delete_chapter(self, chapter_id: str) -> bool:
        ...

    def set_story_status(self, status: StoryStatus) -> Story:
        ...


class StoryRepository(Protocol):
    """Persists stories and chapters with per-story serialized writes."""

    def create_story(self, *, title: str) -> Story:
        ...

    def get_story(self, *, story_id: str) -> Story | None:
        ...

    def get_chapter(self, *, chapter_id: str) -> Chapter | None:
        ...

    def list_chapters(self, *, story_id: str) -> list[Chapter]:
        ...

    def story_transaction(self, story_id: str) -> AbstractContextManager[StoryUnitOfWork]:
        ...
