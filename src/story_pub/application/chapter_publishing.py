"""Chapter create/update/delete orchestration with story status bookkeeping."""

from __future__ import annotations

import logging

from story_pub.core.last_chapter_guard import is_last_qualifying
from story_pub.core.ordering import exceeds_convention, sort_chapters
from story_pub.core.publication import (
    ChapterEvent,
    ChapterEventKind,
    Transition,
    apply_chapter_event,
    publish,
)
from story_pub.core.slot_allocator import slot_state, validate_slot
from story_pub.core.visibility import qualifying_visible_count
from story_pub.domain.errors import InvalidSlotError, NotFoundError
from story_pub.domain.models import (
    Chapter,
    ChapterDeleteResult,
    ChapterSlot,
    ChapterWriteResult,
    PublishResult,
    SlotState,
    Story,
    Visibility,
)
from story_pub.domain.ports import StoryRepository, StoryUnitOfWork

logger = logging.getLogger(__name__)


class ChapterPublishingService:
    """Entry points used by the presentation layer for chapter and story writes.

    Every chapter write runs inside the store's per-story transaction so the
    qualifying counts before and after the write come from one consistent
    snapshot, and the resulting story status change commits with the chapter.
    """

    def __init__(self, store: StoryRepository) -> None:
        self._store = store

    def create_story(self, *, title: str) -> Story:
        story = self._store.create_story(title=title)
        logger.info("story.create story_id=%s", story.story_id)
        return story

    def get_story(self, story_id: str) -> Story:
        story = self._store.get_story(story_id=story_id)
        if story is None:
            raise NotFoundError("story", story_id)
        return story

    def get_chapter(self, chapter_id: str) -> Chapter:
        chapter = self._store.get_chapter(chapter_id=chapter_id)
        if chapter is None:
            raise NotFoundError("chapter", chapter_id)
        return chapter

    def list_chapters(self, story_id: str) -> list[Chapter]:
        """All chapters of a story in display order, whatever their visibility."""
        self.get_story(story_id)
        return sort_chapters(self._store.list_chapters(story_id=story_id))

    def reader_chapters(self, story_id: str) -> list[Chapter]:
        """Chapters a reader may see: none while the story is a draft."""
        story = self.get_story(story_id)
        if story.status != "published":
            return []
        chapters = self._store.list_chapters(story_id=story_id)
        return sort_chapters(chapter for chapter in chapters if chapter.is_published)

    def fetch_slot_state(self, story_id: str, excluding_chapter_id: str | None = None) -> SlotState:
        self.get_story(story_id)
        return slot_state(self._store.list_chapters(story_id=story_id), excluding_chapter_id)

    def check_last_qualifying(self, chapter_id: str) -> bool:
        """Advisory, non-locking read for confirmation dialogs."""
        chapter = self.get_chapter(chapter_id)
        return is_last_qualifying(chapter, self._store.list_chapters(story_id=chapter.story_id))

    def create_chapter(
        self,
        story_id: str,
        *,
        slot: ChapterSlot,
        visibility: Visibility,
        title: str = "",
    ) -> ChapterWriteResult:
        with self._store.story_transaction(story_id) as unit:
            story = unit.get_story()
            chapters = unit.list_chapters()
            validate_slot(chapters, slot)
            before = qualifying_visible_count(chapters)
            chapter = unit.insert_chapter(slot=slot, visibility=visibility, title=title)
            transition = self._settle(
                unit,
                story,
                kind="chapter_created",
                chapter_id=chapter.chapter_id,
                before=before,
            )
        self._warn_unconventional(chapter)
        logger.info(
            "chapter.create story_id=%s chapter_id=%s kind=%s number=%s visibility=%s",
            story_id,
            chapter.chapter_id,
            chapter.kind,
            chapter.number,
            chapter.visibility,
        )
        return ChapterWriteResult(
            chapter=chapter,
            story_status_after=transition.status_after,
            publish_prompt=transition.publish_prompt,
            auto_drafted=transition.auto_drafted,
        )

    def update_chapter(
        self,
        chapter_id: str,
        *,
        slot: ChapterSlot,
        visibility: Visibility | None = None,
        title: str | None = None,
    ) -> ChapterWriteResult:
        """Re-slot or re-publish a chapter; `None` keeps the stored visibility or title."""
        story_id = self.get_chapter(chapter_id).story_id
        with self._store.story_transaction(story_id) as unit:
            story = unit.get_story()
            current = self._chapter_in_unit(unit, chapter_id)
            chapters = unit.list_chapters()
            validate_slot(chapters, slot, excluding_chapter_id=chapter_id)
            before = qualifying_visible_count(chapters)
            chapter = unit.update_chapter(
                chapter_id=chapter_id,
                slot=slot,
                visibility=current.visibility if visibility is None else visibility,
                title=current.title if title is None else title,
            )
            transition = self._settle(
                unit,
                story,
                kind="chapter_updated",
                chapter_id=chapter_id,
                before=before,
            )
        self._warn_unconventional(chapter)
        logger.info(
            "chapter.update story_id=%s chapter_id=%s kind=%s number=%s visibility=%s",
            story_id,
            chapter_id,
            chapter.kind,
            chapter.number,
            chapter.visibility,
        )
        return ChapterWriteResult(
            chapter=chapter,
            story_status_after=transition.status_after,
            publish_prompt=transition.publish_prompt,
            auto_drafted=transition.auto_drafted,
        )

    def unpublish_chapter(self, chapter_id: str) -> ChapterWriteResult:
        """Hide one published chapter, keeping its slot and title."""
        story_id = self.get_chapter(chapter_id).story_id
        with self._store.story_transaction(story_id) as unit:
            story = unit.get_story()
            current = self._chapter_in_unit(unit, chapter_id)
            if not current.is_published:
                raise InvalidSlotError("visibility", "Only published chapters can be unpublished.")
            before = qualifying_visible_count(unit.list_chapters())
            chapter = unit.update_chapter(
                chapter_id=chapter_id,
                slot=current.slot,
                visibility="hidden",
                title=current.title,
            )
            transition = self._settle(
                unit,
                story,
                kind="chapter_updated",
                chapter_id=chapter_id,
                before=before,
            )
        logger.info("chapter.unpublish story_id=%s chapter_id=%s", story_id, chapter_id)
        return ChapterWriteResult(
            chapter=chapter,
            story_status_after=transition.status_after,
            publish_prompt=transition.publish_prompt,
            auto_drafted=transition.auto_drafted,
        )

    def delete_chapter(self, chapter_id: str) -> ChapterDeleteResult:
        story_id = self.get_chapter(chapter_id).story_id
        with self._store.story_transaction(story_id) as unit:
            story = unit.get_story()
            before = qualifying_visible_count(unit.list_chapters())
            if not unit.delete_chapter(chapter_id):
                raise NotFoundError("chapter", chapter_id)
            transition = self._settle(
                unit,
                story,
                kind="chapter_deleted",
                chapter_id=chapter_id,
                before=before,
            )
        logger.info("chapter.delete story_id=%s chapter_id=%s", story_id, chapter_id)
        return ChapterDeleteResult(
            chapter_id=chapter_id,
            story_id=story_id,
            story_status_after=transition.status_after,
            auto_drafted=transition.auto_drafted,
        )

    def publish_story(self, story_id: str) -> PublishResult:
        """Explicit operator publish; a no-op when the story is already published."""
        with self._store.story_transaction(story_id) as unit:
            story = unit.get_story()
            transition = publish(story.status)
            if transition.changed:
                unit.set_story_status(transition.status_after)
        if transition.changed:
            logger.info("story.publish story_id=%s", story_id)
        return PublishResult(
            story_id=story_id,
            story_status_after=transition.status_after,
            changed=transition.changed,
        )

    @staticmethod
    def _chapter_in_unit(unit: StoryUnitOfWork, chapter_id: str) -> Chapter:
        chapter = unit.get_chapter(chapter_id)
        if chapter is None:
            raise NotFoundError("chapter", chapter_id)
        return chapter

    @staticmethod
    def _settle(
        unit: StoryUnitOfWork,
        story: Story,
        *,
        kind: ChapterEventKind,
        chapter_id: str,
        before: int,
    ) -> Transition:
        event = ChapterEvent(
            kind=kind,
            story_id=story.story_id,
            chapter_id=chapter_id,
            qualifying_before=before,
            qualifying_after=qualifying_visible_count(unit.list_chapters()),
        )
        transition = apply_chapter_event(story.status, event)
        if transition.changed:
            unit.set_story_status(transition.status_after)
        if transition.auto_drafted:
            logger.info(
                "story.auto_draft story_id=%s trigger=%s chapter_id=%s",
                story.story_id,
                kind,
                chapter_id,
            )
        elif transition.publish_prompt:
            logger.info(
                "story.publish_prompt story_id=%s trigger=%s chapter_id=%s",
                story.story_id,
                kind,
                chapter_id,
            )
        return transition

    @staticmethod
    def _warn_unconventional(chapter: Chapter) -> None:
        if exceeds_convention(chapter.slot):
            logger.warning(
                "chapter.number_above_convention story_id=%s chapter_id=%s number=%s",
                chapter.story_id,
                chapter.chapter_id,
                chapter.number,
            )
