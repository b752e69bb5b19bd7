"""Typed contracts shared by API handlers and Python interfaces."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from story_pub.core.ordering import order_key
from story_pub.domain.models import (
    Chapter,
    ChapterDeleteResult,
    ChapterKind,
    ChapterSlot,
    ChapterWriteResult,
    PublishResult,
    SlotState,
    Story,
    StoryStatus,
    Visibility,
    slot_from_kind,
)


class ContractModel(BaseModel):
    """Base model config used by all API contracts."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class StoryCreateRequest(ContractModel):
    """Create a draft story."""

    title: str = Field(min_length=1, max_length=300)


class StoryResponse(ContractModel):
    """Stored story as returned by the API."""

    story_id: str
    title: str
    status: StoryStatus
    created_at_utc: str
    updated_at_utc: str


class ChapterSlotRequest(ContractModel):
    """Requested slot; `number` is only read for regular chapters."""

    kind: ChapterKind
    number: int | None = Field(default=None, ge=1, strict=True)

    @model_validator(mode="after")
    def _validate_number_for_kind(self) -> ChapterSlotRequest:
        if self.kind == "chapter" and self.number is None:
            raise ValueError("Chapter number is required.")
        if self.kind != "chapter":
            self.number = None
        return self

    def slot(self) -> ChapterSlot:
        return slot_from_kind(self.kind, self.number)


class ChapterCreateRequest(ChapterSlotRequest):
    """Create a chapter in a free slot."""

    visibility: Visibility = "published"
    title: str = Field(min_length=1, max_length=300)


class ChapterUpdateRequest(ChapterSlotRequest):
    """Edit a chapter; omitting `visibility` or `title` keeps the stored value."""

    visibility: Visibility | None = None
    title: str | None = Field(default=None, min_length=1, max_length=300)


class ChapterResponse(ContractModel):
    """Stored chapter with its derived display order key."""

    chapter_id: str
    story_id: str
    kind: ChapterKind
    number: int | None
    order_key: int
    visibility: Visibility
    title: str
    created_at_utc: str
    updated_at_utc: str


class SlotStateResponse(ContractModel):
    """Free slots for the chapter form."""

    story_id: str
    available_numbers: list[int]
    suggested_number: int
    prologue_taken: bool
    epilogue_taken: bool


class LastQualifyingResponse(ContractModel):
    """Advisory flag for stronger hide/delete confirmation copy."""

    chapter_id: str
    is_last: bool


class ChapterWriteResponse(ContractModel):
    """Chapter create/update result with story status signals."""

    chapter: ChapterResponse
    story_status_after: StoryStatus
    publish_prompt: bool
    auto_drafted: bool


class ChapterDeleteResponse(ContractModel):
    """Chapter delete result with story status signals."""

    chapter_id: str
    story_id: str
    story_status_after: StoryStatus
    auto_drafted: bool


class PublishStoryResponse(ContractModel):
    """Explicit publish result."""

    story_id: str
    story_status_after: StoryStatus
    changed: bool


class SlotErrorDetail(ContractModel):
    """Field-level slot error payload returned with HTTP 409."""

    field: Literal["kind", "number", "visibility"]
    message: str


def story_response(story: Story) -> StoryResponse:
    return StoryResponse(
        story_id=story.story_id,
        title=story.title,
        status=story.status,
        created_at_utc=story.created_at_utc,
        updated_at_utc=story.updated_at_utc,
    )


def chapter_response(chapter: Chapter) -> ChapterResponse:
    return ChapterResponse(
        chapter_id=chapter.chapter_id,
        story_id=chapter.story_id,
        kind=chapter.kind,
        number=chapter.number,
        order_key=order_key(chapter.slot),
        visibility=chapter.visibility,
        title=chapter.title,
        created_at_utc=chapter.created_at_utc,
        updated_at_utc=chapter.updated_at_utc,
    )


def slot_state_response(story_id: str, state: SlotState) -> SlotStateResponse:
    return SlotStateResponse(
        story_id=story_id,
        available_numbers=sorted(state.available_numbers),
        suggested_number=state.suggested_number,
        prologue_taken=state.prologue_taken,
        epilogue_taken=state.epilogue_taken,
    )


def chapter_write_response(result: ChapterWriteResult) -> ChapterWriteResponse:
    return ChapterWriteResponse(
        chapter=chapter_response(result.chapter),
        story_status_after=result.story_status_after,
        publish_prompt=result.publish_prompt,
        auto_drafted=result.auto_drafted,
    )


def chapter_delete_response(result: ChapterDeleteResult) -> ChapterDeleteResponse:
    return ChapterDeleteResponse(
        chapter_id=result.chapter_id,
        story_id=result.story_id,
        story_status_after=result.story_status_after,
        auto_drafted=result.auto_drafted,
    )


def publish_story_response(result: PublishResult) -> PublishStoryResponse:
    return PublishStoryResponse(
        story_id=result.story_id,
        story_status_after=result.story_status_after,
        changed=result.changed,
    )
