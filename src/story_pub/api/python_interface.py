"""Python-first client for the story_pub HTTP API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from story_pub.api.contracts import (
    ChapterCreateRequest,
    ChapterDeleteResponse,
    ChapterResponse,
    ChapterUpdateRequest,
    ChapterWriteResponse,
    PublishStoryResponse,
    SlotStateResponse,
    StoryCreateRequest,
    StoryResponse,
)
from story_pub.domain.models import ChapterKind, Visibility

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LastChapterCheck:
    """Advisory guard answer; `checked=False` means fall back to a generic confirmation."""

    is_last: bool
    checked: bool


class StoryPublishingClient:
    """Tiny typed API client for Python users."""

    def __init__(self, api_base_url: str = "http://127.0.0.1:8000", timeout: float = 30.0) -> None:
        """Initialize client with an API base URL."""
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout

    @property
    def api_base_url(self) -> str:
        """Return normalized API base URL."""
        return self._api_base_url

    def _url(self, path: str) -> str:
        return f"{self._api_base_url}{path}"

    def _post(self, path: str, payload: dict[str, Any] | None = None) -> httpx.Response:
        response = httpx.post(self._url(path), json=payload, timeout=self._timeout)
        response.raise_for_status()
        return response

    def create_story(self, *, title: str) -> StoryResponse:
        """Create a draft story."""
        request = StoryCreateRequest(title=title)
        response = self._post("/api/v1/stories", request.model_dump(mode="json"))
        return StoryResponse.model_validate(response.json())

    def get_story(self, *, story_id: str) -> StoryResponse:
        response = httpx.get(self._url(f"/api/v1/stories/{story_id}"), timeout=self._timeout)
        response.raise_for_status()
        return StoryResponse.model_validate(response.json())

    def fetch_slot_state(
        self, *, story_id: str, excluding_chapter_id: str | None = None
    ) -> SlotStateResponse:
        """Load free slots to pre-fill a chapter form."""
        params = {"excluding_chapter_id": excluding_chapter_id} if excluding_chapter_id else None
        response = httpx.get(
            self._url(f"/api/v1/stories/{story_id}/slots"),
            params=params,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return SlotStateResponse.model_validate(response.json())

    def list_chapters(self, *, story_id: str) -> list[ChapterResponse]:
        response = httpx.get(
            self._url(f"/api/v1/stories/{story_id}/chapters"), timeout=self._timeout
        )
        response.raise_for_status()
        return [ChapterResponse.model_validate(item) for item in response.json()]

    def create_chapter(
        self,
        *,
        story_id: str,
        kind: ChapterKind,
        title: str,
        number: int | None = None,
        visibility: Visibility = "published",
    ) -> ChapterWriteResponse:
        """Create a chapter; HTTP 409 means the requested slot is taken."""
        request = ChapterCreateRequest(
            kind=kind,
            number=number,
            visibility=visibility,
            title=title,
        )
        response = self._post(
            f"/api/v1/stories/{story_id}/chapters", request.model_dump(mode="json")
        )
        return ChapterWriteResponse.model_validate(response.json())

    def update_chapter(
        self,
        *,
        chapter_id: str,
        kind: ChapterKind,
        number: int | None = None,
        visibility: Visibility | None = None,
        title: str | None = None,
    ) -> ChapterWriteResponse:
        request = ChapterUpdateRequest(
            kind=kind,
            number=number,
            visibility=visibility,
            title=title,
        )
        response = httpx.put(
            self._url(f"/api/v1/chapters/{chapter_id}"),
            json=request.model_dump(mode="json", exclude_none=True),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return ChapterWriteResponse.model_validate(response.json())

    def unpublish_chapter(self, *, chapter_id: str) -> ChapterWriteResponse:
        response = self._post(f"/api/v1/chapters/{chapter_id}/unpublish")
        return ChapterWriteResponse.model_validate(response.json())

    def delete_chapter(self, *, chapter_id: str) -> ChapterDeleteResponse:
        """Delete a chapter; HTTP 404 on a repeat delete means refresh, not retry."""
        response = httpx.delete(
            self._url(f"/api/v1/chapters/{chapter_id}"), timeout=self._timeout
        )
        response.raise_for_status()
        return ChapterDeleteResponse.model_validate(response.json())

    def publish_story(self, *, story_id: str) -> PublishStoryResponse:
        """Explicitly publish a story; safe to repeat."""
        response = self._post(f"/api/v1/stories/{story_id}/publish")
        return PublishStoryResponse.model_validate(response.json())

    def check_last_qualifying(self, *, chapter_id: str) -> LastChapterCheck:
        """Ask whether hiding/deleting this chapter would auto-draft its story.

        Transport failures and server errors degrade to an unchecked answer so
        the caller can still show a plain confirmation.
        """
        try:
            response = httpx.get(
                self._url(f"/api/v1/chapters/{chapter_id}/last-qualifying"),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code < 500:
                raise
            logger.warning(
                "guard.unavailable chapter_id=%s status=%s", chapter_id, exc.response.status_code
            )
            return LastChapterCheck(is_last=False, checked=False)
        except httpx.TransportError as exc:
            logger.warning("guard.unavailable chapter_id=%s error=%s", chapter_id, exc)
            return LastChapterCheck(is_last=False, checked=False)
        payload = response.json()
        return LastChapterCheck(is_last=bool(payload["is_last"]), checked=True)


__all__ = ["LastChapterCheck", "StoryPublishingClient"]
