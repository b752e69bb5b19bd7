"""FastAPI application for chapter slot and story publication workflows."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from story_pub.adapters.sqlite_story_store import SQLiteStoryStore
from story_pub.api.contracts import (
    ChapterCreateRequest,
    ChapterDeleteResponse,
    ChapterResponse,
    ChapterUpdateRequest,
    ChapterWriteResponse,
    LastQualifyingResponse,
    PublishStoryResponse,
    SlotErrorDetail,
    SlotStateResponse,
    StoryCreateRequest,
    StoryResponse,
    chapter_delete_response,
    chapter_response,
    chapter_write_response,
    publish_story_response,
    slot_state_response,
    story_response,
)
from story_pub.application.chapter_publishing import ChapterPublishingService
from story_pub.domain.errors import InvalidSlotError, NotFoundError, PersistenceError
from story_pub.settings import RuntimeSettings

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Simple health payload used by probes."""

    status: Literal["ok"] = "ok"
    service: str = "story_pub"


class ApiRootResponse(BaseModel):
    """Describes currently available API capabilities."""

    name: str = "story_pub"
    persistence: Literal["sqlite"] = "sqlite"
    endpoints: list[str] = Field(
        default_factory=lambda: [
            "/healthz",
            "/api/v1",
            "/api/v1/stories",
            "/api/v1/stories/{story_id}",
            "/api/v1/stories/{story_id}/publish",
            "/api/v1/stories/{story_id}/slots",
            "/api/v1/stories/{story_id}/chapters",
            "/api/v1/stories/{story_id}/reader/chapters",
            "/api/v1/chapters/{chapter_id}",
            "/api/v1/chapters/{chapter_id}/unpublish",
            "/api/v1/chapters/{chapter_id}/last-qualifying",
        ]
    )


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create the API application.

    Callers are expected to be authorized upstream; this app performs no
    capability checks of its own.
    """
    settings = RuntimeSettings.from_env(db_path=db_path)
    store = SQLiteStoryStore(
        db_path=settings.db_path,
        busy_timeout_seconds=settings.busy_timeout_seconds,
    )
    service = ChapterPublishingService(store)

    app = FastAPI(
        title="story_pub API",
        version="0.1.0",
        description=(
            "Chapter slot allocation and story publication state for serialized fiction."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "system", "description": "Service health and runtime metadata."},
            {"name": "api", "description": "API discovery and root-level capability listing."},
            {"name": "stories", "description": "Story creation, lookup, and explicit publish."},
            {"name": "chapters", "description": "Chapter slots, writes, and reader listings."},
        ],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("api.start db_path=%s", settings.db_path)

    @app.exception_handler(InvalidSlotError)
    async def invalid_slot_handler(request: Request, exc: InvalidSlotError) -> JSONResponse:
        logger.info(
            "api.invalid_slot path=%s field=%s message=%s",
            request.url.path,
            exc.field,
            exc.message,
        )
        detail = SlotErrorDetail(field=exc.field, message=exc.message)
        return JSONResponse(status_code=409, content={"detail": detail.model_dump()})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": f"{exc.entity.capitalize()} not found"},
        )

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.warning(
            "api.persistence_error method=%s path=%s error=%s",
            request.method,
            request.url.path,
            exc,
        )
        return JSONResponse(status_code=503, content={"detail": "Story storage unavailable"})

    @app.get("/healthz", response_model=HealthResponse, tags=["system"])
    def healthz() -> HealthResponse:
        return HealthResponse()

    @app.get("/api/v1", response_model=ApiRootResponse, tags=["api"])
    def api_v1_root() -> ApiRootResponse:
        return ApiRootResponse()

    @app.post("/api/v1/stories", response_model=StoryResponse, tags=["stories"], status_code=201)
    def create_story(payload: StoryCreateRequest) -> StoryResponse:
        return story_response(service.create_story(title=payload.title))

    @app.get("/api/v1/stories/{story_id}", response_model=StoryResponse, tags=["stories"])
    def get_story(story_id: str) -> StoryResponse:
        return story_response(service.get_story(story_id))

    @app.post(
        "/api/v1/stories/{story_id}/publish",
        response_model=PublishStoryResponse,
        tags=["stories"],
    )
    def publish_story(story_id: str) -> PublishStoryResponse:
        return publish_story_response(service.publish_story(story_id))

    @app.get(
        "/api/v1/stories/{story_id}/slots",
        response_model=SlotStateResponse,
        tags=["chapters"],
    )
    def fetch_slot_state(
        story_id: str,
        excluding_chapter_id: str | None = Query(default=None),
    ) -> SlotStateResponse:
        state = service.fetch_slot_state(story_id, excluding_chapter_id=excluding_chapter_id)
        return slot_state_response(story_id, state)

    @app.get(
        "/api/v1/stories/{story_id}/chapters",
        response_model=list[ChapterResponse],
        tags=["chapters"],
    )
    def list_chapters(story_id: str) -> list[ChapterResponse]:
        return [chapter_response(chapter) for chapter in service.list_chapters(story_id)]

    @app.get(
        "/api/v1/stories/{story_id}/reader/chapters",
        response_model=list[ChapterResponse],
        tags=["chapters"],
    )
    def reader_chapters(story_id: str) -> list[ChapterResponse]:
        return [chapter_response(chapter) for chapter in service.reader_chapters(story_id)]

    @app.post(
        "/api/v1/stories/{story_id}/chapters",
        response_model=ChapterWriteResponse,
        tags=["chapters"],
        status_code=201,
    )
    def create_chapter(story_id: str, payload: ChapterCreateRequest) -> ChapterWriteResponse:
        result = service.create_chapter(
            story_id,
            slot=payload.slot(),
            visibility=payload.visibility,
            title=payload.title,
        )
        return chapter_write_response(result)

    @app.put(
        "/api/v1/chapters/{chapter_id}",
        response_model=ChapterWriteResponse,
        tags=["chapters"],
    )
    def update_chapter(chapter_id: str, payload: ChapterUpdateRequest) -> ChapterWriteResponse:
        result = service.update_chapter(
            chapter_id,
            slot=payload.slot(),
            visibility=payload.visibility,
            title=payload.title,
        )
        return chapter_write_response(result)

    @app.delete(
        "/api/v1/chapters/{chapter_id}",
        response_model=ChapterDeleteResponse,
        tags=["chapters"],
    )
    def delete_chapter(chapter_id: str) -> ChapterDeleteResponse:
        return chapter_delete_response(service.delete_chapter(chapter_id))

    @app.post(
        "/api/v1/chapters/{chapter_id}/unpublish",
        response_model=ChapterWriteResponse,
        tags=["chapters"],
    )
    def unpublish_chapter(chapter_id: str) -> ChapterWriteResponse:
        return chapter_write_response(service.unpublish_chapter(chapter_id))

    @app.get(
        "/api/v1/chapters/{chapter_id}/last-qualifying",
        response_model=LastQualifyingResponse,
        tags=["chapters"],
    )
    def check_last_qualifying(chapter_id: str) -> LastQualifyingResponse:
        return LastQualifyingResponse(
            chapter_id=chapter_id,
            is_last=service.check_last_qualifying(chapter_id),
        )

    return app


app = create_app()
