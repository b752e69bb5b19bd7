from __future__ import annotations

from typing import Any

import httpx
import pytest

from story_pub.api.python_interface import StoryPublishingClient


def _chapter_payload(**overrides: Any) -> dict[str, Any]:
    chapter = {
        "chapter_id": "c1",
        "story_id": "s1",
        "kind": "chapter",
        "number": 1,
        "order_key": 1,
        "visibility": "published",
        "title": "One",
        "created_at_utc": "t",
        "updated_at_utc": "t",
    }
    chapter.update(overrides)
    return chapter


def test_create_chapter_sends_slot_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[tuple[str, object]] = []

    def fake_post(url: str, json: object, timeout: float) -> httpx.Response:
        seen.append((url, json))
        return httpx.Response(
            status_code=201,
            request=httpx.Request("POST", url),
            json={
                "chapter": _chapter_payload(),
                "story_status_after": "draft",
                "publish_prompt": True,
                "auto_drafted": False,
            },
        )

    monkeypatch.setattr("story_pub.api.python_interface.httpx.post", fake_post)
    client = StoryPublishingClient(api_base_url="http://127.0.0.1:8000/")
    result = client.create_chapter(story_id="s1", kind="chapter", number=1, title="One")

    assert result.publish_prompt is True
    assert seen[0][0] == "http://127.0.0.1:8000/api/v1/stories/s1/chapters"
    assert seen[0][1] == {"kind": "chapter", "number": 1, "visibility": "published", "title": "One"}


def test_delete_chapter_raises_on_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_delete(url: str, timeout: float) -> httpx.Response:
        return httpx.Response(
            status_code=404,
            request=httpx.Request("DELETE", url),
            json={"detail": "Chapter not found"},
        )

    monkeypatch.setattr("story_pub.api.python_interface.httpx.delete", fake_delete)
    with pytest.raises(httpx.HTTPStatusError):
        StoryPublishingClient().delete_chapter(chapter_id="c1")


def test_last_qualifying_check_parses_answer(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_get(url: str, timeout: float) -> httpx.Response:
        return httpx.Response(
            status_code=200,
            request=httpx.Request("GET", url),
            json={"chapter_id": "c1", "is_last": True},
        )

    monkeypatch.setattr("story_pub.api.python_interface.httpx.get", fake_get)
    check = StoryPublishingClient().check_last_qualifying(chapter_id="c1")
    assert check.is_last is True
    assert check.checked is True


def test_last_qualifying_check_degrades_on_outage(monkeypatch: pytest.MonkeyPatch) -> None:
    def unavailable(url: str, timeout: float) -> httpx.Response:
        return httpx.Response(
            status_code=503,
            request=httpx.Request("GET", url),
            json={"detail": "Story storage unavailable"},
        )

    def refused(url: str, timeout: float) -> httpx.Response:
        raise httpx.ConnectError("refused", request=httpx.Request("GET", url))

    client = StoryPublishingClient()
    monkeypatch.setattr("story_pub.api.python_interface.httpx.get", unavailable)
    degraded = client.check_last_qualifying(chapter_id="c1")
    monkeypatch.setattr("story_pub.api.python_interface.httpx.get", refused)
    offline = client.check_last_qualifying(chapter_id="c1")

    assert degraded.checked is False
    assert degraded.is_last is False
    assert offline.checked is False


def test_last_qualifying_check_propagates_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_get(url: str, timeout: float) -> httpx.Response:
        return httpx.Response(
            status_code=404,
            request=httpx.Request("GET", url),
            json={"detail": "Chapter not found"},
        )

    monkeypatch.setattr("story_pub.api.python_interface.httpx.get", fake_get)
    with pytest.raises(httpx.HTTPStatusError):
        StoryPublishingClient().check_last_qualifying(chapter_id="gone")


def test_publish_story_parses_response(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_post(url: str, json: object, timeout: float) -> httpx.Response:
        assert json is None
        return httpx.Response(
            status_code=200,
            request=httpx.Request("POST", url),
            json={"story_id": "s1", "story_status_after": "published", "changed": False},
        )

    monkeypatch.setattr("story_pub.api.python_interface.httpx.post", fake_post)
    result = StoryPublishingClient().publish_story(story_id="s1")
    assert result.story_status_after == "published"
    assert result.changed is False


def test_update_chapter_omits_unset_fields(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[object] = []

    def fake_put(url: str, json: object, timeout: float) -> httpx.Response:
        seen.append(json)
        return httpx.Response(
            status_code=200,
            request=httpx.Request("PUT", url),
            json={
                "chapter": _chapter_payload(number=2, order_key=2, visibility="hidden"),
                "story_status_after": "draft",
                "publish_prompt": False,
                "auto_drafted": False,
            },
        )

    monkeypatch.setattr("story_pub.api.python_interface.httpx.put", fake_put)
    result = StoryPublishingClient().update_chapter(chapter_id="c1", kind="chapter", number=2)

    assert seen == [{"kind": "chapter", "number": 2}]
    assert result.chapter.visibility == "hidden"
