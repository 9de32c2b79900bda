# mypy: ignore-errors
"""Tests for the participant HTTP client."""

import httpx
import pytest

from kettle_stage.client.api import (
    BoundaryResponseError,
    BoundaryUnavailableError,
    KettleApiClient,
)
from kettle_stage.schemas.report import ReportReason
from kettle_stage.services.change_feed import ChangeHub, ChangeKind, _ChangeHubSingleton
from kettle_stage.services.heat import VoteAction


@pytest.fixture()
def asgi_api(app):
    return KettleApiClient("http://test", transport=httpx.ASGITransport(app=app))


def mock_api(handler) -> KettleApiClient:
    return KettleApiClient("http://test", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_vote_against_app(asgi_api, kettle, make_post) -> None:
    post = make_post(kettle, heat=4)
    try:
        assert await asgi_api.vote(post.id, VoteAction.SWITCH_UP) == 6
        assert await asgi_api.get_heat(post.id) == 6
    finally:
        await asgi_api.close()


@pytest.mark.asyncio
async def test_listing_and_aggregates_against_app(asgi_api, kettle, make_post) -> None:
    older = make_post(kettle, heat=120)
    newer = make_post(kettle, heat=40)
    try:
        posts = await asgi_api.list_posts(kettle.slug)
        heat = await asgi_api.get_kettle_heat(kettle.id)
        detail = await asgi_api.get_kettle(kettle.slug)
    finally:
        await asgi_api.close()

    assert [post.id for post in posts] == [newer.id, older.id]
    assert heat.total_heat == 160
    assert heat.boiling_posts == 1
    assert detail.is_boiling is True


@pytest.mark.asyncio
async def test_pour_and_pull_changes_against_app(asgi_api, kettle) -> None:
    try:
        root = await asgi_api.pour_post(kettle.slug, "first sip")
        reply = await asgi_api.pour_post(kettle.slug, "second sip", parent_post_id=root.id)
        batch = await asgi_api.pull_changes(kettle.id)
        idle = await asgi_api.pull_changes(kettle.id, batch.cursor)
    finally:
        await asgi_api.close()

    assert reply.parent_post_id == root.id
    assert [(event.kind, event.post_id) for event in batch.events] == [
        (ChangeKind.INSERT, root.id),
        (ChangeKind.INSERT, reply.id),
    ]
    assert idle.events == []
    assert idle.cursor == batch.cursor


@pytest.mark.asyncio
async def test_pull_changes_resets_after_server_restart(asgi_api, kettle, hub) -> None:
    try:
        await asgi_api.pour_post(kettle.slug, "before restart")
        before = await asgi_api.pull_changes(kettle.id)

        restarted = ChangeHub()
        _ChangeHubSingleton._instance = restarted
        after = await asgi_api.pull_changes(kettle.id, before.cursor, epoch=before.epoch)
    finally:
        await asgi_api.close()

    assert before.epoch == hub.epoch
    assert before.reset is False
    assert after.reset is True
    assert after.epoch == restarted.epoch
    assert after.events == []
    assert after.cursor == 0


@pytest.mark.asyncio
async def test_report_post_against_app(asgi_api, kettle, make_post) -> None:
    post = make_post(kettle)
    try:
        report = await asgi_api.report_post(
            kettle.slug,
            post.id,
            ReportReason.DOXXING,
            fingerprint="cafe0123beef",
            description="posted an address",
        )
        with pytest.raises(BoundaryResponseError) as excinfo:
            await asgi_api.report_post(
                kettle.slug, post.id, ReportReason.SPAM, fingerprint="cafe0123beef"
            )
    finally:
        await asgi_api.close()

    assert report.post_id == post.id
    assert report.reason is ReportReason.DOXXING
    assert report.description == "posted an address"
    assert excinfo.value.status_code == 409


@pytest.mark.asyncio
async def test_not_found_maps_to_response_error(asgi_api) -> None:
    try:
        with pytest.raises(BoundaryResponseError) as excinfo:
            await asgi_api.vote("missing", VoteAction.UP)
    finally:
        await asgi_api.close()
    assert excinfo.value.status_code == 404
    assert "Post not found" in str(excinfo.value)


@pytest.mark.asyncio
async def test_transport_failure_maps_to_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = mock_api(handler)
    with pytest.raises(BoundaryUnavailableError):
        await api.get_heat("p1")
    await api.close()


@pytest.mark.asyncio
async def test_malformed_body_maps_to_response_error() -> None:
    api = mock_api(lambda request: httpx.Response(200, json={"unexpected": True}))
    with pytest.raises(BoundaryResponseError):
        await api.vote("p1", VoteAction.UP)
    with pytest.raises(BoundaryResponseError):
        await api.list_posts("tech-tea")
    await api.close()


@pytest.mark.asyncio
async def test_vote_sends_action_value() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.content))
        return httpx.Response(200, json={"success": True, "heat": 3})

    async with mock_api(handler) as api:
        assert await api.vote("p1", VoteAction.REMOVE_DOWN) == 3

    method, path, content = seen[0]
    assert (method, path) == ("POST", "/api/v1/vote/")
    assert b'"remove-down"' in content
