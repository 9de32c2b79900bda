"""Participant-side HTTP client for the Kettle API.

Wraps the vote boundary, the post listing, the heat aggregates and the
change-feed pull behind one ``httpx.AsyncClient``. Every transport or
protocol failure surfaces as a :class:`BoundaryError` so callers only have
one exception family to handle.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from kettle_stage.core.settings import settings
from kettle_stage.schemas.changes import ChangeBatchResponse
from kettle_stage.schemas.kettle import KettleHeatResponse, KettleResponse
from kettle_stage.schemas.post import PostResponse
from kettle_stage.schemas.report import ReportReason, ReportResponse
from kettle_stage.schemas.vote import HeatResponse, VoteResponse
from kettle_stage.services.boiling import KettleHeat
from kettle_stage.services.change_feed import ChangeEvent
from kettle_stage.services.heat import VoteAction

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
HTTP_BAD_REQUEST = 400


class BoundaryError(RuntimeError):
    """Base exception for failed calls to the Kettle API."""


class BoundaryUnavailableError(BoundaryError):
    """Raised when the API cannot be reached at all."""


class BoundaryResponseError(BoundaryError):
    """Raised for error statuses and bodies that do not parse."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ChangeBatch:
    """Change events pulled for one kettle and the cursor to resume from.

    ``reset`` means the cursor sent was from an earlier server run.
    """

    events: list[ChangeEvent]
    cursor: int | None
    epoch: str | None = None
    reset: bool = False


class KettleApiClient:
    """Async HTTP client wrapper for the Kettle API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.client_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.client_http_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        client = await self._ensure_client()
        try:
            response = await client.request(
                method,
                f"{API_PREFIX}{path}",
                json=json_data,
                params=params,
            )
        except httpx.HTTPError as exc:
            raise BoundaryUnavailableError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= HTTP_BAD_REQUEST:
            detail = _error_detail(response)
            raise BoundaryResponseError(
                f"{method} {path} responded with {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _parse(response: httpx.Response, model: type[BaseModel]) -> Any:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise BoundaryResponseError(
                f"Malformed {model.__name__} body: {exc}",
                status_code=response.status_code,
            ) from exc

    async def vote(self, post_id: str, action: VoteAction) -> int:
        """Send a vote action and return the authoritative heat."""
        response = await self._request(
            "POST",
            "/vote/",
            json_data={"post_id": post_id, "action": action.value},
        )
        result: VoteResponse = self._parse(response, VoteResponse)
        if not result.success:
            raise BoundaryResponseError(
                f"Vote on post {post_id} rejected", status_code=response.status_code
            )
        return result.heat

    async def get_heat(self, post_id: str) -> int:
        """Return the stored heat of a single post."""
        response = await self._request("GET", "/vote/", params={"post_id": post_id})
        result: HeatResponse = self._parse(response, HeatResponse)
        return result.heat

    async def get_kettle(self, slug: str) -> KettleResponse:
        response = await self._request("GET", f"/kettles/{slug}")
        return self._parse(response, KettleResponse)

    async def list_posts(self, slug: str) -> list[PostResponse]:
        """Return the kettle's visible posts, newest first."""
        response = await self._request("GET", f"/kettles/{slug}/posts")
        try:
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError("expected a list of posts")
            return [PostResponse.model_validate(item) for item in payload]
        except (ValueError, ValidationError) as exc:
            raise BoundaryResponseError(
                f"Malformed post listing for {slug}: {exc}",
                status_code=response.status_code,
            ) from exc

    async def pour_post(
        self,
        slug: str,
        content: str,
        *,
        parent_post_id: str | None = None,
        image_url: str | None = None,
    ) -> PostResponse:
        """Create a post (or a reply) and return it as stored."""
        payload: dict[str, Any] = {"content": content}
        if parent_post_id is not None:
            payload["parent_post_id"] = parent_post_id
        if image_url is not None:
            payload["image_url"] = image_url
        response = await self._request("POST", f"/kettles/{slug}/posts", json_data=payload)
        return self._parse(response, PostResponse)

    async def report_post(
        self,
        slug: str,
        post_id: str,
        reason: ReportReason,
        *,
        fingerprint: str,
        description: str | None = None,
    ) -> ReportResponse:
        """Flag a post for moderators.

        ``fingerprint`` is the device token from
        :func:`~kettle_stage.client.ledger.load_fingerprint`.
        """
        payload: dict[str, Any] = {
            "reason": ReportReason(reason).value,
            "reporter_fingerprint": fingerprint,
        }
        if description is not None:
            payload["description"] = description
        response = await self._request(
            "POST",
            f"/kettles/{slug}/posts/{post_id}/reports",
            json_data=payload,
        )
        return self._parse(response, ReportResponse)

    async def get_kettle_heat(self, kettle_id: int) -> KettleHeat:
        """Return the server-side heat aggregates for a kettle."""
        response = await self._request("GET", "/heat", params={"kettleId": kettle_id})
        result: KettleHeatResponse = self._parse(response, KettleHeatResponse)
        return KettleHeat(
            kettle_id=result.kettle_id,
            total_heat=result.total_heat,
            post_count=result.post_count,
            boiling_posts=result.boiling_posts,
        )

    async def pull_changes(
        self,
        kettle_id: int,
        cursor: int | None = None,
        limit: int | None = None,
        *,
        epoch: str | None = None,
    ) -> ChangeBatch:
        """Pull change events for a kettle newer than ``cursor``.

        Pass the ``epoch`` of the batch the cursor came from so a restarted
        server can tell the cursor is stale.
        """
        params: dict[str, Any] = {}
        if cursor is not None:
            params["cursor"] = cursor
        if epoch is not None:
            params["epoch"] = epoch
        if limit is not None:
            params["limit"] = limit

        response = await self._request("GET", f"/changes/{kettle_id}", params=params)
        batch: ChangeBatchResponse = self._parse(response, ChangeBatchResponse)
        events = [
            ChangeEvent(
                cursor=event.cursor,
                kettle_id=event.kettle_id,
                kind=event.kind,
                post_id=event.post_id,
            )
            for event in batch.events
        ]
        return ChangeBatch(
            events=events,
            cursor=batch.cursor,
            epoch=batch.epoch,
            reset=batch.reset,
        )

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> KettleApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return str(payload)
