# src/kettle_stage/api/v1/endpoints/changes.py
"""Change-feed pull endpoint.

Participants poll with the cursor and epoch from their previous batch and
refetch the kettle whenever the batch is non-empty or marked ``reset``.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from kettle_stage.schemas.changes import ChangeBatchResponse, ChangeEventResponse

from ..dependencies import HubDep, RepoDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/changes", tags=["changes"])


@router.get("/{kettle_id}", response_model=ChangeBatchResponse)
async def pull_changes(
    kettle_id: int,
    repo: RepoDep,
    hub: HubDep,
    cursor: int | None = Query(None, ge=0, description="Last cursor already seen"),
    epoch: str | None = Query(None, max_length=64, description="Epoch the cursor came from"),
    limit: int = Query(100, ge=1, le=500),
) -> ChangeBatchResponse:
    """Return change events for a kettle newer than ``cursor``.

    A cursor from another epoch, or one ahead of anything this server has
    issued, is answered from the start of the retained history with
    ``reset`` set.
    """
    if repo.get_kettle(kettle_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Kettle not found")

    reset = cursor is not None and hub.is_stale(cursor, epoch)
    if reset:
        logger.info("Stale change cursor %s for kettle %d, resetting", cursor, kettle_id)
        cursor = None

    issued = hub.last_cursor
    events = hub.events_since(kettle_id, cursor, limit)
    if events:
        next_cursor = events[-1].cursor
    elif reset:
        next_cursor = issued
    else:
        next_cursor = cursor if cursor is not None else hub.latest_cursor(kettle_id)

    return ChangeBatchResponse(
        events=[ChangeEventResponse.model_validate(event) for event in events],
        cursor=next_cursor,
        epoch=hub.epoch,
        reset=reset,
    )
