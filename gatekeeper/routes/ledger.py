"""Read-only routes over the scan ledgers, for reporting and export."""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from gatekeeper.core.database import get_session
from gatekeeper.engine.ledger import list_checkin_logs, list_food_logs

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("/checkins")
def checkin_logs(
    event_id: UUID | None = None,
    team_id: UUID | None = None,
    token: str | None = None,
    success: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    session: Session = Depends(get_session),
):
    """
    List entry-gate scans, newest first.

    Filters combine; ``start`` and ``end`` bound the scan time inclusively.
    ``limit`` is capped by the configured maximum page size.
    """
    result = list_checkin_logs(
        session,
        event_id=event_id,
        team_id=team_id,
        token=token,
        success=success,
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return {
        "data": [entry.model_dump(mode="json") for entry in result.items],
        "pagination": result.pagination(),
    }


@router.get("/food")
def food_logs(
    event_id: UUID | None = None,
    team_id: UUID | None = None,
    token: str | None = None,
    eligible: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    session: Session = Depends(get_session),
):
    """
    List canteen scans, newest first.

    Includes both eligibility lookups and distributions; the ``action``
    field on each row tells them apart.
    """
    result = list_food_logs(
        session,
        event_id=event_id,
        team_id=team_id,
        token=token,
        eligible=eligible,
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return {
        "data": [entry.model_dump(mode="json") for entry in result.items],
        "pagination": result.pagination(),
    }
