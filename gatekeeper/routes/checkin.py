"""Entry gate routes for scanning member tokens."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, SQLModel

from gatekeeper.core.database import get_session
from gatekeeper.engine.checkin import check_in, member_status
from gatekeeper.engine.outcomes import Actor, CheckinStatus
from gatekeeper.routes.deps import get_actor

router = APIRouter(prefix="/checkin", tags=["checkin"])


class ScanRequest(SQLModel):
    event_id: UUID
    token: str


@router.post("/scan")
def scan_member(
    body: ScanRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Check in a member at an entry gate.

    Returns 200 both for a fresh check-in and for a repeat scan of a member
    who is already checked in (``already_checked_in`` tells them apart, and
    the original check-in time is returned). Returns 404 for unknown tokens
    and 400 when the member is registered for a different event.
    """
    token = body.token.strip()
    if not token:
        raise HTTPException(status_code=400, detail="Please provide a valid token")

    outcome = check_in(session, body.event_id, token, actor)

    if outcome.status is CheckinStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail=outcome.message)
    if outcome.status is CheckinStatus.WRONG_EVENT:
        raise HTTPException(status_code=400, detail=outcome.message)

    member, team = outcome.member, outcome.team
    return {
        "success": True,
        "already_checked_in": outcome.status is CheckinStatus.ALREADY_CHECKED_IN,
        "message": outcome.message,
        "member": {
            "name": member.name,
            "email": member.email,
            "token": member.token,
            "is_checked_in": member.is_checked_in,
        },
        "team": {
            "team_name": team.team_name,
            "event_id": str(team.event_id),
        },
        "check_in_time": outcome.check_in_time.isoformat(),
    }


@router.get("/status/{token}")
def checkin_status(token: str, session: Session = Depends(get_session)):
    """
    Get a member's check-in status.

    Read-only; does not write to the ledger.
    """
    status = member_status(session, token)
    if status is None:
        raise HTTPException(status_code=404, detail="Member not found with provided token")

    return {
        "is_checked_in": status.is_checked_in,
        "check_in_time": status.check_in_time.isoformat() if status.check_in_time else None,
        "member_name": status.member_name,
        "team_name": status.team_name,
        "event_name": status.event_name,
    }
