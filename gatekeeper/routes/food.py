"""Canteen routes for food eligibility and distribution."""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, SQLModel

from gatekeeper.core.database import get_session
from gatekeeper.engine.eligibility import check_eligibility, distribute_food
from gatekeeper.engine.outcomes import Actor, Decision, Reason
from gatekeeper.routes.deps import get_actor

router = APIRouter(prefix="/food", tags=["food"])

# Refusals that mean the scan itself was wrong; the rest are answered with 200
STATUS_CODES = {
    Reason.INVALID_CANTEEN_TOKEN: 404,
    Reason.MEMBER_NOT_FOUND: 404,
    Reason.EVENT_INACTIVE: 400,
    Reason.WRONG_EVENT: 400,
}


class EligibilityRequest(SQLModel):
    canteen_token: str
    member_token: str


class DistributionRequest(EligibilityRequest):
    meal_type: str | None = None


def _require_tokens(body: EligibilityRequest) -> tuple[str, str]:
    canteen_token = body.canteen_token.strip()
    member_token = body.member_token.strip()
    if not canteen_token:
        raise HTTPException(status_code=400, detail="Please provide a valid event canteen token")
    if not member_token:
        raise HTTPException(status_code=400, detail="Please provide a valid member token")
    return canteen_token, member_token


def _refuse_if_invalid(decision: Decision) -> None:
    status_code = STATUS_CODES.get(decision.reason)
    if status_code:
        raise HTTPException(status_code=status_code, detail=decision.message)


def _decision_body(decision: Decision) -> dict:
    body = {
        "success": decision.eligible,
        "eligible": decision.eligible,
        "reason": decision.reason.value,
        "message": decision.message,
    }
    if decision.member is not None:
        body["member"] = {"name": decision.member.name, "email": decision.member.email}
        body["is_checked_in"] = decision.member.is_checked_in
    if decision.event is not None:
        body["event"] = {"name": decision.event.name, "venue": decision.event.venue}
    return body


@router.post("/check-eligibility")
def food_eligibility(
    body: EligibilityRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Check whether a member may be served at a canteen.

    Logs the lookup but serves nothing. A member who has not checked in yet
    gets 200 with ``eligible: false``.
    """
    canteen_token, member_token = _require_tokens(body)
    decision = check_eligibility(session, canteen_token, member_token, actor)
    _refuse_if_invalid(decision)

    response = _decision_body(decision)
    if decision.eligible:
        response["check_in_time"] = decision.member.check_in_time.isoformat()
    return response


@router.post("/scan")
def food_scan(
    body: DistributionRequest,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Serve food to a member.

    Every eligible scan is served and recorded, including repeat scans of
    the same member. Returns the member's total number of food scans.
    """
    canteen_token, member_token = _require_tokens(body)
    outcome = distribute_food(session, canteen_token, member_token, body.meal_type, actor)
    _refuse_if_invalid(outcome.decision)

    response = _decision_body(outcome.decision)
    response["message"] = outcome.message
    if outcome.distributed:
        member = outcome.decision.member
        response["distribution"] = {
            "meal_type": outcome.meal_type,
            "distributed_at": outcome.scan.scanned_at.isoformat(),
            "distributed_by": actor.name or actor.id,
        }
        response["total_food_scans"] = len(member.food_scan_history)
    return response
