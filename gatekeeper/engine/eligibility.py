"""Canteen food eligibility.

Eligibility is derived entirely from current state: the canteen's event must
exist and be active, and the member must belong to that event and be
checked in. ``evaluate`` only reads; ``check_eligibility`` and
``distribute_food`` add exactly one food ledger row per scan, and
``distribute_food`` also appends to the member's food history.

How many meals a member may receive is a policy question outside this
module: every eligible distribution is served and recorded.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from gatekeeper.core.errors import StorageFailure
from gatekeeper.engine.counters import StatCounter, increment
from gatekeeper.engine.ledger import (
    ACTION_DISTRIBUTION,
    ACTION_ELIGIBILITY_CHECK,
    food_entry,
    record_food,
)
from gatekeeper.engine.outcomes import DEFAULT_MEAL, MESSAGES, Actor, Decision, FoodOutcome, Reason
from gatekeeper.engine.tokens import resolve_canteen, resolve_member
from gatekeeper.models import FoodDistributionLogEntry, FoodScan, Member

logger = logging.getLogger(__name__)


def evaluate(session: Session, canteen_token: str, member_token: str) -> Decision:
    """Decide whether a member may be served at a canteen.

    Checks run in a fixed order and the first failure decides the reason:
    invalid canteen token, inactive event, unknown member, member of
    another event, member not checked in.
    """
    event = resolve_canteen(session, canteen_token)
    if event is None:
        return Decision.ineligible(Reason.INVALID_CANTEEN_TOKEN)

    if not event.is_active:
        return Decision.ineligible(Reason.EVENT_INACTIVE, event=event)

    resolved = resolve_member(session, member_token)
    if resolved is None:
        return Decision.ineligible(Reason.MEMBER_NOT_FOUND, event=event)

    team, member = resolved
    if team.event_id != event.id:
        return Decision.ineligible(Reason.WRONG_EVENT, event=event, team=team, member=member)

    if not member.is_checked_in:
        return Decision.ineligible(Reason.NOT_CHECKED_IN, event=event, team=team, member=member)

    return Decision(eligible=True, reason=Reason.ELIGIBLE, event=event, team=team, member=member)


def check_eligibility(
    session: Session, canteen_token: str, member_token: str, actor: Actor
) -> Decision:
    """Evaluate a canteen scan without serving food, and log the lookup."""
    decision = evaluate(session, canteen_token, member_token)

    record_food(
        session,
        food_entry(
            member_token=member_token,
            canteen_token=canteen_token,
            actor=actor,
            reason=decision.reason,
            action=ACTION_ELIGIBILITY_CHECK,
            eligible=decision.eligible,
            event=decision.event,
            team=decision.team,
            member=decision.member,
        ),
    )
    return decision


def distribute_food(
    session: Session,
    canteen_token: str,
    member_token: str,
    meal_type: str | None,
    actor: Actor,
) -> FoodOutcome:
    """Serve food to an eligible member.

    Ineligible scans are logged with their reason and change nothing else.
    Eligible scans append a FoodScan to the member's history, log the
    distribution and bump the event's ``total_food_distributed`` counter.

    Raises StorageFailure if a write fails. The failure is itself recorded
    in the ledger when possible.
    """
    meal_type = (meal_type or "").strip() or DEFAULT_MEAL
    decision = evaluate(session, canteen_token, member_token)

    entry = food_entry(
        member_token=member_token,
        canteen_token=canteen_token,
        actor=actor,
        reason=decision.reason,
        action=ACTION_DISTRIBUTION,
        eligible=decision.eligible,
        meal_type=meal_type,
        event=decision.event,
        team=decision.team,
        member=decision.member,
    )

    if not decision.eligible:
        logger.info(f"Food refused for token {member_token!r}: {decision.reason}")
        record_food(session, entry)
        return FoodOutcome(decision, meal_type)

    event_id = decision.event.id
    try:
        scan = _append_food_scan(session, decision.member, meal_type, actor)
    except StorageFailure as exc:
        entry.reason = Reason.STORAGE_FAILURE.value
        entry.message = str(exc)
        _record_failure(session, entry, exc)
        raise

    entry.reason = Reason.DISTRIBUTED.value
    entry.message = MESSAGES[Reason.DISTRIBUTED]
    record_food(session, entry)
    increment(session, event_id, StatCounter.FOOD_DISTRIBUTED)

    logger.info(f"Served {meal_type} to member {decision.member.id} by {actor.id}")
    return FoodOutcome(decision, meal_type, scan)


def _append_food_scan(session: Session, member: Member, meal_type: str, actor: Actor) -> FoodScan:
    member_id = member.id
    scan = FoodScan(member_id=member_id, meal_type=meal_type, eligible=True, scanned_by=actor.id)
    session.add(scan)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Food history append failed for member {member_id}: {e}")
        raise StorageFailure("food history append", str(e)) from e
    session.refresh(scan)
    return scan


def _record_failure(session: Session, entry: FoodDistributionLogEntry, exc: StorageFailure) -> None:
    try:
        record_food(session, entry)
    except StorageFailure as ledger_exc:
        raise ledger_exc from exc
