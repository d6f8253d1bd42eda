"""Entry-gate check-in state machine.

A member moves from not checked in to checked in exactly once. Gates scan
concurrently, often the same token twice, so the transition is a single
conditional UPDATE that only matches while the member is still not checked
in. Whichever handler's UPDATE matches the row wins; every other handler,
even one that read the member before the winner committed, matches nothing
and reports the winner's check-in time instead.

Every scan writes exactly one row to the check-in ledger before returning.
"""
import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from gatekeeper.core.errors import StorageFailure
from gatekeeper.engine.counters import StatCounter, increment
from gatekeeper.engine.ledger import checkin_entry, record_checkin
from gatekeeper.engine.outcomes import Actor, CheckinOutcome, CheckinStatus, MemberStatus, Reason
from gatekeeper.engine.tokens import resolve_member
from gatekeeper.models import CheckinLogEntry, Member, Team

logger = logging.getLogger(__name__)


def check_in(session: Session, event_id: UUID, token: str, actor: Actor) -> CheckinOutcome:
    """Check in the member owning ``token`` at a gate for ``event_id``.

    Returns SUCCESS for the one scan that performs the check-in,
    ALREADY_CHECKED_IN (with the original time) for every other scan of a
    checked-in member, NOT_FOUND for unknown tokens and WRONG_EVENT for
    members registered for another event.

    Raises StorageFailure if a write fails. The failure is itself recorded
    in the ledger when possible.
    """
    resolved = resolve_member(session, token)

    if resolved is None:
        logger.info(f"Check-in rejected at event {event_id}: unknown token {token!r}")
        outcome = CheckinOutcome(CheckinStatus.NOT_FOUND)
    else:
        team, member = resolved
        if team.event_id != event_id:
            logger.info(
                f"Check-in rejected at event {event_id}: member {member.id} "
                f"belongs to event {team.event_id}"
            )
            outcome = CheckinOutcome(CheckinStatus.WRONG_EVENT, team, member)
        elif member.is_checked_in:
            outcome = CheckinOutcome(
                CheckinStatus.ALREADY_CHECKED_IN, team, member, member.check_in_time
            )
        else:
            # Snapshot taken now: a failed write rolls back and expires member
            failure_entry = checkin_entry(
                token=token,
                actor=actor,
                reason=Reason.STORAGE_FAILURE,
                event_id=event_id,
                team=team,
                member=member,
            )
            try:
                outcome = _mark_checked_in(session, team, member)
            except StorageFailure as exc:
                failure_entry.message = str(exc)
                _record_failure(session, failure_entry, exc)
                raise

    record_checkin(
        session,
        checkin_entry(
            token=token,
            actor=actor,
            reason=outcome.reason,
            success=outcome.status is CheckinStatus.SUCCESS,
            event_id=event_id,
            team=outcome.team,
            member=outcome.member,
        ),
    )

    if outcome.status is CheckinStatus.SUCCESS:
        increment(session, event_id, StatCounter.CHECKED_IN)
    elif outcome.status is CheckinStatus.ALREADY_CHECKED_IN:
        logger.info(f"Duplicate check-in scan for member {outcome.member.id} by {actor.id}")

    return outcome


def _mark_checked_in(session: Session, team: Team, member: Member) -> CheckinOutcome:
    """Flip the member's check-in flag if, and only if, it is still unset."""
    member_id = member.id
    statement = (
        update(Member)
        .where(Member.id == member_id)
        .where(Member.is_checked_in == False)  # noqa: E712
        .values(is_checked_in=True, check_in_time=datetime.now(UTC))
    )

    try:
        result = session.connection().execute(statement)
        session.commit()
        # Both branches report the stored time, so every scan sees the same value
        session.refresh(member)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Check-in write failed for member {member_id}: {e}")
        raise StorageFailure("check-in", str(e)) from e

    if result.rowcount == 1:
        logger.info(f"Checked in member {member.id} of team {team.id}")
        return CheckinOutcome(CheckinStatus.SUCCESS, team, member, member.check_in_time)

    logger.info(f"Lost check-in race for member {member.id}, already checked in")
    return CheckinOutcome(CheckinStatus.ALREADY_CHECKED_IN, team, member, member.check_in_time)


def _record_failure(session: Session, entry: CheckinLogEntry, exc: StorageFailure) -> None:
    """Best-effort ledger row for a scan whose write failed.

    If the ledger is unavailable too, its failure is raised in place of
    ``exc`` and chained to it.
    """
    try:
        record_checkin(session, entry)
    except StorageFailure as ledger_exc:
        raise ledger_exc from exc


def member_status(session: Session, token: str) -> MemberStatus | None:
    """Current check-in state of the member owning ``token``, or None."""
    resolved = resolve_member(session, token)
    if resolved is None:
        return None

    team, member = resolved
    return MemberStatus(
        is_checked_in=member.is_checked_in,
        check_in_time=member.check_in_time,
        member_name=member.name,
        team_name=team.team_name,
        event_name=team.event.name,
    )
