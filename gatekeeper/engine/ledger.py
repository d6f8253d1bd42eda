"""Append-only audit ledger for gate and canteen scans.

The module only offers ways to append rows and to read them back; there is no
update or delete. An append that cannot be stored raises
StorageFailure and is never dropped silently.
"""
import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from gatekeeper.core.config import settings
from gatekeeper.core.errors import StorageFailure
from gatekeeper.engine.outcomes import MESSAGES, Actor, Reason
from gatekeeper.models import CheckinLogEntry, Event, FoodDistributionLogEntry, Member, Team
from gatekeeper.models.ledger import UNKNOWN

logger = logging.getLogger(__name__)

ACTION_ELIGIBILITY_CHECK = "eligibility-check"
ACTION_DISTRIBUTION = "distribution"

T = TypeVar("T", bound=SQLModel)


@dataclass
class Page(Generic[T]):
    """One page of ledger rows, newest first."""

    items: list[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def _append(session: Session, entry: SQLModel, ledger: str) -> None:
    session.add(entry)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to append to {ledger} ledger: {e}")
        raise StorageFailure(f"{ledger} ledger append", str(e)) from e


def record_checkin(session: Session, entry: CheckinLogEntry) -> CheckinLogEntry:
    """Append one entry-gate scan attempt."""
    _append(session, entry, "checkin")
    return entry


def record_food(session: Session, entry: FoodDistributionLogEntry) -> FoodDistributionLogEntry:
    """Append one canteen scan attempt."""
    _append(session, entry, "food")
    return entry


def checkin_entry(
    *,
    token: str,
    actor: Actor,
    reason: Reason,
    success: bool = False,
    event_id: UUID | None = None,
    team: Team | None = None,
    member: Member | None = None,
    message: str | None = None,
) -> CheckinLogEntry:
    """Build a check-in ledger row with a snapshot of the member."""
    return CheckinLogEntry(
        event_id=event_id,
        team_id=team.id if team else None,
        member_id=member.id if member else None,
        member_name=member.name if member else UNKNOWN,
        member_email=member.email if member else UNKNOWN,
        token=token,
        scanned_by=actor.id,
        scanned_by_name=actor.name,
        success=success,
        reason=reason.value,
        message=message or MESSAGES[reason],
    )


def food_entry(
    *,
    member_token: str,
    canteen_token: str,
    actor: Actor,
    reason: Reason,
    action: str,
    eligible: bool = False,
    meal_type: str | None = None,
    event: Event | None = None,
    team: Team | None = None,
    member: Member | None = None,
    message: str | None = None,
) -> FoodDistributionLogEntry:
    """Build a food ledger row with a snapshot of the member."""
    return FoodDistributionLogEntry(
        event_id=event.id if event else None,
        team_id=team.id if team else None,
        member_id=member.id if member else None,
        member_name=member.name if member else UNKNOWN,
        member_email=member.email if member else UNKNOWN,
        member_token=member_token,
        canteen_token=canteen_token,
        action=action,
        meal_type=meal_type,
        eligible=eligible,
        reason=reason.value,
        message=message or MESSAGES[reason],
        scanned_by=actor.id,
        scanned_by_name=actor.name,
    )


def as_utc(value: datetime) -> datetime:
    """Normalize a filter bound to UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _paginate(session: Session, model, conditions: list, page: int, limit: int | None) -> Page:
    page = max(page, 1)
    limit = min(limit or settings.ledger_default_page_size, settings.ledger_max_page_size)

    total = session.exec(
        select(func.count()).select_from(model).where(*conditions)
    ).one()
    items = session.exec(
        select(model)
        .where(*conditions)
        .order_by(model.scanned_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return Page(items=list(items), page=page, limit=limit, total=total)


def list_checkin_logs(
    session: Session,
    *,
    event_id: UUID | None = None,
    team_id: UUID | None = None,
    token: str | None = None,
    success: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int | None = None,
) -> Page[CheckinLogEntry]:
    """Query entry-gate scans, newest first. Date bounds are inclusive."""
    conditions = []
    if event_id is not None:
        conditions.append(CheckinLogEntry.event_id == event_id)
    if team_id is not None:
        conditions.append(CheckinLogEntry.team_id == team_id)
    if token is not None:
        conditions.append(CheckinLogEntry.token == token)
    if success is not None:
        conditions.append(CheckinLogEntry.success == success)
    if start is not None:
        conditions.append(CheckinLogEntry.scanned_at >= as_utc(start))
    if end is not None:
        conditions.append(CheckinLogEntry.scanned_at <= as_utc(end))

    return _paginate(session, CheckinLogEntry, conditions, page, limit)


def list_food_logs(
    session: Session,
    *,
    event_id: UUID | None = None,
    team_id: UUID | None = None,
    token: str | None = None,
    eligible: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int | None = None,
) -> Page[FoodDistributionLogEntry]:
    """Query canteen scans, newest first. Date bounds are inclusive."""
    conditions = []
    if event_id is not None:
        conditions.append(FoodDistributionLogEntry.event_id == event_id)
    if team_id is not None:
        conditions.append(FoodDistributionLogEntry.team_id == team_id)
    if token is not None:
        conditions.append(FoodDistributionLogEntry.member_token == token)
    if eligible is not None:
        conditions.append(FoodDistributionLogEntry.eligible == eligible)
    if start is not None:
        conditions.append(FoodDistributionLogEntry.scanned_at >= as_utc(start))
    if end is not None:
        conditions.append(FoodDistributionLogEntry.scanned_at <= as_utc(end))

    return _paginate(session, FoodDistributionLogEntry, conditions, page, limit)
