"""Result types returned by the scan engine.

Lookups that fail and business-rule rejections are ordinary results, so the
engine returns them as values. Each result carries the reason code written
to the audit ledger.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from gatekeeper.models import Event, FoodScan, Member, Team

DEFAULT_MEAL = "general"


class Reason(StrEnum):
    """Outcome codes recorded on ledger rows."""

    CHECKED_IN = "checked-in"
    ALREADY_CHECKED_IN = "already-checked-in"
    MEMBER_NOT_FOUND = "member-not-found"
    WRONG_EVENT = "wrong-event"
    INVALID_CANTEEN_TOKEN = "invalid-canteen-token"
    EVENT_INACTIVE = "event-inactive"
    NOT_CHECKED_IN = "not-checked-in"
    ELIGIBLE = "eligible"
    DISTRIBUTED = "distributed"
    STORAGE_FAILURE = "storage-failure"


MESSAGES = {
    Reason.CHECKED_IN: "Member checked in successfully",
    Reason.ALREADY_CHECKED_IN: "Member already checked in",
    Reason.MEMBER_NOT_FOUND: "Member not found with provided token",
    Reason.WRONG_EVENT: "Member not registered for this event",
    Reason.INVALID_CANTEEN_TOKEN: "Invalid event canteen token",
    Reason.EVENT_INACTIVE: "Event is not active",
    Reason.NOT_CHECKED_IN: "Member must complete check-in first",
    Reason.ELIGIBLE: "Eligible for food",
    Reason.DISTRIBUTED: "Food distributed successfully",
    Reason.STORAGE_FAILURE: "Storage failure while processing scan",
}


class CheckinStatus(StrEnum):
    SUCCESS = "success"
    ALREADY_CHECKED_IN = "already-checked-in"
    NOT_FOUND = "not-found"
    WRONG_EVENT = "wrong-event"


_CHECKIN_REASONS = {
    CheckinStatus.SUCCESS: Reason.CHECKED_IN,
    CheckinStatus.ALREADY_CHECKED_IN: Reason.ALREADY_CHECKED_IN,
    CheckinStatus.NOT_FOUND: Reason.MEMBER_NOT_FOUND,
    CheckinStatus.WRONG_EVENT: Reason.WRONG_EVENT,
}


@dataclass(frozen=True)
class Actor:
    """The verified staff identity performing a scan.

    Supplied by the authentication layer and trusted as-is.
    """

    id: str
    name: str | None = None
    role: str | None = None


@dataclass(frozen=True)
class CheckinOutcome:
    """Result of a gate scan.

    ``team`` and ``member`` are set whenever the token resolved, including
    for ``WRONG_EVENT``. ``check_in_time`` is set for ``SUCCESS`` and
    ``ALREADY_CHECKED_IN``.
    """

    status: CheckinStatus
    team: Team | None = None
    member: Member | None = None
    check_in_time: datetime | None = None

    @property
    def reason(self) -> Reason:
        return _CHECKIN_REASONS[self.status]

    @property
    def message(self) -> str:
        return MESSAGES[self.reason]


@dataclass(frozen=True)
class Decision:
    """Result of evaluating a canteen scan.

    Whatever could be resolved before the first failing check is attached,
    so callers can show the member and event even when food is refused.
    """

    eligible: bool
    reason: Reason
    event: Event | None = None
    team: Team | None = None
    member: Member | None = None

    @classmethod
    def ineligible(cls, reason: Reason, event=None, team=None, member=None) -> "Decision":
        return cls(eligible=False, reason=reason, event=event, team=team, member=member)

    @property
    def message(self) -> str:
        return MESSAGES[self.reason]


@dataclass(frozen=True)
class FoodOutcome:
    """Result of a food distribution attempt."""

    decision: Decision
    meal_type: str = DEFAULT_MEAL
    scan: FoodScan | None = None

    @property
    def distributed(self) -> bool:
        return self.scan is not None

    @property
    def reason(self) -> Reason:
        return Reason.DISTRIBUTED if self.distributed else self.decision.reason

    @property
    def message(self) -> str:
        return MESSAGES[self.reason]


@dataclass(frozen=True)
class MemberStatus:
    """Read-only check-in state shown on display surfaces."""

    is_checked_in: bool
    check_in_time: datetime | None
    member_name: str
    team_name: str
    event_name: str
