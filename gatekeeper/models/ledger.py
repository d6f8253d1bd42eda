"""Audit ledger models for gate and canteen scans.

Every scan attempt, whether it succeeded or not, produces exactly one row in
one of these tables. Rows are written once and never updated or deleted.

The ids on a row are informational copies, not foreign keys: a row must stay
valid after the team or member it mentions is altered or removed, and rows
for failed lookups have no member to point at. For the same reason each row
repeats the member's name and email as they were at scan time.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

UNKNOWN = "Unknown"


class CheckinLogEntry(SQLModel, table=True):
    """A single entry-gate scan attempt.

    Attributes:
        id: Unique identifier (UUID).
        event_id: Event the gate was checking in for.
        team_id: Team of the resolved member, if any.
        member_id: Resolved member, if any.
        member_name: Member's name at scan time, or "Unknown".
        member_email: Member's email at scan time, or "Unknown".
        token: Token exactly as scanned.
        scan_type: Always "entry" for gate scans.
        scanned_at: When the attempt was made.
        scanned_by: Identity of the staff member who scanned.
        scanned_by_name: Display name of that staff member.
        success: True only for the scan that performed the check-in.
        reason: Outcome code, e.g. "checked-in" or "wrong-event".
        message: Human-readable description of the outcome.
    """
    __tablename__ = "checkin_log"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_id: UUID | None = Field(default=None, index=True)
    team_id: UUID | None = Field(default=None, index=True)
    member_id: UUID | None = None
    member_name: str = UNKNOWN
    member_email: str = UNKNOWN
    token: str = Field(index=True)
    scan_type: str = Field(default="entry")
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    scanned_by: str | None = Field(default=None, index=True)
    scanned_by_name: str | None = None
    success: bool = Field(default=False)
    reason: str
    message: str | None = None


class FoodDistributionLogEntry(SQLModel, table=True):
    """A single canteen scan attempt.

    Attributes:
        id: Unique identifier (UUID).
        event_id: Event the canteen token resolved to, if any.
        team_id: Team of the resolved member, if any.
        member_id: Resolved member, if any.
        member_name: Member's name at scan time, or "Unknown".
        member_email: Member's email at scan time, or "Unknown".
        member_token: Member token exactly as scanned.
        canteen_token: Canteen token exactly as scanned.
        action: "eligibility-check" for a lookup, "distribution" when food
            was requested.
        meal_type: Meal label for distributions.
        eligible: Whether the member was eligible at scan time.
        reason: Outcome code, e.g. "distributed" or "not-checked-in".
        message: Human-readable description of the outcome.
        scanned_at: When the attempt was made.
        scanned_by: Identity of the staff member who scanned.
        scanned_by_name: Display name of that staff member.
    """
    __tablename__ = "food_distribution_log"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_id: UUID | None = Field(default=None, index=True)
    team_id: UUID | None = Field(default=None, index=True)
    member_id: UUID | None = None
    member_name: str = UNKNOWN
    member_email: str = UNKNOWN
    member_token: str = Field(index=True)
    canteen_token: str
    action: str = Field(default="distribution")
    meal_type: str | None = None
    eligible: bool = Field(default=False, index=True)
    reason: str
    message: str | None = None
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    scanned_by: str | None = None
    scanned_by_name: str | None = None
