"""Team and member models.

A Team is the aggregate root for its Members: members are stored as an
ordered child collection and are deleted with their team, so no member can
exist without one. Each member carries the scan token that identifies them
at gates and canteens, their check-in state, and the history of food they
have been served.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from gatekeeper.models.event import Event


class Team(SQLModel, table=True):
    """A team registered for an event.

    A lead may register only one team per event, and team names are unique
    within an event.

    Attributes:
        id: Unique identifier (UUID).
        event_id: Foreign key to the Event the team registered for.
        team_name: Display name, unique within the event.
        lead_user_id: Identity of the account that registered the team.
        lead_name: Lead's display name.
        lead_email: Lead's email address, lowercased.
        created_at: When the team registered.
        event: Reference to the parent Event object.
        members: Members in registration order.
    """
    __table_args__ = (
        UniqueConstraint("event_id", "team_name", name="uq_team_event_name"),
        UniqueConstraint("event_id", "lead_user_id", name="uq_team_event_lead"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_id: UUID = Field(foreign_key="event.id", index=True)
    team_name: str
    lead_user_id: str = Field(index=True)
    lead_name: str
    lead_email: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    event: Optional["Event"] = Relationship(back_populates="teams")
    members: list["Member"] = Relationship(
        back_populates="team",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "Member.position",
        },
    )


class Member(SQLModel, table=True):
    """A person on a team.

    The token is issued once when the member is added and never changes;
    it is the only key scanners use to find a member. ``check_in_time`` is
    set exactly when ``is_checked_in`` becomes true, and the engine never
    sets ``is_checked_in`` back to false.

    Attributes:
        id: Unique identifier (UUID).
        team_id: Foreign key to the owning Team.
        position: Index of the member within the team.
        name: Member's full name.
        email: Member's email address, lowercased.
        college: Affiliation the member registered with.
        roll_number: External roll id issued by the affiliation.
        token: Unique opaque scan token.
        is_checked_in: Whether the member has passed the entry gate.
        check_in_time: When the member was checked in.
        team: Reference to the owning Team object.
        food_scan_history: Food served to this member, oldest first.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    team_id: UUID = Field(foreign_key="team.id", index=True)
    position: int = Field(default=0)
    name: str
    email: str
    college: str = ""
    roll_number: str = ""
    token: str | None = Field(default=None, index=True, unique=True)
    is_checked_in: bool = Field(default=False)
    check_in_time: datetime | None = None

    # Relationships
    team: Optional[Team] = Relationship(back_populates="members")
    food_scan_history: list["FoodScan"] = Relationship(
        back_populates="member",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "FoodScan.scanned_at",
        },
    )


class FoodScan(SQLModel, table=True):
    """One food distribution served to a member.

    Entries are appended and never edited or removed by the engine.

    Attributes:
        id: Unique identifier (UUID).
        member_id: Foreign key to the Member who was served.
        scanned_at: When the food was handed out.
        meal_type: Free-form meal label ("lunch", "dinner", "general").
        eligible: Eligibility outcome at the time of the scan.
        scanned_by: Identity of the staff member who scanned.
    """
    __tablename__ = "food_scan"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    member_id: UUID = Field(foreign_key="member.id", index=True)
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    meal_type: str = Field(default="general")
    eligible: bool = Field(default=True)
    scanned_by: str | None = None

    # Relationship
    member: Optional[Member] = Relationship(back_populates="food_scan_history")
