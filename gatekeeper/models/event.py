"""Event model for gatherings that members check in to.

This module defines the Event model which represents a single gathering
(hackathon, sports day, festival) with its registration settings, the
canteen token scanned at its food counters, and the running totals the
engine maintains for dashboards.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from gatekeeper.models.team import Team


class Event(SQLModel, table=True):
    """A gathering that teams register for.

    The ``total_*`` columns form the event's stats block. They are cached
    counters maintained by atomic increments and are never consulted when
    deciding a check-in or food scan; if they drift they can be rebuilt
    from member state and the ledgers.

    Attributes:
        id: Unique identifier (UUID).
        name: Display name of the event.
        slug: Short unique identifier, lowercased. Embedded in tokens.
        description: Free-form description.
        venue: Where the event takes place.
        start_date: When the event starts.
        end_date: When the event ends.
        is_active: Inactive events reject food scans.
        registration_open: Whether teams and members may still be added.
        min_team_size: Smallest team accepted at registration.
        max_team_size: Largest team accepted at registration.
        max_teams: Optional cap on registered teams.
        canteen_token: Token displayed at the event's canteen. Identifies
            which event is serving food, never who is eating.
        total_checked_in: Members checked in at the gate.
        total_food_distributed: Successful food distributions.
        total_teams_registered: Teams registered.
        total_members_registered: Members registered across all teams.
        teams: Teams registered for this event.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    description: str = ""
    venue: str = ""
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = Field(default=True)
    registration_open: bool = Field(default=True)
    min_team_size: int = Field(default=1)
    max_team_size: int = Field(default=4)
    max_teams: int | None = None
    canteen_token: str | None = Field(default=None, index=True, unique=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Stats block
    total_checked_in: int = Field(default=0)
    total_food_distributed: int = Field(default=0)
    total_teams_registered: int = Field(default=0)
    total_members_registered: int = Field(default=0)

    # Relationships
    teams: list["Team"] = Relationship(back_populates="event")

    @property
    def stats(self) -> dict[str, int]:
        """The stats block keyed the way reporting surfaces expect it."""
        return {
            "totalCheckedIn": self.total_checked_in,
            "totalFoodDistributed": self.total_food_distributed,
            "totalTeamsRegistered": self.total_teams_registered,
            "totalMembersRegistered": self.total_members_registered,
        }
