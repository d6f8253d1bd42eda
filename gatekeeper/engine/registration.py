"""Event and team registration.

This is the narrow seam through which roster management creates the
records the scan engine works on. Creating an event issues its canteen
token; adding a member issues the member's scan token. Tokens are issued
here and nowhere else.
"""
import logging
import re
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from gatekeeper.core.errors import RegistrationError, StorageFailure
from gatekeeper.engine.counters import StatCounter, increment
from gatekeeper.engine.ledger import as_utc
from gatekeeper.engine.tokens import issue_canteen_token, issue_member_token
from gatekeeper.models import Event, Member, Team

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class MemberRegistration(SQLModel):
    """Identity fields for a member being registered."""
    name: str
    email: str
    college: str = ""
    roll_number: str = ""


def create_event(
    session: Session,
    *,
    name: str,
    slug: str,
    description: str = "",
    venue: str = "",
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    min_team_size: int = 1,
    max_team_size: int = 4,
    max_teams: int | None = None,
    is_active: bool = True,
    registration_open: bool = True,
) -> Event:
    """Create an event and issue its canteen token.

    Dates are stored in UTC; naive dates are taken as UTC.
    """
    slug = slug.strip().lower()
    if not SLUG_PATTERN.match(slug):
        raise RegistrationError(f"Invalid event slug: {slug!r}")
    if min_team_size < 1 or max_team_size < min_team_size:
        raise RegistrationError("Team size bounds must satisfy 1 <= min <= max")
    start_date = as_utc(start_date) if start_date else None
    end_date = as_utc(end_date) if end_date else None
    if start_date and end_date and end_date <= start_date:
        raise RegistrationError("End date must be after start date")

    event = Event(
        name=name.strip(),
        slug=slug,
        description=description,
        venue=venue,
        start_date=start_date,
        end_date=end_date,
        min_team_size=min_team_size,
        max_team_size=max_team_size,
        max_teams=max_teams,
        is_active=is_active,
        registration_open=registration_open,
    )
    issue_canteen_token(session, event)
    session.add(event)

    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise RegistrationError(f"Event slug {slug!r} is already taken") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to create event {slug}: {e}")
        raise StorageFailure("event creation", str(e)) from e

    session.refresh(event)
    logger.info(f"Created event {event.slug} ({event.id})")
    return event


def _check_open(event: Event) -> None:
    if not event.is_active:
        raise RegistrationError("Event is not active")
    if not event.registration_open:
        raise RegistrationError("Registration is closed for this event")


def _new_member(
    session: Session, event: Event, team: Team, position: int, info: MemberRegistration
) -> Member:
    member = Member(
        team_id=team.id,
        position=position,
        name=info.name.strip(),
        email=info.email.strip().lower(),
        college=info.college.strip(),
        roll_number=info.roll_number.strip(),
    )
    issue_member_token(session, event, team, member)
    return member


def register_team(
    session: Session,
    event: Event,
    *,
    team_name: str,
    lead_user_id: str,
    lead_name: str,
    lead_email: str,
    members: list[MemberRegistration],
) -> Team:
    """Register a team and its members, issuing a scan token per member.

    Raises RegistrationError when the event is closed or full, the team size
    is out of bounds, member emails repeat, or the lead or team name
    already has a team at this event.
    """
    _check_open(event)
    team_name = team_name.strip()

    if event.max_teams:
        registered = session.exec(
            select(func.count()).select_from(Team).where(Team.event_id == event.id)
        ).one()
        if registered >= event.max_teams:
            raise RegistrationError(f"Maximum teams limit ({event.max_teams}) reached for this event")

    if len(members) < event.min_team_size:
        raise RegistrationError(f"Team must have at least {event.min_team_size} member(s)")
    if len(members) > event.max_team_size:
        raise RegistrationError(f"Team cannot have more than {event.max_team_size} member(s)")

    emails = [m.email.strip().lower() for m in members]
    if len(emails) != len(set(emails)):
        raise RegistrationError("Duplicate member emails are not allowed")

    existing = session.exec(
        select(Team)
        .where(Team.event_id == event.id)
        .where(or_(Team.team_name == team_name, Team.lead_user_id == lead_user_id))
    ).first()
    if existing:
        raise RegistrationError("A team with this name or lead is already registered for this event")

    event_id = event.id
    team = Team(
        event_id=event_id,
        team_name=team_name,
        lead_user_id=lead_user_id,
        lead_name=lead_name.strip(),
        lead_email=lead_email.strip().lower(),
    )

    try:
        with session.no_autoflush:
            for position, info in enumerate(members):
                team.members.append(_new_member(session, event, team, position, info))
        session.add(team)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise RegistrationError("Team could not be registered") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to register team {team_name} for event {event_id}: {e}")
        raise StorageFailure("team registration", str(e)) from e

    increment(session, event_id, StatCounter.TEAMS_REGISTERED)
    increment(session, event_id, StatCounter.MEMBERS_REGISTERED, len(members))

    session.refresh(team)
    logger.info(f"Registered team {team.team_name} with {len(members)} member(s) for event {event_id}")
    return team


def add_member(session: Session, team: Team, info: MemberRegistration) -> Member:
    """Add one member to an existing team and issue their scan token."""
    event = team.event
    _check_open(event)

    if len(team.members) >= event.max_team_size:
        raise RegistrationError(f"Team cannot have more than {event.max_team_size} member(s)")

    email = info.email.strip().lower()
    if any(m.email == email for m in team.members):
        raise RegistrationError("Duplicate member emails are not allowed")

    event_id = event.id
    position = max((m.position for m in team.members), default=-1) + 1
    member = _new_member(session, event, team, position, info)
    team.members.append(member)

    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise RegistrationError("Member could not be added") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to add member to team {team.id}: {e}")
        raise StorageFailure("member registration", str(e)) from e

    increment(session, event_id, StatCounter.MEMBERS_REGISTERED)

    session.refresh(member)
    logger.info(f"Added member {member.id} to team {team.id}")
    return member
