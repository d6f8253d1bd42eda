"""Scan token registry.

Two token namespaces exist and never overlap:

    - **Member tokens** identify a person at the gate and at the canteen:
      ``{SLUG}_T{team-id}_M{index}_{random-hex}``.
    - **Canteen tokens** identify which event's canteen is scanning:
      ``EVENT:{SLUG}:CANTEEN:{uuid4}``.

Slugs cannot contain ``:``, so a member token can never be mistaken for a
canteen token. Both carry a cryptographically random component, so knowing
one token does not help guess another.
"""
import logging
import secrets
from uuid import UUID, uuid4

from sqlmodel import Session, select

from gatekeeper.core.config import settings
from gatekeeper.core.errors import TokenAlreadyIssued, TokenIssueError
from gatekeeper.models import Event, Member, Team

logger = logging.getLogger(__name__)

CANTEEN_PREFIX = "EVENT:"
CANTEEN_MARKER = ":CANTEEN:"


def is_canteen_token(token: str) -> bool:
    return token.startswith(CANTEEN_PREFIX) and CANTEEN_MARKER in token


def generate_member_token(slug: str, team_id: UUID, index: int) -> str:
    random_part = secrets.token_hex(settings.member_token_random_bytes)
    return f"{slug.upper()}_T{team_id.hex}_M{index}_{random_part}"


def generate_canteen_token(slug: str) -> str:
    return f"{CANTEEN_PREFIX}{slug.upper()}{CANTEEN_MARKER}{uuid4()}"


def resolve_member(session: Session, token: str) -> tuple[Team, Member] | None:
    """Find the team and member a member token belongs to.

    Returns None for unknown tokens and for canteen tokens. Read-only.
    """
    if not token or is_canteen_token(token):
        return None

    member = session.exec(select(Member).where(Member.token == token)).first()
    if member is None:
        return None
    return member.team, member


def resolve_canteen(session: Session, token: str) -> Event | None:
    """Find the event a canteen token belongs to. Read-only."""
    if not token or not is_canteen_token(token):
        return None
    return session.exec(select(Event).where(Event.canteen_token == token)).first()


def issue_member_token(session: Session, event: Event, team: Team, member: Member) -> str:
    """Assign a new unique token to a member that does not have one yet.

    The token is set on ``member`` but not committed; the caller commits it
    together with the member. Raises TokenAlreadyIssued if the member
    already has a token, since tokens are never reissued.
    """
    if member.token:
        raise TokenAlreadyIssued(f"Member {member.id} already has a scan token")

    for _ in range(settings.token_issue_attempts):
        candidate = generate_member_token(event.slug, team.id, member.position)
        taken = session.exec(select(Member.id).where(Member.token == candidate)).first()
        if taken is None:
            member.token = candidate
            return candidate
        logger.warning(f"Member token collision for team {team.id}, regenerating")

    raise TokenIssueError(
        f"Could not issue a unique member token after {settings.token_issue_attempts} attempts"
    )


def issue_canteen_token(session: Session, event: Event) -> str:
    """Assign a new unique canteen token to an event that does not have one."""
    if event.canteen_token:
        raise TokenAlreadyIssued(f"Event {event.slug} already has a canteen token")

    for _ in range(settings.token_issue_attempts):
        candidate = generate_canteen_token(event.slug)
        taken = session.exec(select(Event.id).where(Event.canteen_token == candidate)).first()
        if taken is None:
            event.canteen_token = candidate
            return candidate
        logger.warning(f"Canteen token collision for event {event.slug}, regenerating")

    raise TokenIssueError(
        f"Could not issue a unique canteen token after {settings.token_issue_attempts} attempts"
    )
