"""Event stats counters.

Counters are a cached view over member state and the ledgers. They are only
ever changed by a single ``UPDATE ... SET col = col + delta`` so concurrent
handlers never overwrite each other's increments, and nothing in the engine
reads them to make a decision.
"""
import logging
from enum import StrEnum
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from gatekeeper.core.errors import StorageFailure
from gatekeeper.models import Event

logger = logging.getLogger(__name__)


class StatCounter(StrEnum):
    """Stats block counters, valued by their column on Event."""

    CHECKED_IN = "total_checked_in"
    FOOD_DISTRIBUTED = "total_food_distributed"
    TEAMS_REGISTERED = "total_teams_registered"
    MEMBERS_REGISTERED = "total_members_registered"


def increment(session: Session, event_id: UUID, counter: StatCounter | str, delta: int = 1) -> None:
    """Atomically add ``delta`` to one of an event's counters and commit."""
    column = getattr(Event, StatCounter(counter).value)
    statement = update(Event).where(Event.id == event_id).values({column: column + delta})

    try:
        session.connection().execute(statement)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to increment {counter} for event {event_id}: {e}")
        raise StorageFailure(f"increment of {StatCounter(counter).value}", str(e)) from e

    logger.debug(f"Incremented {counter} by {delta} for event {event_id}")
