from gatekeeper.models.event import Event
from gatekeeper.models.ledger import CheckinLogEntry, FoodDistributionLogEntry
from gatekeeper.models.team import FoodScan, Member, Team

__all__ = [
    "Event",
    "Team",
    "Member",
    "FoodScan",
    "CheckinLogEntry",
    "FoodDistributionLogEntry",
]
