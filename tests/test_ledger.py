"""Tests for the append-only scan ledger."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from gatekeeper.core.config import settings
from gatekeeper.core.errors import StorageFailure
from gatekeeper.engine.checkin import check_in
from gatekeeper.engine.eligibility import check_eligibility, distribute_food
from gatekeeper.engine.ledger import (
    checkin_entry,
    list_checkin_logs,
    list_food_logs,
    record_checkin,
)
from gatekeeper.engine.outcomes import MESSAGES, Actor, Reason
from gatekeeper.models import CheckinLogEntry, Event, FoodDistributionLogEntry, Team


def seed_entry(session: Session, token: str, scanned_at: datetime, actor: Actor, **kwargs) -> CheckinLogEntry:
    entry = checkin_entry(token=token, actor=actor, reason=Reason.MEMBER_NOT_FOUND, **kwargs)
    entry.scanned_at = scanned_at
    return record_checkin(session, entry)


class TestAppend:
    """Tests for writing ledger rows."""

    def test_entry_defaults(self, actor: Actor):
        entry = checkin_entry(token="abc", actor=actor, reason=Reason.MEMBER_NOT_FOUND)

        assert entry.member_name == "Unknown"
        assert entry.member_email == "Unknown"
        assert entry.success is False
        assert entry.message == MESSAGES[Reason.MEMBER_NOT_FOUND]
        assert entry.scan_type == "entry"

    def test_failed_append_raises(self, session: Session, actor: Actor, monkeypatch):
        def lost_database():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(session, "commit", lost_database)

        with pytest.raises(StorageFailure) as exc_info:
            record_checkin(session, checkin_entry(token="abc", actor=actor, reason=Reason.MEMBER_NOT_FOUND))
        assert exc_info.value.operation == "checkin ledger append"

    def test_rows_survive_team_deletion(
        self, session: Session, event: Event, team: Team, member_token: str, actor: Actor
    ):
        """Ledger rows keep their snapshot after the team is removed."""
        member_name = team.members[0].name
        check_in(session, event.id, member_token, actor)
        distribute_food(session, event.canteen_token, member_token, "lunch", actor)

        session.delete(team)
        session.commit()

        checkin_row = session.exec(
            select(CheckinLogEntry).where(CheckinLogEntry.token == member_token)
        ).one()
        food_row = session.exec(
            select(FoodDistributionLogEntry).where(FoodDistributionLogEntry.member_token == member_token)
        ).one()
        assert checkin_row.member_name == member_name
        assert food_row.member_name == member_name
        assert food_row.reason == "distributed"


class TestListCheckinLogs:
    """Tests for querying gate scans."""

    def test_filters(
        self,
        session: Session,
        event: Event,
        other_event: Event,
        team: Team,
        other_team: Team,
        actor: Actor,
    ):
        for member in team.members:
            check_in(session, event.id, member.token, actor)
        check_in(session, event.id, team.members[0].token, actor)
        check_in(session, other_event.id, other_team.members[0].token, actor)

        assert list_checkin_logs(session, event_id=event.id).total == 3
        assert list_checkin_logs(session, event_id=other_event.id).total == 1
        assert list_checkin_logs(session, team_id=team.id).total == 3
        assert list_checkin_logs(session, token=team.members[0].token).total == 2
        assert list_checkin_logs(session, event_id=event.id, success=True).total == 2
        assert list_checkin_logs(session, event_id=event.id, success=False).total == 1

    def test_newest_first(self, session: Session, actor: Actor):
        base = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        for minutes in [5, 0, 10]:
            seed_entry(session, f"t{minutes}", base + timedelta(minutes=minutes), actor)

        page = list_checkin_logs(session)
        assert [row.token for row in page.items] == ["t10", "t5", "t0"]

    def test_pagination(self, session: Session, actor: Actor):
        base = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        for i in range(25):
            seed_entry(session, f"t{i:02d}", base + timedelta(minutes=i), actor)

        first = list_checkin_logs(session, page=1, limit=10)
        third = list_checkin_logs(session, page=3, limit=10)

        assert len(first.items) == 10
        assert first.items[0].token == "t24"
        assert len(third.items) == 5
        assert third.items[-1].token == "t00"
        assert first.pagination() == {"page": 1, "limit": 10, "total": 25, "total_pages": 3}

    def test_default_and_clamped_limit(self, session: Session, actor: Actor):
        seed_entry(session, "only", datetime(2026, 3, 1, tzinfo=UTC), actor)

        assert list_checkin_logs(session).limit == settings.ledger_default_page_size
        assert list_checkin_logs(session, limit=10_000).limit == settings.ledger_max_page_size
        assert list_checkin_logs(session, page=0).page == 1

    def test_empty_page(self, session: Session):
        page = list_checkin_logs(session, page=4)
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0

    def test_date_range_is_inclusive(self, session: Session, actor: Actor):
        for day in [1, 2, 3, 4]:
            seed_entry(session, f"day{day}", datetime(2026, 3, day, 12, 0, tzinfo=UTC), actor)

        page = list_checkin_logs(
            session,
            start=datetime(2026, 3, 2, 12, 0, tzinfo=UTC),
            end=datetime(2026, 3, 3, 12, 0, tzinfo=UTC),
        )
        assert sorted(row.token for row in page.items) == ["day2", "day3"]

    def test_date_range_converts_timezones(self, session: Session, actor: Actor):
        seed_entry(session, "noon", datetime(2026, 3, 1, 12, 0, tzinfo=UTC), actor)
        ist = timezone(timedelta(hours=5, minutes=30))

        after = list_checkin_logs(session, start=datetime(2026, 3, 1, 17, 31, tzinfo=ist))
        before = list_checkin_logs(session, end=datetime(2026, 3, 1, 17, 30, tzinfo=ist))

        assert after.total == 0
        assert before.total == 1


class TestListFoodLogs:
    """Tests for querying canteen scans."""

    def test_filters(
        self, session: Session, event: Event, team: Team, actor: Actor
    ):
        served, waiting = team.members
        check_in(session, event.id, served.token, actor)

        check_eligibility(session, event.canteen_token, served.token, actor)
        distribute_food(session, event.canteen_token, served.token, "lunch", actor)
        distribute_food(session, event.canteen_token, waiting.token, "lunch", actor)

        assert list_food_logs(session, event_id=event.id).total == 3
        assert list_food_logs(session, team_id=team.id).total == 3
        assert list_food_logs(session, token=served.token).total == 2
        assert list_food_logs(session, eligible=True).total == 2
        assert list_food_logs(session, eligible=False).items[0].reason == "not-checked-in"

    def test_unresolved_scans_have_no_event(self, session: Session, event: Event, actor: Actor):
        check_eligibility(session, "bogus", "also-bogus", actor)

        assert list_food_logs(session).total == 1
        assert list_food_logs(session, event_id=event.id).total == 0
