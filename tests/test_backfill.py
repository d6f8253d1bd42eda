"""Tests for the canteen token backfill script."""

import pytest
from sqlmodel import Session, select

from gatekeeper.engine.tokens import is_canteen_token
from gatekeeper.models import Event
from scripts import backfill_canteen_tokens


@pytest.fixture(name="backfill")
def backfill_fixture(engine, monkeypatch):
    monkeypatch.setattr(backfill_canteen_tokens, "engine", engine)
    monkeypatch.setattr(backfill_canteen_tokens, "create_db_and_tables", lambda: None)
    return backfill_canteen_tokens.main


class TestBackfill:
    """Tests for issuing missing canteen tokens."""

    def test_issues_missing_tokens(self, session: Session, event: Event, backfill, capsys):
        original = event.canteen_token
        session.add(Event(name="Imported", slug="imported"))
        session.add(Event(name="Blank", slug="blank", canteen_token=""))
        session.commit()

        backfill()

        session.expire_all()
        tokens = {e.slug: e.canteen_token for e in session.exec(select(Event)).all()}
        assert tokens["hack-night"] == original
        assert is_canteen_token(tokens["imported"])
        assert tokens["imported"].startswith("EVENT:IMPORTED:CANTEEN:")
        assert is_canteen_token(tokens["blank"])
        assert "2 succeeded, 0 failed" in capsys.readouterr().out

    def test_dry_run_changes_nothing(self, session: Session, backfill, capsys):
        session.add(Event(name="Imported", slug="imported"))
        session.commit()

        backfill(dry_run=True)

        session.expire_all()
        event = session.exec(select(Event).where(Event.slug == "imported")).one()
        assert event.canteen_token is None
        assert "DRY RUN" in capsys.readouterr().out

    def test_nothing_to_do(self, event: Event, backfill, capsys):
        backfill()
        assert "No action needed" in capsys.readouterr().out
