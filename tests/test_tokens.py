"""Tests for the scan token registry."""

import re

import pytest
from sqlmodel import Session

from gatekeeper.core.errors import TokenAlreadyIssued, TokenIssueError
from gatekeeper.engine import tokens
from gatekeeper.engine.tokens import (
    generate_member_token,
    is_canteen_token,
    issue_canteen_token,
    issue_member_token,
    resolve_canteen,
    resolve_member,
)
from gatekeeper.models import Event, Member, Team
from factories import make_team


class TestTokenFormat:
    """Tests for the shape of issued tokens."""

    def test_member_token_format(self, event: Event, team: Team):
        """Member tokens embed the event slug, team, position and a random part."""
        member = team.members[1]
        pattern = rf"^HACK-NIGHT_T{team.id.hex}_M1_[0-9a-f]{{16}}$"
        assert re.match(pattern, member.token)

    def test_canteen_token_format(self, event: Event):
        """Canteen tokens use the EVENT:<SLUG>:CANTEEN:<uuid> form."""
        assert re.match(
            r"^EVENT:HACK-NIGHT:CANTEEN:[0-9a-f-]{36}$", event.canteen_token
        )
        assert is_canteen_token(event.canteen_token)

    def test_member_tokens_are_not_canteen_tokens(self, team: Team):
        for member in team.members:
            assert not is_canteen_token(member.token)

    def test_random_component_differs(self, team: Team):
        """Two tokens for the same slot never repeat."""
        first = generate_member_token("hack-night", team.id, 0)
        second = generate_member_token("hack-night", team.id, 0)
        assert first != second


class TestResolve:
    """Tests for token lookups."""

    def test_resolve_member(self, session: Session, team: Team):
        member = team.members[0]
        resolved = resolve_member(session, member.token)

        assert resolved is not None
        resolved_team, resolved_member = resolved
        assert resolved_team.id == team.id
        assert resolved_member.id == member.id

    def test_resolve_unknown_member_token(self, session: Session, team: Team):
        assert resolve_member(session, "HACK-NIGHT_Tdeadbeef_M0_0000") is None
        assert resolve_member(session, "") is None

    def test_resolve_canteen(self, session: Session, event: Event):
        assert resolve_canteen(session, event.canteen_token).id == event.id

    def test_resolve_unknown_canteen_token(self, session: Session, event: Event):
        assert resolve_canteen(session, "EVENT:HACK-NIGHT:CANTEEN:not-a-real-one") is None

    def test_namespaces_are_not_interchangeable(self, session: Session, event: Event, team: Team):
        """A canteen token never resolves a member and a member token never resolves an event."""
        assert resolve_member(session, event.canteen_token) is None
        assert resolve_canteen(session, team.members[0].token) is None

    def test_resolve_is_read_only(self, session: Session, team: Team):
        member = team.members[0]
        resolve_member(session, member.token)
        assert not session.dirty
        assert not session.new

    def test_tokens_unique_across_teams_and_events(
        self, session: Session, team: Team, other_team: Team
    ):
        all_tokens = [m.token for m in team.members + other_team.members]
        assert len(all_tokens) == len(set(all_tokens))
        for token in all_tokens:
            assert resolve_member(session, token) is not None


class TestIssue:
    """Tests for issuing tokens."""

    def test_member_token_is_never_reissued(self, session: Session, event: Event, team: Team):
        member = team.members[0]
        original = member.token

        with pytest.raises(TokenAlreadyIssued):
            issue_member_token(session, event, team, member)

        session.refresh(member)
        assert member.token == original

    def test_canteen_token_is_never_reissued(self, session: Session, event: Event):
        with pytest.raises(TokenAlreadyIssued):
            issue_canteen_token(session, event)

    def test_collision_regenerates(self, session: Session, event: Event, team: Team, monkeypatch):
        """A generated token that is already taken is replaced with a fresh one."""
        taken = team.members[0].token
        candidates = iter([taken, "HACK-NIGHT_Tfresh_M2_0123456789abcdef"])
        monkeypatch.setattr(tokens, "generate_member_token", lambda *args: next(candidates))

        member = Member(team_id=team.id, position=2, name="New", email="new@example.com")
        token = issue_member_token(session, event, team, member)

        assert token == "HACK-NIGHT_Tfresh_M2_0123456789abcdef"
        assert member.token == token

    def test_gives_up_after_attempts(self, session: Session, event: Event, team: Team, monkeypatch):
        taken = team.members[0].token
        monkeypatch.setattr(tokens, "generate_member_token", lambda *args: taken)

        member = Member(team_id=team.id, position=2, name="New", email="new@example.com")
        with pytest.raises(TokenIssueError):
            issue_member_token(session, event, team, member)
        assert member.token is None

    def test_tokens_issued_for_every_registered_member(self, session: Session, event: Event):
        team = make_team(session, event, "Big Team", "lead-big", size=4)
        assert [m.position for m in team.members] == [0, 1, 2, 3]
        assert all(m.token for m in team.members)
