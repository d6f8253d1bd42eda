#!/usr/bin/env python3
"""
Issue canteen tokens for events that do not have one.

Events created before canteen tokens existed, or imported directly into the
database, cannot serve food until they have a token. Run once per
environment after deployment.

Usage:
    python scripts/backfill_canteen_tokens.py [--dry-run]

Options:
    --dry-run    Show which events would get a token without changing anything
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, or_, select

from gatekeeper.core.database import create_db_and_tables, engine
from gatekeeper.core.errors import TokenIssueError
from gatekeeper.engine.tokens import issue_canteen_token
from gatekeeper.models import Event


def main(dry_run: bool = False):
    """Issue canteen tokens for every event that is missing one."""
    create_db_and_tables()

    with Session(engine) as session:
        statement = select(Event).where(
            or_(Event.canteen_token.is_(None), Event.canteen_token == "")
        )
        events = session.exec(statement).all()

        print(f"Found {len(events)} event(s) without a canteen token")
        if not events:
            print("All events already have a canteen token. No action needed.")
            return

        if dry_run:
            for event in events:
                print(f"  Would issue token for: {event.name} ({event.slug})")
            print("--- DRY RUN: No changes made ---")
            return

        success_count = 0
        fail_count = 0

        for event in events:
            print(f"Issuing token for '{event.name}' ({event.slug})...", end=" ")
            # Empty strings count as missing
            event.canteen_token = None
            try:
                issue_canteen_token(session, event)
                session.add(event)
                session.commit()
            except (SQLAlchemyError, TokenIssueError) as e:
                session.rollback()
                print(f"FAILED: {e}")
                fail_count += 1
                continue
            print("OK")
            success_count += 1

        print(f"\nComplete: {success_count} succeeded, {fail_count} failed")


if __name__ == "__main__":
    dry_run = "--dry-run" in sys.argv
    main(dry_run=dry_run)
