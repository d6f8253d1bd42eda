"""Shared route dependencies."""
from fastapi import Header, HTTPException

from gatekeeper.engine.outcomes import Actor


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_name: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """
    Staff identity for the current request.

    Set by the authentication proxy in front of this service, which has
    already verified the caller. Requests without an actor id are rejected.
    """
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(status_code=401, detail="Missing actor identity")
    return Actor(id=x_actor_id.strip(), name=x_actor_name, role=x_actor_role)
