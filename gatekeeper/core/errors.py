"""Exception types raised by the gatekeeper engine.

Only genuine faults are exceptions. A token that does not resolve, a scan at
the wrong event or a duplicate check-in are ordinary outcomes and are
returned as values by the engine functions, never raised.
"""


class GatekeeperError(Exception):
    """Base class for all gatekeeper errors."""


class StorageFailure(GatekeeperError):
    """A write against the backing store could not complete.

    Fatal for the request that hit it. The engine never retries; the caller
    owns retry policy.
    """

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        self.detail = detail
        message = f"Storage failure during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TokenAlreadyIssued(GatekeeperError):
    """A scan token was requested for a member that already has one."""


class TokenIssueError(GatekeeperError):
    """No unique token could be generated within the allowed attempts."""


class RegistrationError(GatekeeperError):
    """A team or member could not be registered for an event."""
