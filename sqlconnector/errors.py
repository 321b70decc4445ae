# errors.py
# ─────────────────────────────────────────────────────────────────────────────
# Error types raised by the gateway.
#
# Every failure past configuration is a GatewayError carrying the stage that
# failed, so callers can tell an auth problem from a bad procedure call
# without digging through the traceback.  The driver / MSAL exception is
# always kept as __cause__.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations


class ConfigError(ValueError):
    """Configuration is missing or invalid."""


class GatewayError(RuntimeError):
    """Base class for failures while talking to the identity provider or SQL."""

    stage: str = "unknown"

    def __init__(self, message: str, *, procedure: str | None = None, stage: str | None = None):
        super().__init__(message)
        self.procedure = procedure
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        base = super().__str__()
        if self.procedure:
            return f"[{self.stage}] {self.procedure}: {base}"
        return f"[{self.stage}] {base}"


class AuthError(GatewayError):
    """Access token acquisition failed."""

    stage = "auth"


class DatabaseConnectionError(GatewayError):
    """The connection handle could not be built or opened on the wire."""

    stage = "connect"


class ExecutionError(GatewayError):
    """The driver rejected the command or failed while reading its results."""

    stage = "command"
