"""Shared error types.

The goal is to make errors explicit and easy to handle at the caller boundary.
Adapters translate transport library exceptions into these types; core code never
sees httpx exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class AppError(Exception):
    """Base error for application-level failures."""

    message: str
    cause: Exception | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.cause is None:
            return self.message
        return f"{self.message} (cause: {self.cause})"


class DomainError(AppError):
    """Domain rule violation."""


class ValidationError(AppError):
    """Malformed payload or configuration."""


class IntegrationError(AppError):
    """External integration failed."""


class TransportError(IntegrationError):
    """Push stream could not be opened, broke, or delivered an undecodable frame."""


@dataclass(eq=False)
class RequestError(IntegrationError):
    """A REST call to the Job API failed.

    error_type is one of: "network", "validation", "server", "rate_limit", "decode",
    "unknown".
    """

    status_code: int | None = None
    error_type: str = "unknown"


class FrameDecodeError(ValidationError):
    """A push frame payload did not match its declared type."""


@dataclass(eq=False)
class ListenerError(AppError):
    """A registered listener raised while handling a frame."""

    event_name: str = ""


@dataclass(eq=False)
class ActionNotAllowedError(DomainError):
    """The job's current lifecycle state does not permit the requested action."""

    job_id: str = ""
    action: str = ""
    status: str = ""
