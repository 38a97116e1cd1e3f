"""
Error types raised by the Barion clients.

Every failure a tool can hit is one of four variants, so the error formatter
can dispatch on the type instead of on message text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class BarionError(Exception):
    """Base class for all Barion client failures."""


class TransportFailure(BarionError):
    """The upstream API answered with a non-2xx HTTP status."""

    def __init__(self, status_code: int, reason: str, body: str, url: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.url = url
        super().__init__(f"HTTP {status_code}: {reason} - {body}")


@dataclass(frozen=True)
class UpstreamErrorDetail:
    """One entry of the ``Errors`` array in a Barion response."""

    error_code: str = ""
    title: str = ""
    description: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> UpstreamErrorDetail:
        if not isinstance(payload, dict):
            return cls(description=str(payload))
        return cls(
            error_code=payload.get("ErrorCode") or "",
            title=payload.get("Title") or "",
            description=payload.get("Description") or "",
        )

    def __str__(self) -> str:
        return f"{self.error_code or 'Error'}: {self.title} - {self.description}"


class UpstreamError(BarionError):
    """HTTP succeeded but the response carried a populated ``Errors`` list."""

    def __init__(self, errors: list[UpstreamErrorDetail], api_name: str = "Barion API"):
        self.errors = errors
        self.api_name = api_name
        details = ", ".join(str(e) for e in errors)
        super().__init__(f"{api_name} Error: {details}")

    @property
    def error_codes(self) -> list[str]:
        return [e.error_code for e in self.errors if e.error_code]


class LocalPreconditionError(BarionError):
    """A precondition checked locally failed before the upstream call was made."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class NetworkFailure(BarionError):
    """The upstream API could not be reached."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Network error: {type(cause).__name__}: {cause}")
