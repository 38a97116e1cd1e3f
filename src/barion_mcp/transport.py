"""
Shared HTTP behaviour for the Barion payment and wallet clients.

One request per call: GET sends parameters as a query string, POST sends a
JSON body. A call succeeds when the status is 2xx and the body's ``Errors``
list is absent or empty.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

import httpx

from barion_mcp.config import base_url_for
from barion_mcp.errors import NetworkFailure, TransportFailure, UpstreamError, UpstreamErrorDetail

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0

# Fields and headers that carry a credential and must never reach a log record.
REDACTED_FIELDS = frozenset({"POSKey", "X-API-Key"})
REDACTED_VALUE = "***"


_QUERY_SECRET = re.compile(
    r"(?P<key>" + "|".join(re.escape(name) for name in sorted(REDACTED_FIELDS)) + r")=[^&\s\"']+"
)


class RedactingFilter(logging.Filter):
    """Mask credential query parameters in records emitted by the HTTP libraries."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _QUERY_SECRET.sub(rf"\g<key>={REDACTED_VALUE}", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


# httpx logs every request URL at INFO, and GET calls carry the POSKey in the query.
logging.getLogger("httpx").addFilter(RedactingFilter())


def redact(values: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of ``values`` with credential fields masked."""
    if not values:
        return {}
    return {
        key: REDACTED_VALUE if key in REDACTED_FIELDS else value for key, value in values.items()
    }


def rename_fields(values: Mapping[str, Any], field_map: Mapping[str, str]) -> dict[str, Any]:
    """
    Rename lowerCamel keys to Barion's PascalCase keys.

    Raises KeyError for any key missing from ``field_map`` so a new request
    field can never be dropped silently.
    """
    return {field_map[key]: value for key, value in values.items()}


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class BarionHttpClient:
    """Base class wrapping a single Barion API host."""

    api_name = "Barion API"

    def __init__(self, environment: str = "test"):
        self._environment = environment
        self._base_url = base_url_for(environment)

    @property
    def _headers(self) -> dict[str, str]:
        return {}

    def _auth_params(self) -> dict[str, Any]:
        return {}

    async def _request(
        self,
        endpoint: str,
        data: Mapping[str, Any] | None = None,
        method: str = "POST",
    ) -> dict[str, Any]:
        """Execute one API call and return the parsed body."""
        url = f"{self._base_url}{endpoint}"
        params = {**self._auth_params(), **(data or {})}
        headers = dict(self._headers)

        request_kwargs: dict[str, Any] = {"headers": headers, "timeout": REQUEST_TIMEOUT}
        if method == "GET":
            if params:
                request_kwargs["params"] = {k: _query_value(v) for k, v in params.items()}
            logger.debug("[%s] GET %s params=%s", self.api_name, url, redact(params))
        else:
            headers["Content-Type"] = "application/json"
            request_kwargs["json"] = params
            logger.debug(
                "[%s] %s %s payload=%s",
                self.api_name,
                method,
                url,
                json.dumps(redact(params), indent=2, default=str),
            )
        logger.debug("[%s] headers=%s", self.api_name, redact(headers))

        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(method, url, **request_kwargs)
        except httpx.RequestError as e:
            logger.error("[%s] Request to %s failed: %s", self.api_name, endpoint, e)
            raise NetworkFailure(e) from e

        logger.debug(
            "[%s] Response status: %s %s", self.api_name, response.status_code, response.reason_phrase
        )

        if not 200 <= response.status_code < 300:
            logger.warning(
                "[%s] Error response %s: %s", self.api_name, response.status_code, response.text
            )
            raise TransportFailure(
                response.status_code, response.reason_phrase, response.text, url=url
            )

        try:
            result = response.json()
        except ValueError as e:
            raise TransportFailure(
                response.status_code, "Invalid JSON response", response.text, url=url
            ) from e
        logger.debug("[%s] Response body: %s", self.api_name, json.dumps(result, indent=2))

        errors = result.get("Errors") if isinstance(result, dict) else None
        if errors:
            logger.warning("[%s] API Errors: %s", self.api_name, errors)
            raise UpstreamError(
                [UpstreamErrorDetail.from_payload(e) for e in errors], api_name=self.api_name
            )

        return result
