"""Execution layer: turn an Operation plus call arguments into an HTTP request."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urljoin

import httpx

from .config import Settings
from .errors import RequestError
from .logging import redact_payload
from .models import BODY_METHODS, ApiResponse, Operation

logger = logging.getLogger(__name__)


# Marks left unescaped in an encoded URI component.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_url(base_url: str, path: str, path_params: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` tokens in ``path`` and resolve it against ``base_url``.

    Every occurrence of each token is replaced with the URI-component-encoded
    value. Placeholders without a value are left as they are.
    """
    url = path
    for key, value in path_params.items():
        url = url.replace(f"{{{key}}}", quote(_stringify(value), safe=_URI_COMPONENT_SAFE))
    return urljoin(base_url, url)


class RequestDispatcher:
    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = settings.http_headers_x_api_key
        self.timeout = settings.request_timeout_seconds
        self.transport = transport

    async def dispatch(
        self,
        operation: Operation,
        arguments: Mapping[str, Any],
        base_url: str,
    ) -> ApiResponse:
        """Issue the request for ``operation``. HTTP error statuses are returned, not raised."""
        placeholders = set(operation.placeholders())
        path_params = {
            key: value
            for key, value in arguments.items()
            if key != "body" and key in placeholders
        }
        url = build_url(base_url, operation.path, path_params)
        method = operation.method.upper()

        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        headers.update(self._declared_values(operation, arguments, "header"))
        query = self._declared_values(operation, arguments, "query")

        content: Optional[str] = None
        if operation.method in BODY_METHODS and arguments.get("body") is not None:
            content = json.dumps(arguments["body"])

        logger.info(
            "Making API request: %s %s args=%s",
            method,
            url,
            redact_payload(dict(arguments)),
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    params=query or None,
                    content=content,
                )
        except httpx.RequestError as exc:
            logger.error("API request failed: %s %s: %s", method, url, exc)
            raise RequestError(f"API request failed: {exc}") from exc

        logger.debug("API responded with status %s", response.status_code)
        return ApiResponse(
            status=response.status_code,
            headers=dict(response.headers.items()),
            body=self._parse_body(response.text),
        )

    def _declared_values(
        self, operation: Operation, arguments: Mapping[str, Any], location: str
    ) -> Dict[str, str]:
        values: Dict[str, str] = {}
        for name in operation.parameter_names(location):
            value = arguments.get(name)
            if isinstance(value, (str, int, float, bool)):
                values[name] = _stringify(value)
        return values

    def _parse_body(self, text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError:
            return text
