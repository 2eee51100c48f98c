"""Logging setup and redaction of credentials in logged payloads."""

from __future__ import annotations

import logging
import re
import sys
from typing import Any, Dict, Mapping

from .config import Settings


_SENSITIVE_KEYS = re.compile(r"(token|secret|api[_-]?key|password|authorization)", re.IGNORECASE)
_REDACTED = "***REDACTED***"

# Chatty third-party loggers that only matter when DEBUG is on.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(settings: Settings) -> None:
    level = settings.log_level()
    # stdout carries the stdio transport, so diagnostics go to stderr.
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    if not settings.debug:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def redact_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        if _SENSITIVE_KEYS.search(str(key)):
            redacted[key] = _REDACTED
        elif isinstance(value, Mapping):
            redacted[key] = redact_payload(value)
        else:
            redacted[key] = value
    return redacted
