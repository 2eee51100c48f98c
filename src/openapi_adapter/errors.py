"""Error types for the OpenAPI adapter."""

from __future__ import annotations


class AdapterError(Exception):
    pass


class ConfigError(AdapterError):
    pass


class SpecNotFoundError(ConfigError):
    pass


class SpecParseError(AdapterError):
    """Raised when the OpenAPI document cannot be parsed.

    ``duplicate_key`` is set when the parser rejected a duplicated mapping key,
    which is the only parse failure the repair chain tries to recover from.
    """

    def __init__(self, message: str, duplicate_key: bool = False) -> None:
        super().__init__(message)
        self.duplicate_key = duplicate_key


class SpecRepairError(AdapterError):
    pass


class RequestError(AdapterError):
    pass


class UnknownOperationError(AdapterError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown operation: {name}")
        self.name = name
