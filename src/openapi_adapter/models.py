"""Internal models for compiled operations and API responses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field


HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")
BODY_METHODS = frozenset({"post", "put", "patch"})

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class Operation:
    operation_id: str
    path: str
    method: str
    summary: str
    description: str
    parameters: Tuple[Dict[str, Any], ...]
    request_body: Optional[Dict[str, Any]]
    input_schema: Dict[str, Any]

    @property
    def tool_description(self) -> str:
        return self.description or self.summary

    def placeholders(self) -> Tuple[str, ...]:
        """Names of the ``{...}`` tokens in the path template."""
        return tuple(_PLACEHOLDER.findall(self.path))

    def parameter_names(self, location: str) -> Tuple[str, ...]:
        return tuple(
            parameter["name"] for parameter in self.parameters if parameter.get("in") == location
        )


class ApiResponse(BaseModel):
    status: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None

    @property
    def is_error(self) -> bool:
        return self.status >= 400
