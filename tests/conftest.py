"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict

import pytest
import yaml

from openapi_adapter.config import Settings


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def sample_spec() -> Dict[str, Any]:
    """Provide a small OpenAPI document covering params, bodies and fallbacks."""
    return {
        "openapi": "3.1.0",
        "info": {"title": "Test API", "version": "1.0.0"},
        "servers": [{"url": "https://api.example.com"}],
        "paths": {
            "/health": {
                "get": {
                    "operationId": "healthCheck",
                    "summary": "Health check endpoint",
                    "responses": {"200": {"description": "OK"}},
                }
            },
            "/users/{id}": {
                "get": {
                    "operationId": "getUserById",
                    "summary": "Get user by ID",
                    "parameters": [
                        {
                            "name": "id",
                            "in": "path",
                            "required": True,
                            "schema": {"type": "string"},
                        },
                        {
                            "name": "verbose",
                            "in": "query",
                            "schema": {"type": "boolean"},
                        },
                    ],
                },
                "put": {
                    "description": "Replace a user",
                    "parameters": [{"name": "id", "in": "path", "required": True}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {"name": {"type": "string"}},
                                }
                            }
                        },
                    },
                },
            },
        },
    }


@pytest.fixture()
def write_spec(tmp_path: Path) -> Callable[..., Path]:
    """Write a document (mapping or raw text) to a YAML file under ``tmp_path``."""

    def _write(content: Any, name: str = "openapi.yaml") -> Path:
        path = tmp_path / name
        text = content if isinstance(content, str) else yaml.safe_dump(content, sort_keys=False)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None, http_headers_x_api_key=None, debug=False)
