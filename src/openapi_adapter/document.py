"""Parsing and total accessors for an OpenAPI document.

The parsed tree is whatever the YAML parser produced, so any node may be
missing or have an unexpected type. The accessors never raise: they return an
empty mapping, an empty list or a default instead.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import yaml
from yaml.constructor import ConstructorError

from .errors import SpecParseError


DUPLICATE_KEY_MARKER = "duplicated mapping key"

_MERGE_TAG = "tag:yaml.org,2002:merge"


class StrictSafeLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicated mapping keys.

    Plain PyYAML keeps the last value of a repeated key without complaint.
    """

    def construct_mapping(self, node, deep=False):  # type: ignore[no-untyped-def]
        if isinstance(node, yaml.MappingNode):
            seen = set()
            for key_node, _ in node.value:
                if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == _MERGE_TAG:
                    continue
                key = self.construct_object(key_node, deep=deep)
                if key in seen:
                    raise ConstructorError(
                        "while constructing a mapping",
                        node.start_mark,
                        f"{DUPLICATE_KEY_MARKER} {key!r}",
                        key_node.start_mark,
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_document(text: str) -> Dict[Any, Any]:
    """Parse YAML (or JSON) text into a document mapping.

    Raises :class:`SpecParseError`; ``duplicate_key`` is set when the failure
    was a repeated mapping key.
    """
    try:
        document = yaml.load(text, Loader=StrictSafeLoader)
    except yaml.YAMLError as exc:
        message = str(exc)
        raise SpecParseError(
            f"Failed to parse YAML content: {message}",
            duplicate_key=DUPLICATE_KEY_MARKER in message,
        ) from exc
    if not isinstance(document, dict):
        raise SpecParseError(
            f"OpenAPI document must be a mapping, got {type(document).__name__}"
        )
    return document


def get_mapping(node: Any, key: str) -> Dict[Any, Any]:
    value = node.get(key) if isinstance(node, dict) else None
    return value if isinstance(value, dict) else {}


def get_list(node: Any, key: str) -> List[Any]:
    value = node.get(key) if isinstance(node, dict) else None
    return value if isinstance(value, list) else []


def get_str(node: Any, key: str, default: str = "") -> str:
    value = node.get(key) if isinstance(node, dict) else None
    if isinstance(value, str) and value:
        return value
    return default


def get_optional_str(node: Any, key: str) -> Optional[str]:
    value = node.get(key) if isinstance(node, dict) else None
    if isinstance(value, str) and value:
        return value
    return None


def server_base_url(document: Any, default: str) -> str:
    """Return the URL of the first declared server, or ``default``."""
    servers = get_list(document, "servers")
    if not servers:
        return default
    return get_str(servers[0], "url", default)
