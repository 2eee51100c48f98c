"""OpenAPI operation extraction."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .document import get_mapping, get_optional_str, get_str
from .models import HTTP_METHODS, Operation


logger = logging.getLogger(__name__)


_NON_WORD = re.compile(r"\W+")


class OperationExtractor:
    def extract_operations(self, spec: Dict[str, Any]) -> List[Operation]:
        """Compile every path/method entry of ``spec`` into an Operation.

        Iteration follows the document order of ``paths`` and then of each
        path item. Malformed operations are skipped with a log line.
        """
        operations: List[Operation] = []
        paths = get_mapping(spec, "paths")
        logger.debug("Processing %s paths from OpenAPI spec", len(paths))

        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                logger.warning("Skipping path %s: path item is not a mapping", path)
                continue
            shared_parameters = path_item.get("parameters") or []
            for method, definition in path_item.items():
                if method not in HTTP_METHODS:
                    continue
                operation, reason = self._build_operation(
                    str(path), method, definition, shared_parameters
                )
                if operation is None:
                    logger.warning("Skipping operation %s %s: %s", method.upper(), path, reason)
                    continue
                logger.debug(
                    "Processing operation: %s (%s %s)",
                    operation.operation_id,
                    method.upper(),
                    path,
                )
                operations.append(operation)

        if not operations:
            logger.warning("No operations extracted from OpenAPI spec")
        else:
            logger.info("Extracted %s operations", len(operations))
        return operations

    def _build_operation(
        self,
        path: str,
        method: str,
        definition: Any,
        shared_parameters: Any,
    ) -> Tuple[Optional[Operation], str]:
        if not isinstance(definition, dict):
            return None, "operation definition is not a mapping"

        own_parameters = definition.get("parameters") or []
        if not isinstance(own_parameters, list) or not isinstance(shared_parameters, list):
            return None, "parameters is not a list"
        for parameter in [*shared_parameters, *own_parameters]:
            if not isinstance(parameter, dict) or not get_optional_str(parameter, "name"):
                return None, "parameter without a name"

        parameters = self._merge_parameters(shared_parameters, own_parameters)
        request_body = definition.get("requestBody")
        if not isinstance(request_body, dict):
            request_body = None

        operation_id = get_optional_str(definition, "operationId") or self._fallback_operation_id(
            method, path
        )
        return (
            Operation(
                operation_id=operation_id,
                path=path,
                method=method,
                summary=get_str(definition, "summary", f"{method.upper()} {path}"),
                description=get_str(definition, "description"),
                parameters=tuple(parameters),
                request_body=request_body,
                input_schema=self._build_input_schema(parameters, request_body),
            ),
            "",
        )

    def _merge_parameters(
        self, shared: List[Dict[str, Any]], own: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        # Operation-level parameters override path-level ones with the same name and location.
        overridden = {(p["name"], p.get("in")) for p in own}
        merged = [p for p in shared if (p["name"], p.get("in")) not in overridden]
        return [*merged, *own]

    def _build_input_schema(
        self, parameters: List[Dict[str, Any]], request_body: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for parameter in parameters:
            name = parameter["name"]
            if parameter.get("required") and name not in required:
                required.append(name)
            properties[name] = {
                "type": get_str(get_mapping(parameter, "schema"), "type", "string"),
                "description": get_str(parameter, "description", f"{name} parameter"),
            }

        if request_body is not None:
            content = get_mapping(request_body, "content")
            # First declared content type wins, whatever it is.
            content_type = next(iter(content), None)
            if content_type is not None:
                schema = get_mapping(content[content_type], "schema")
                properties["body"] = {
                    "type": "object",
                    "description": "Request body",
                    "properties": get_mapping(schema, "properties"),
                }
                if request_body.get("required") is True and "body" not in required:
                    required.append("body")

        return {"type": "object", "properties": properties, "required": required}

    def _fallback_operation_id(self, method: str, path: str) -> str:
        return f"{method}_{_NON_WORD.sub('_', path)}"
