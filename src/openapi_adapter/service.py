"""Tool adapter: map the operation catalog onto list-tools and call-tool."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import UnknownOperationError
from .executors import RequestDispatcher
from .logging import redact_payload
from .models import Operation

logger = logging.getLogger(__name__)


class ToolAdapter:
    """
    Routes tool calls to operations.

    Every failure in the call path is returned as an error-flagged result so
    one bad call never takes down the message channel.
    """

    def __init__(
        self,
        operations: Sequence[Operation],
        base_url: str,
        dispatcher: RequestDispatcher,
    ) -> None:
        self.operations = list(operations)
        self.base_url = base_url
        self.dispatcher = dispatcher
        # Later operations with the same id shadow earlier ones.
        self._by_id: Dict[str, Operation] = {op.operation_id: op for op in self.operations}

    def list_tools(self) -> List[Dict[str, Any]]:
        tools = [
            {
                "name": operation.operation_id,
                "description": operation.tool_description,
                "inputSchema": operation.input_schema,
            }
            for operation in self.operations
        ]
        logger.debug("Returning %s tool definitions", len(tools))
        return tools

    def has_operation(self, name: str) -> bool:
        return name in self._by_id

    def get_operation(self, name: str) -> Operation:
        operation = self._by_id.get(name)
        if operation is None:
            raise UnknownOperationError(name)
        return operation

    async def call_tool(
        self, name: str, arguments: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Execute the operation named ``name``.

        Returns:
            MCP-formatted result: ``{"content": [...], "isError": bool}``
        """
        arguments = dict(arguments or {})
        logger.info("Received tool call: %s args=%s", name, redact_payload(arguments))
        try:
            operation = self.get_operation(name)
            logger.debug(
                "Executing operation: %s %s", operation.method.upper(), operation.path
            )
            response = await self.dispatcher.dispatch(operation, arguments, self.base_url)
        except Exception as exc:
            logger.error("Error handling tool call %s: %s", name, exc)
            return self._format_error(str(exc))

        logger.info("API call finished, status: %s", response.status)
        text = json.dumps(response.model_dump(), indent=2, ensure_ascii=False, default=str)
        return self._format_result(text, is_error=response.is_error)

    def _format_result(self, text: str, is_error: bool = False) -> Dict[str, Any]:
        return {"content": [{"type": "text", "text": text}], "isError": is_error}

    def _format_error(self, message: str) -> Dict[str, Any]:
        return self._format_result(f"Error: {message}", is_error=True)
