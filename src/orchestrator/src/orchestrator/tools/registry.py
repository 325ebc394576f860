"""Tool registries handed to the generation loop.

Each responder that lets the model call tools builds its own ToolRegistry, so
tool sets stay scoped to the responder that owns them.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ai_client_api import ToolDefinition

ToolHandler = Callable[..., Any]

logger = logging.getLogger("orchestrator.tools")


class ToolRegistry:
    """Tool definitions paired with the handlers that execute them."""

    def __init__(self) -> None:
        """Create an empty registry."""
        self._handlers: dict[str, ToolHandler] = {}
        self._definitions: list[ToolDefinition] = []

    # -----------------------------------------------------------------------
    # Registry API
    # -----------------------------------------------------------------------

    def register_tool(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        """Register a tool definition and its handler (sync or async)."""
        if definition.name in self._handlers:
            msg = f"Tool already registered: {definition.name}"
            raise ValueError(msg)
        self._definitions.append(definition)
        self._handlers[definition.name] = handler

    def list_definitions(self) -> list[ToolDefinition]:
        """Return all registered tool definitions."""
        return list(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    async def run_tool(self, name: str, arguments: dict[str, Any]) -> object:
        """Execute a registered tool; failures come back as error payloads.

        Synchronous handlers run in a worker thread so blocking HTTP clients do
        not stall the event loop.
        """
        handler = self._handlers.get(name)
        if handler is None:
            label = name or "unknown"
            return {"type": "error", "code": "unknown_tool", "message": f"Unknown tool: {label}"}
        try:
            if inspect.iscoroutinefunction(handler):
                return await handler(**arguments)
            return await asyncio.to_thread(handler, **arguments)
        except Exception as exc:
            logger.exception("Tool failed (%s)", name)
            return {"type": "error", "code": "tool_failed", "message": str(exc), "tool": name}
