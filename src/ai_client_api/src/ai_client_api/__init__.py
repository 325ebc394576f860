"""Public export surface for ``ai_client_api``.

Implementation packages (e.g. ``claude_client_impl``) rebind ``get_client`` and
the model factories on import; call them through the module attribute
(``ai_client_api.message(...)``) so the late binding is honoured.
"""

from ai_client_api.client import Client, get_client
from ai_client_api.models import (
    ContentBlock,
    Message,
    ToolDefinition,
    content_block,
    message,
    tool_definition,
)

__all__ = [
    "Client",
    "ContentBlock",
    "Message",
    "ToolDefinition",
    "content_block",
    "get_client",
    "message",
    "tool_definition",
]
