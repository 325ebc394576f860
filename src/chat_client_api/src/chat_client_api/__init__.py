"""Public export surface for ``chat_client_api``."""

from chat_client_api.client import Client, get_client
from chat_client_api.models import ChannelKind, ChatPlatformError, RawMessage, SuggestedPrompt

__all__ = ["ChannelKind", "ChatPlatformError", "Client", "RawMessage", "SuggestedPrompt", "get_client"]
