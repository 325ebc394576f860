"""Claude-backed generation client; importing this package registers it with ``ai_client_api``."""

from claude_client_impl.claude_impl import ClaudeClient
from claude_client_impl.claude_impl import register as _register_client
from claude_client_impl.models_impl import register as _register_models

__all__ = ["ClaudeClient", "register"]


def register() -> None:
    """Register the Claude client and model implementations."""
    _register_client()
    _register_models()


register()
