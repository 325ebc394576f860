"""Tests for the ai_client_api contract surface.

These tests document how consumers drive the asynchronous generation contract,
using mocks for the backend and a tiny concrete message for the shared helpers.
"""

from __future__ import annotations

from typing import Any, cast
from unittest.mock import Mock

import pytest

import ai_client_api
from ai_client_api import Client, ContentBlock, Message, ToolDefinition


def _make_block(
    *,
    block_type: str = "text",
    text: str | None = None,
    name: str | None = None,
) -> ContentBlock:
    """Create a mock ContentBlock consistent with the contract."""
    block = Mock(spec=ContentBlock)
    block.type = block_type
    block.id = "block_1" if block_type == "tool_use" else None
    block.text = text
    block.name = name
    block.input = {} if block_type == "tool_use" else None
    block.tool_use_id = None
    block.content = None
    block.to_dict.return_value = {"type": block_type, "text": text}
    return cast("ContentBlock", block)


class _Turn(Message):
    """Smallest concrete Message, used to exercise the shared helpers."""

    def __init__(self, role: str, blocks: list[ContentBlock]) -> None:
        self._role = role
        self._blocks = blocks

    @property
    def role(self) -> str:
        return self._role

    @property
    def content(self) -> list[ContentBlock]:
        return self._blocks

    def to_dict(self) -> dict[str, Any]:
        return {"role": self._role, "content": [block.to_dict() for block in self._blocks]}


def _make_tool(name: str = "get_weather") -> ToolDefinition:
    """Create a mock ToolDefinition."""
    tool = Mock(spec=ToolDefinition)
    tool.name = name
    tool.description = "Look up the weather"
    tool.input_schema = {"type": "object"}
    return cast("ToolDefinition", tool)


@pytest.mark.asyncio
async def test_generate_response_contract_with_tools_and_model() -> None:
    """generate_response is awaited with history, system prompt, tools and a model override."""
    # ARRANGE
    mock_client = Mock(spec=Client)
    user_turn = _Turn("user", [_make_block(text="Weather in Paris?")])
    tool = _make_tool()
    reply = _Turn("assistant", [_make_block(text="Sunny")])
    mock_client.generate_response.return_value = reply

    # ACT
    result = await mock_client.generate_response(
        messages=[user_turn],
        system="Weather assistant",
        tools=[tool],
        model="fast-model",
    )

    # ASSERT
    mock_client.generate_response.assert_awaited_once_with(
        messages=[user_turn],
        system="Weather assistant",
        tools=[tool],
        model="fast-model",
    )
    assert result is reply


@pytest.mark.asyncio
async def test_generate_response_optional_arguments() -> None:
    """System prompt, tools and model are optional."""
    mock_client = Mock(spec=Client)
    reply = _Turn("assistant", [_make_block(text="Hi")])
    mock_client.generate_response.return_value = reply

    result = await mock_client.generate_response(messages=[])

    mock_client.generate_response.assert_awaited_once_with(messages=[])
    assert result is reply


def test_message_text_joins_text_blocks_only() -> None:
    """Message.text concatenates text blocks and ignores tool requests."""
    turn = _Turn(
        "assistant",
        [
            _make_block(text=" Looking that up. "),
            _make_block(block_type="tool_use", name="get_weather"),
            _make_block(text="Done."),
        ],
    )

    assert turn.text == "Looking that up. Done."


def test_message_tool_uses_preserves_order() -> None:
    """Message.tool_uses lists tool_use blocks in the order the model emitted them."""
    first = _make_block(block_type="tool_use", name="get_coordinates")
    second = _make_block(block_type="tool_use", name="get_weather")
    turn = _Turn("assistant", [first, _make_block(text="x"), second])

    assert turn.tool_uses == [first, second]


def test_get_client_factory_contract(monkeypatch: pytest.MonkeyPatch) -> None:
    """ai_client_api.get_client can be rebound by implementations."""
    mock_client = Mock(spec=Client)
    mock_factory = Mock(return_value=mock_client)
    monkeypatch.setattr(ai_client_api, "get_client", mock_factory, raising=False)

    result = ai_client_api.get_client()

    mock_factory.assert_called_once_with()
    assert result is mock_client


def test_client_cannot_instantiate_directly() -> None:
    """Client stays abstract until an implementation provides generate_response."""
    with pytest.raises(TypeError):
        Client()  # type: ignore[abstract]
