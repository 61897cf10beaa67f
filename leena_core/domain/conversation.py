"""Conversation parsing and client-side conversation state.

The browser posts `{"messages": [{"role": ..., "content": ...}, ...]}` where
content is either a plain string or a list of structured content blocks.
`parse_conversation` validates that body and normalises every turn into
`Message` objects.

The remaining helpers model the rule the chat UI follows when it grows the
conversation: every request carries the previous conversation plus exactly
one new user turn and one new assistant turn, in that order.
"""

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from leena_core.domain.exceptions import InvalidRequest
from leena_core.domain.models import (
    ContentSegment,
    Message,
    TextSegment,
    ToolResultSegment,
    ToolUseSegment,
)

ROLES = ("user", "assistant")


def parse_conversation(payload: Any) -> List[Message]:
    """Validate a request body and return its conversation.

    Raises InvalidRequest when the body is not a mapping, `messages` is
    missing or not a list, or any entry is malformed.
    """

    if not isinstance(payload, Mapping):
        raise InvalidRequest()
    raw_messages = payload.get("messages")
    if not isinstance(raw_messages, list):
        raise InvalidRequest()
    return [_parse_message(item, idx) for idx, item in enumerate(raw_messages)]


def _parse_message(item: Any, idx: int) -> Message:
    if not isinstance(item, Mapping):
        raise InvalidRequest(f"messages[{idx}] must be an object")
    role = item.get("role")
    if role not in ROLES:
        raise InvalidRequest(f"messages[{idx}].role must be one of {', '.join(ROLES)}")
    content = item.get("content")
    if isinstance(content, str):
        return Message(role=role, content=(TextSegment(text=content),))
    if isinstance(content, list) and content:
        segments = tuple(_parse_segment(block, idx) for block in content)
        return Message(role=role, content=segments)
    raise InvalidRequest(f"messages[{idx}].content must be a string or a non-empty list")


def _parse_segment(block: Any, idx: int) -> ContentSegment:
    if not isinstance(block, Mapping):
        raise InvalidRequest(f"messages[{idx}] has a non-object content block")
    kind = block.get("type")
    if kind == "text" and isinstance(block.get("text"), str):
        return TextSegment(text=block["text"])
    if kind == "tool_use" and isinstance(block.get("id"), str) and isinstance(block.get("name"), str):
        tool_input = block.get("input") or {}
        if not isinstance(tool_input, Mapping):
            raise InvalidRequest(f"messages[{idx}] tool_use input must be an object")
        return ToolUseSegment(id=block["id"], name=block["name"], input=dict(tool_input))
    if kind == "tool_result" and isinstance(block.get("tool_use_id"), str):
        result = block.get("content", "")
        if not isinstance(result, str):
            raise InvalidRequest(f"messages[{idx}] tool_result content must be a string")
        return ToolResultSegment(tool_use_id=block["tool_use_id"], content=result)
    raise InvalidRequest(f"messages[{idx}] has an unsupported content block {kind!r}")


def append_exchange(history: Sequence[Message], user_text: str, reply_text: str) -> Tuple[Message, ...]:
    """Return the conversation after one completed exchange.

    The input is left untouched; a new tuple is returned.
    """

    return tuple(history) + (Message.text("user", user_text), Message.text("assistant", reply_text))


def is_next_turn(previous: Sequence[Message], current: Sequence[Message]) -> bool:
    """Check that `current` extends `previous` by one user and one assistant turn."""

    if len(current) != len(previous) + 2:
        return False
    if tuple(current[: len(previous)]) != tuple(previous):
        return False
    return current[-2].role == "user" and current[-1].role == "assistant"


def to_payload(messages: Sequence[Message]) -> Dict[str, Any]:
    """Serialise a conversation back into the request body shape."""

    out: List[Dict[str, Any]] = []
    for msg in messages:
        text = msg.plain_text()
        if text is not None:
            out.append({"role": msg.role, "content": text})
        else:
            out.append({"role": msg.role, "content": [_segment_to_dict(seg) for seg in msg.content]})
    return {"messages": out}


def _segment_to_dict(segment: ContentSegment) -> Dict[str, Any]:
    if isinstance(segment, TextSegment):
        return {"type": "text", "text": segment.text}
    if isinstance(segment, ToolUseSegment):
        return {"type": "tool_use", "id": segment.id, "name": segment.name, "input": dict(segment.input)}
    return {"type": "tool_result", "tool_use_id": segment.tool_use_id, "content": segment.content}
