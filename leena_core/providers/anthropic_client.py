"""Anthropic Messages API adapter.

This module:

1. Takes a ChatRequest.
2. Converts it to a `POST {base_url}/messages` payload (system prompt,
   content-block messages, optional tool declarations).
3. Calls the API and maps transport/HTTP failures to business errors.
4. Parses the `content` block list into TextSegment / ToolUseSegment values.
"""

from typing import Any, Dict, List

import httpx

from leena_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from leena_core.domain.models import (
    ChatRequest,
    ChatResult,
    ChatUsage,
    ContentSegment,
    Message,
    TextSegment,
    ToolUseSegment,
)
from leena_core.providers.registry import ANTHROPIC_CONFIG, resolve_model
from leena_core.tools.definitions import ToolDef


class AnthropicClient:
    """Anthropic provider client.

    - name: provider name for logs.
    - generate: single non-streaming Messages API call.
    """

    name = "anthropic"

    def __init__(self, settings):
        # api key, base url, version header and timeouts come from settings
        self._settings = settings

    def generate(self, req: ChatRequest) -> ChatResult:
        if not getattr(self._settings, "anthropic_api_key", None):
            raise ValidationError(code="MISSING_API_KEY", message="ANTHROPIC_API_KEY not set")
        payload = self._build_payload(req)
        timeout = req.timeout if req.timeout is not None else self._settings.http_timeout
        try:
            with httpx.Client(timeout=timeout, trust_env=False) as client:
                base = getattr(self._settings, "anthropic_base_url", None) or ANTHROPIC_CONFIG.base_url
                resp = client.post(
                    f"{base}/messages",
                    json=payload,
                    headers={
                        "x-api-key": self._settings.anthropic_api_key,
                        "anthropic-version": getattr(self._settings, "anthropic_version", "2023-06-01"),
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Anthropic rate limit", provider=self.name)
        if resp.status_code >= 400:
            raise ApiError(
                code="API_ERROR",
                message=resp.text,
                provider=self.name,
                provider_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError:
            raise ApiError(code="MALFORMED_RESPONSE", message="Anthropic returned non-JSON body", provider=self.name)
        return self._parse_response(data, req)

    def _build_payload(self, req: ChatRequest) -> Dict[str, Any]:
        model_cfg = resolve_model(ANTHROPIC_CONFIG, req.model)
        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "max_tokens": req.max_tokens or model_cfg.max_tokens,
            "temperature": req.temperature if req.temperature is not None else model_cfg.default_temperature,
            "system": req.system,
            "messages": [self._message_to_payload(m) for m in req.messages],
        }
        if req.tools:
            payload["tools"] = [self._serialize_tool(tool) for tool in req.tools]
        return payload

    @staticmethod
    def _serialize_tool(tool: ToolDef) -> Dict[str, Any]:
        return {
            "name": tool.name,
            "description": tool.description,
            "input_schema": tool.input_schema(),
        }

    def _message_to_payload(self, message: Message) -> Dict[str, Any]:
        return {
            "role": message.role,
            "content": [self._segment_to_payload(seg) for seg in message.content],
        }

    @staticmethod
    def _segment_to_payload(segment: ContentSegment) -> Dict[str, Any]:
        if isinstance(segment, TextSegment):
            return {"type": "text", "text": segment.text}
        if isinstance(segment, ToolUseSegment):
            return {"type": "tool_use", "id": segment.id, "name": segment.name, "input": dict(segment.input)}
        return {"type": "tool_result", "tool_use_id": segment.tool_use_id, "content": segment.content}

    def _parse_response(self, data: Any, req: ChatRequest) -> ChatResult:
        """Parse the Messages API JSON into a ChatResult."""

        if not isinstance(data, dict) or not isinstance(data.get("content"), list):
            raise ApiError(code="MALFORMED_RESPONSE", message="Anthropic response has no content list", provider=self.name)
        content: List[ContentSegment] = []
        for block in data["content"]:
            if not isinstance(block, dict):
                continue
            kind = block.get("type")
            if kind == "text":
                content.append(TextSegment(text=block.get("text") or ""))
            elif kind == "tool_use":
                tool_input = block.get("input")
                content.append(
                    ToolUseSegment(
                        id=block.get("id") or "",
                        name=block.get("name") or "",
                        input=tool_input if isinstance(tool_input, dict) else {},
                    )
                )
            # other block types (thinking, ...) are not used by the relay
        usage_raw = data.get("usage") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                input_tokens=usage_raw.get("input_tokens") or 0,
                output_tokens=usage_raw.get("output_tokens") or 0,
            )
        return ChatResult(
            provider=self.name,
            model=req.model,
            content=content,
            stop_reason=data.get("stop_reason"),
            usage=usage,
            raw=data,
        )
