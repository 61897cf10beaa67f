"""Test doubles for the provider handles."""

from typing import List, Union

from leena_core.domain.models import (
    ChatResult,
    ChatUsage,
    SearchResult,
    TextSegment,
    ToolUseSegment,
)


def text_result(text: str, provider: str = "fake") -> ChatResult:
    return ChatResult(
        provider=provider,
        model="leena-chat",
        content=[TextSegment(text=text)],
        stop_reason="end_turn",
        usage=ChatUsage(input_tokens=10, output_tokens=5),
    )


def search_request_result(query: str, call_id: str = "toolu_01", preface: str = "let me look that up") -> ChatResult:
    return ChatResult(
        provider="fake",
        model="leena-chat",
        content=[
            TextSegment(text=preface),
            ToolUseSegment(id=call_id, name="web_search", input={"query": query}),
        ],
        stop_reason="tool_use",
        usage=ChatUsage(input_tokens=12, output_tokens=7),
    )


class ScriptedProvider:
    """Returns (or raises) the scripted items in order and records requests."""

    name = "fake"

    def __init__(self, *script: Union[ChatResult, Exception]):
        self._script = list(script)
        self.requests: List = []

    def generate(self, req):
        self.requests.append(req)
        if not self._script:
            raise AssertionError("unexpected provider call")
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeSearch:
    name = "fake-search"

    def __init__(self, text: str = "", error: Exception = None):
        self._text = text
        self._error = error
        self.requests: List = []

    def complete(self, req):
        self.requests.append(req)
        if self._error is not None:
            raise self._error
        return SearchResult(provider=self.name, model=req.model, text=self._text)
