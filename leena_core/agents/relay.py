"""Chat relays.

ChatRelay forwards a conversation to the LLM provider with the persona
instructions and returns the reply text.

ToolAugmentedRelay additionally declares the `web_search` tool:

1. Call the provider with the conversation and tool declaration.
2. No web_search invocation in the response: return its first text segment.
3. Otherwise run the search, append the assistant's tool-request turn
   (verbatim) and a tool-result turn, call the provider again and return the
   first text segment of that second response.

Only one tool round-trip per request is supported.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import uuid4
import logging
import time

from leena_core.config.settings import Settings
from leena_core.domain.exceptions import InvalidRequest, ProviderFailure
from leena_core.domain.models import (
    ChatRequest,
    ChatResult,
    ChatUsage,
    Message,
    ToolResultSegment,
)
from leena_core.infrastructure.logging.logger import logger
from leena_core.prompts import CHAT_PERSONA, TOOL_PERSONA, PersonaOptions, render_persona
from leena_core.providers.base import ProviderClient, SearchClient
from leena_core.tools.definitions import ToolCall, ToolDef
from leena_core.tools.executor import (
    WEB_SEARCH,
    ToolExecutor,
    default_tool_defs,
    make_web_search_tool,
)


@dataclass
class RelayConfig:
    model: str
    max_tokens: int
    temperature: float = 1.0
    persona: Optional[PersonaOptions] = None  # None = the relay class default
    http_timeout: float = 30.0
    max_duration: Optional[float] = None  # total handling budget, None = unbounded
    max_tool_rounds: int = 1
    search_model: str = "web-search"

    @classmethod
    def for_chat(cls, cfg: Settings) -> "RelayConfig":
        return cls(
            model=cfg.chat_model,
            max_tokens=cfg.chat_max_tokens,
            temperature=cfg.temperature,
            persona=CHAT_PERSONA,
            http_timeout=cfg.http_timeout,
        )

    @classmethod
    def for_tools(cls, cfg: Settings) -> "RelayConfig":
        return cls(
            model=cfg.chat_model,
            max_tokens=cfg.tool_max_tokens,
            temperature=cfg.temperature,
            persona=TOOL_PERSONA,
            http_timeout=cfg.http_timeout,
            max_duration=cfg.relay_max_duration,
            max_tool_rounds=cfg.max_tool_rounds,
            search_model=cfg.search_model,
        )


@dataclass
class RelayReply:
    """Result of one relay request."""

    text: str
    trace_id: str
    tool_calls: List[ToolCall] = field(default_factory=list)
    usage: Optional[ChatUsage] = None


class Deadline:
    """Total time budget for one request.

    `timeout_for` hands each outbound call whatever is left of the budget,
    capped by the per-call HTTP timeout.
    """

    def __init__(self, budget: Optional[float], clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = None if budget is None else clock() + budget

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return self._expires_at - self._clock()

    def timeout_for(self, default: float, stage: str = "") -> float:
        left = self.remaining()
        if left is None:
            return default
        if left <= 0:
            raise ProviderFailure(
                code="DEADLINE_EXCEEDED",
                message=f"Relay time budget exhausted before {stage or 'next call'}",
            )
        return min(default, left)


class ChatRelay:
    """Single-turn relay: one provider call, no tools."""

    default_persona: PersonaOptions = CHAT_PERSONA

    def __init__(
        self,
        provider_client: ProviderClient,
        config: RelayConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._provider_client = provider_client
        self._config = config
        self._clock = clock
        self._system_prompt = render_persona(config.persona or self.default_persona)

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def reply(self, messages: Sequence[Message]) -> RelayReply:
        log_ctx = self._start(messages)
        start_time = self._clock()
        deadline = Deadline(self._config.max_duration, self._clock)

        result = self._call_provider(list(messages), deadline, log_ctx, stage="reply")
        text = self._final_text(result)

        self._log(
            logging.INFO,
            "Completed relay request",
            log_ctx,
            elapsed_seconds=round(self._clock() - start_time, 2),
        )
        return RelayReply(text=text, trace_id=log_ctx["trace_id"], usage=result.usage)

    # ---- shared helpers ----

    def _start(self, messages: Sequence[Message]) -> Dict[str, Any]:
        if not messages:
            raise InvalidRequest("Conversation is empty", code="EMPTY_CONVERSATION")
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "relay": type(self).__name__,
        }
        self._log(logging.INFO, "Relay request received", log_ctx, message_count=len(messages))
        return log_ctx

    def _tools(self) -> Optional[List[ToolDef]]:
        return None

    def _call_provider(
        self,
        messages: List[Message],
        deadline: Deadline,
        log_ctx: Dict[str, Any],
        stage: str,
    ) -> ChatResult:
        req = ChatRequest(
            model=self._config.model,
            system=self._system_prompt,
            messages=messages,
            max_tokens=self._config.max_tokens,
            temperature=self._config.temperature,
            tools=self._tools(),
            timeout=deadline.timeout_for(self._config.http_timeout, stage),
        )
        self._log(
            logging.INFO,
            "Calling provider",
            log_ctx,
            provider=self._provider_client.name,
            model=self._config.model,
            stage=stage,
            message_count=len(messages),
        )
        result = self._provider_client.generate(req)
        if result.usage:
            self._log(
                logging.INFO,
                "Token usage",
                log_ctx,
                stage=stage,
                input_tokens=result.usage.input_tokens,
                output_tokens=result.usage.output_tokens,
            )
        return result

    @staticmethod
    def _final_text(result: ChatResult) -> str:
        text = result.first_text()
        if not text.strip():
            raise ProviderFailure(
                code="EMPTY_RESPONSE",
                message=f"{result.provider} returned an empty reply",
                provider=result.provider,
            )
        return text

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})


class ToolAugmentedRelay(ChatRelay):
    """Relay that lets the model run one web search before answering."""

    default_persona: PersonaOptions = TOOL_PERSONA

    def __init__(
        self,
        provider_client: ProviderClient,
        search_client: SearchClient,
        config: RelayConfig,
        tool_defs: Optional[List[ToolDef]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(provider_client, config, clock)
        self._search_client = search_client
        self._tool_defs = tool_defs or default_tool_defs()

    def _tools(self) -> Optional[List[ToolDef]]:
        return self._tool_defs

    def _executor(self, deadline: Deadline) -> ToolExecutor:
        # one executor per request; its result cache must not outlive it
        search = make_web_search_tool(
            self._search_client,
            self._config.search_model,
            timeout=lambda: deadline.timeout_for(self._config.http_timeout, "web_search"),
        )
        return ToolExecutor({WEB_SEARCH: search})

    def reply(self, messages: Sequence[Message]) -> RelayReply:
        log_ctx = self._start(messages)
        start_time = self._clock()
        deadline = Deadline(self._config.max_duration, self._clock)
        executor = self._executor(deadline)

        current = list(messages)
        tool_calls: List[ToolCall] = []
        usage: Optional[ChatUsage] = None
        rounds = 0

        while True:
            result = self._call_provider(current, deadline, log_ctx, stage=f"model-{rounds + 1}")
            usage = _add_usage(usage, result.usage)
            invocations = result.tool_uses(WEB_SEARCH)
            if not invocations:
                break
            if rounds >= self._config.max_tool_rounds:
                self._log(logging.WARNING, "Tool round limit reached", log_ctx, rounds=rounds)
                raise ProviderFailure(
                    code="TOOL_ROUND_LIMIT",
                    message=f"Model requested another tool call after {rounds} round(s)",
                    provider=result.provider,
                )
            rounds += 1
            invocation = invocations[0]
            call = ToolCall(id=invocation.id, name=invocation.name, arguments=dict(invocation.input))
            self._log(logging.INFO, "Tool round", log_ctx, round=rounds, tool=call.name, call_id=call.id)

            tool_result = executor.execute(call)
            tool_calls.append(call)
            self._log(
                logging.INFO,
                "Tool finished",
                log_ctx,
                round=rounds,
                tool=call.name,
                result_chars=len(tool_result.content),
            )

            current = current + [
                Message(role="assistant", content=tuple(result.content)),
                Message(
                    role="user",
                    content=(ToolResultSegment(tool_use_id=tool_result.call_id, content=tool_result.content),),
                ),
            ]

        text = self._final_text(result)
        self._log(
            logging.INFO,
            "Completed relay request",
            log_ctx,
            tool_rounds=rounds,
            elapsed_seconds=round(self._clock() - start_time, 2),
        )
        return RelayReply(text=text, trace_id=log_ctx["trace_id"], tool_calls=tool_calls, usage=usage)


def _add_usage(total: Optional[ChatUsage], extra: Optional[ChatUsage]) -> Optional[ChatUsage]:
    if extra is None:
        return total
    if total is None:
        return ChatUsage(input_tokens=extra.input_tokens, output_tokens=extra.output_tokens)
    return ChatUsage(
        input_tokens=total.input_tokens + extra.input_tokens,
        output_tokens=total.output_tokens + extra.output_tokens,
    )
