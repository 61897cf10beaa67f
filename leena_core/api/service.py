"""HTTP API.

Two relay endpoints, both `POST` with body `{"messages": [{role, content}]}`:

- /api/claude: plain chat relay.
- /api/leena: tool-augmented relay (may run one web search).

Responses: 200 `{"response": text}`, 400 `{"message"}` for a bad body,
405 for any other method, 500 `{"message"}` (the tool-augmented endpoint
also carries an `error` detail string).
"""

import json
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from leena_core.agents.relay import ChatRelay, RelayConfig, ToolAugmentedRelay
from leena_core.config.settings import Settings, settings as default_settings
from leena_core.domain.conversation import parse_conversation
from leena_core.domain.exceptions import BusinessError, InvalidRequest
from leena_core.infrastructure.logging.logger import logger
from leena_core.providers import create_provider, create_search_client
from leena_core.providers.base import ProviderClient, SearchClient

CHAT_PATH = "/api/claude"
TOOL_PATH = "/api/leena"
OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    cfg: Optional[Settings] = None,
    provider: Optional[ProviderClient] = None,
    search_client: Optional[SearchClient] = None,
) -> FastAPI:
    """Build the FastAPI app with explicitly constructed provider handles."""

    cfg = cfg or default_settings
    provider = provider or create_provider(cfg)
    search_client = search_client or create_search_client(cfg)

    app = FastAPI(title="Leena")
    app.state.chat_relay = ChatRelay(provider, RelayConfig.for_chat(cfg))
    app.state.tool_relay = ToolAugmentedRelay(provider, search_client, RelayConfig.for_tools(cfg))
    app.state.expose_error_detail = cfg.expose_error_detail

    @app.post(CHAT_PATH)
    async def chat(request: Request) -> JSONResponse:
        return await _relay(request, app.state.chat_relay, include_detail=False)

    @app.post(TOOL_PATH)
    async def leena(request: Request) -> JSONResponse:
        return await _relay(request, app.state.tool_relay, include_detail=app.state.expose_error_detail)

    @app.api_route(CHAT_PATH, methods=OTHER_METHODS, include_in_schema=False)
    @app.api_route(TOOL_PATH, methods=OTHER_METHODS, include_in_schema=False)
    async def method_not_allowed() -> JSONResponse:
        return JSONResponse({"message": "Method not allowed"}, status_code=405, headers={"Allow": "POST"})

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True}

    return app


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        raise InvalidRequest()


async def _relay(request: Request, relay: ChatRelay, include_detail: bool) -> JSONResponse:
    try:
        messages = parse_conversation(await _read_body(request))
        reply = await run_in_threadpool(relay.reply, messages)
    except InvalidRequest as e:
        return JSONResponse({"message": e.message}, status_code=400)
    except BusinessError as e:
        logger.error(
            f"Relay failed: {e}",
            extra={"extra": {"path": request.url.path, "code": e.code, **_safe_extra(e)}},
        )
        return _internal_error(e, include_detail)
    except Exception as e:
        logger.exception(f"Relay failed: {e}", extra={"extra": {"path": request.url.path}})
        return _internal_error(e, include_detail)
    return JSONResponse({"response": reply.text})


def _internal_error(exc: Exception, include_detail: bool) -> JSONResponse:
    body: Dict[str, Any] = {"message": "Internal server error"}
    if include_detail:
        body["error"] = str(exc)
    return JSONResponse(body, status_code=500)


def _safe_extra(exc: BusinessError) -> Dict[str, Any]:
    return {k: v for k, v in exc.extra.items() if isinstance(v, (str, int, float, bool))}
