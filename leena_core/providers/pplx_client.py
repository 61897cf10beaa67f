"""Perplexity search adapter.

Perplexity exposes an OpenAI-style chat/completions endpoint; its "online"
models ground the answer in live web results, which is what the relay uses
as the `web_search` tool:
- URL: {base_url}/chat/completions
- Auth: Authorization: Bearer <api_key>
"""

from typing import Any, Dict

import httpx

from leena_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from leena_core.domain.models import ChatUsage, SearchRequest, SearchResult
from leena_core.providers.registry import PPLX_CONFIG, resolve_model


class PplxClient:
    """Perplexity search client."""

    name = "pplx"

    def __init__(self, settings):
        self._settings = settings

    def complete(self, req: SearchRequest) -> SearchResult:
        if not getattr(self._settings, "pplx_api_key", None):
            raise ValidationError(code="MISSING_API_KEY", message="PPLX_API_KEY not set")
        payload = self._build_payload(req)
        timeout = req.timeout if req.timeout is not None else self._settings.http_timeout
        try:
            with httpx.Client(timeout=timeout, trust_env=False) as client:
                base = getattr(self._settings, "pplx_base_url", None) or PPLX_CONFIG.base_url
                resp = client.post(
                    f"{base}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._settings.pplx_api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Perplexity rate limit", provider=self.name)
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
            raise ApiError(code="MALFORMED_RESPONSE", message="Perplexity returned non-JSON body", provider=self.name)
        return self._parse_response(data, req)

    def _build_payload(self, req: SearchRequest) -> Dict[str, Any]:
        model_cfg = resolve_model(PPLX_CONFIG, req.model)
        return {
            "model": model_cfg.provider_model,
            "messages": [
                {"role": "system", "content": req.system},
                {"role": "user", "content": req.query},
            ],
        }

    def _parse_response(self, data: Any, req: SearchRequest) -> SearchResult:
        choices = data.get("choices") if isinstance(data, dict) else None
        text = None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict):
                text = message.get("content")
        if not isinstance(text, str):
            raise ApiError(code="MALFORMED_RESPONSE", message="Perplexity response has no message content", provider=self.name)
        usage_raw = data.get("usage") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                input_tokens=usage_raw.get("prompt_tokens") or 0,
                output_tokens=usage_raw.get("completion_tokens") or 0,
            )
        return SearchResult(provider=self.name, model=req.model, text=text, usage=usage, raw=data)
