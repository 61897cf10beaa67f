"""Provider interfaces.

The relays never depend on a vendor SDK directly; they depend on these
protocols:

- ProviderClient: the LLM that generates replies (and may request tools).
- SearchClient: the provider that answers a web-search query with text.

Each vendor gets one implementation that converts the request dataclass into
its HTTP API and parses the JSON response back. Tests substitute fakes.
"""

from typing import Protocol

from leena_core.domain.models import ChatRequest, ChatResult, SearchRequest, SearchResult


class ProviderClient(Protocol):
    """LLM provider handle.

    - name: provider name used in logs.
    - generate(req): one non-streaming call returning a ChatResult.
    """

    name: str

    def generate(self, req: ChatRequest) -> ChatResult:
        ...


class SearchClient(Protocol):
    """Search provider handle."""

    name: str

    def complete(self, req: SearchRequest) -> SearchResult:
        ...
