"""LLM and search provider integration.

- base: ProviderClient / SearchClient protocols.
- registry: provider and logical model configuration.
- anthropic_client, pplx_client: vendor implementations.

Handles are built once by the application and injected into the relays.
"""

from typing import Optional

from leena_core.config.settings import Settings, settings as default_settings
from leena_core.providers.anthropic_client import AnthropicClient
from leena_core.providers.base import ProviderClient, SearchClient
from leena_core.providers.pplx_client import PplxClient


def create_provider(cfg: Optional[Settings] = None) -> ProviderClient:
    """Build the LLM provider handle."""

    return AnthropicClient(cfg or default_settings)


def create_search_client(cfg: Optional[Settings] = None) -> SearchClient:
    """Build the search provider handle."""

    return PplxClient(cfg or default_settings)
