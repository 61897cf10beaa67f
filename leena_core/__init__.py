"""Leena core package.

Relays a browser chat conversation to an LLM provider, optionally letting the
model run one web search through a search provider before it answers.
Includes configuration loading, domain models, provider adapters, the tool
system, the relays and the HTTP API.
"""

from leena_core.agents.relay import ChatRelay, RelayConfig, RelayReply, ToolAugmentedRelay

__all__ = ["ChatRelay", "RelayConfig", "RelayReply", "ToolAugmentedRelay"]
