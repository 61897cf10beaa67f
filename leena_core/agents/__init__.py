from leena_core.agents.relay import ChatRelay, RelayConfig, RelayReply, ToolAugmentedRelay

__all__ = ["ChatRelay", "RelayConfig", "RelayReply", "ToolAugmentedRelay"]
