"""Provider and model configuration.

Code refers to logical model names ("leena-chat", "web-search"); the vendor
model id each one maps to is configured here, so upgrading a model is a
one-line change.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class ModelConfig:
    """Configuration of one logical model."""

    logical_name: str
    provider_model: str
    max_tokens: int
    default_temperature: float


@dataclass
class ProviderConfig:
    """Configuration of one provider."""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


ANTHROPIC_CONFIG = ProviderConfig(
    name="anthropic",
    base_url="https://api.anthropic.com/v1",
    models={
        "leena-chat": ModelConfig(
            logical_name="leena-chat",
            provider_model="claude-3-5-sonnet-20240620",
            max_tokens=4000,
            default_temperature=1.0,
        )
    },
)

# Perplexity online models answer with live web results
PPLX_CONFIG = ProviderConfig(
    name="pplx",
    base_url="https://api.perplexity.ai",
    models={
        "web-search": ModelConfig(
            logical_name="web-search",
            provider_model="llama-3-sonar-large-32k-online",
            max_tokens=1024,
            default_temperature=0.2,
        )
    },
)


def resolve_model(cfg: ProviderConfig, logical_name: str) -> ModelConfig:
    """Map a logical model name to its ModelConfig.

    Unknown names are passed through as vendor model ids so a deployment can
    pin a model in config.yaml without touching the registry.
    """

    model_cfg = cfg.models.get(logical_name)
    if model_cfg is not None:
        return model_cfg
    default = next(iter(cfg.models.values()))
    return ModelConfig(
        logical_name=logical_name,
        provider_model=logical_name,
        max_tokens=default.max_tokens,
        default_temperature=default.default_temperature,
    )
