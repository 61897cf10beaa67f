"""Configuration management.

Values are resolved from init kwargs, environment variables, `.env` and an
optional `config.yaml`, in that order of priority.
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """Load settings from config.yaml if one can be found."""
    candidates = []
    explicit = os.getenv("LEENA_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class LeenaSettings(BaseSettings):
    """Runtime settings for the relay service."""

    # ---- LLM provider (Anthropic Messages API) ----
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com/v1",
        description="Anthropic API base URL",
    )
    anthropic_version: str = Field(default="2023-06-01", description="anthropic-version header")
    chat_model: str = Field(
        default="leena-chat",
        description="Logical chat model name, mapped by the registry",
    )

    # ---- Search provider (Perplexity) ----
    pplx_api_key: Optional[str] = Field(default=None, description="Perplexity API key")
    pplx_base_url: str = Field(default="https://api.perplexity.ai", description="Perplexity API base URL")
    search_model: str = Field(default="web-search", description="Logical search model name")

    # ---- Relay behaviour ----
    chat_max_tokens: int = Field(default=1000, ge=1, description="Token budget for the plain chat relay")
    tool_max_tokens: int = Field(default=4000, ge=1, description="Token budget for the tool-augmented relay")
    temperature: float = Field(default=1.0, ge=0.0, le=1.0, description="Sampling temperature")
    http_timeout: float = Field(default=30.0, ge=1.0, description="Per-call HTTP timeout (seconds)")
    relay_max_duration: float = Field(
        default=60.0,
        ge=1.0,
        description="Upper bound on total handling time of the tool-augmented relay (seconds)",
    )
    max_tool_rounds: int = Field(
        default=1,
        ge=1,
        le=1,
        description="Tool round-trips per request (only one is supported)",
    )
    expose_error_detail: bool = Field(
        default=True,
        description="Echo the stringified error in 500 responses of the tool-augmented endpoint",
    )

    # ---- Logging ----
    log_dir: str = Field(default="logs", description="Log directory")
    log_level: str = Field(default="INFO", description="Log level name")
    log_redact_content: bool = Field(default=False, description="Truncate log messages")

    # ---- Server ----
    host: str = Field(default="127.0.0.1", description="Bind address for the HTTP server")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port for the HTTP server")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("anthropic_api_key", "pplx_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        name = v.upper()
        if name not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level {v!r}")
        return name

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = LeenaSettings()

# Type alias so callers can annotate against the settings object
Settings = LeenaSettings
