"""Configuration read from environment variables.

Centralizes every recognised variable and its default. ``.env`` files are
loaded by the CLI before settings are read.
"""

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError
from .memory.in_memory import DEFAULT_MAX_CONVERSATIONS, DEFAULT_TTL_SECONDS
from .memory.sweeper import DEFAULT_SWEEP_INTERVAL_SECONDS

DEFAULT_APP_PORT = 3000
DEFAULT_TOOL_SERVER_PORT = 3001

# provider -> (api key variable, model variable)
_PROVIDER_ENV = {
    "openai": ("OPENAI_API_KEY", "OPENAI_CHAT_MODEL"),
    "deepseek": ("DEEPSEEK_API_KEY", "DEEPSEEK_MODEL"),
    "anthropic": ("ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
    "claude": ("ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
}


class Settings(BaseModel):
    """Runtime settings for the application server and the tool server."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_APP_PORT, ge=1, le=65535)
    tool_server_port: int = Field(default=DEFAULT_TOOL_SERVER_PORT, ge=1, le=65535)
    tool_server_url: str = f"http://localhost:{DEFAULT_TOOL_SERVER_PORT}"
    tool_timeout_seconds: float = Field(default=30.0, gt=0)

    llm_provider: str = "openai"
    llm_api_key: str | None = Field(default=None, repr=False)
    llm_model: str | None = None

    conversation_ttl_seconds: float = Field(default=DEFAULT_TTL_SECONDS, gt=0)
    max_conversations: int = Field(default=DEFAULT_MAX_CONVERSATIONS, ge=1)
    sweep_interval_seconds: float = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS, gt=0)

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Environment variables:
            HOST: Bind address (default: 127.0.0.1)
            PORT: Application server port (default: 3000)
            MCP_PORT: Tool server port (default: 3001)
            MCP_SERVER_URL: Tool server base URL (default: http://localhost:3001)
            TOOL_TIMEOUT_SECONDS: Tool call timeout (default: 30)
            LLM_PROVIDER: openai, deepseek or anthropic (default: openai)
            OPENAI_API_KEY / DEEPSEEK_API_KEY / ANTHROPIC_API_KEY: Gateway key
            OPENAI_CHAT_MODEL / DEEPSEEK_MODEL / ANTHROPIC_MODEL: Model override
            CONVERSATION_TTL_SECONDS: Idle expiry (default: 3600)
            MAX_CONVERSATIONS: Store capacity (default: 100)
            SWEEP_INTERVAL_SECONDS: Expiry sweep period (default: 600)
            LOG_LEVEL: Logging level (default: INFO)

        Raises:
            ConfigurationError: If a variable has an invalid value or the
                provider is unknown
        """
        env = os.environ if environ is None else environ
        provider = env.get("LLM_PROVIDER", "openai").lower()
        if provider not in _PROVIDER_ENV:
            raise ConfigurationError(
                f"Unknown LLM provider: {provider}. "
                f"Supported providers: openai, deepseek, anthropic"
            )
        key_var, model_var = _PROVIDER_ENV[provider]

        values: dict[str, Any] = {
            "host": env.get("HOST"),
            "port": env.get("PORT"),
            "tool_server_port": env.get("MCP_PORT"),
            "tool_server_url": env.get("MCP_SERVER_URL"),
            "tool_timeout_seconds": env.get("TOOL_TIMEOUT_SECONDS"),
            "llm_provider": provider,
            "llm_api_key": env.get(key_var) or None,
            "llm_model": env.get(model_var) or None,
            "conversation_ttl_seconds": env.get("CONVERSATION_TTL_SECONDS"),
            "max_conversations": env.get("MAX_CONVERSATIONS"),
            "sweep_interval_seconds": env.get("SWEEP_INTERVAL_SECONDS"),
            "log_level": env.get("LOG_LEVEL"),
        }
        try:
            return cls.model_validate({k: v for k, v in values.items() if v is not None})
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @property
    def api_key_variable(self) -> str:
        return _PROVIDER_ENV[self.llm_provider][0]

    def llm_config(self) -> dict[str, Any]:
        """Keyword arguments for ``create_llm_provider``.

        Raises:
            ConfigurationError: If the gateway API key is missing
        """
        if not self.llm_api_key:
            raise ConfigurationError(f"{self.api_key_variable} is not set")
        config: dict[str, Any] = {"api_key": self.llm_api_key}
        if self.llm_model:
            config["model"] = self.llm_model
        return config
