from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    EnvSettingsSource,
    JsonConfigSettingsSource,
)

DEFAULT_ASSISTANT_DIR = Path(".trading_assistant")
DEFAULT_CONFIG_PATH = DEFAULT_ASSISTANT_DIR / "config.json"


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables, .env, and JSON.
    """

    api_base_url: str = Field(
        default="http://localhost:54321", description="Host serving the LLM function."
    )
    api_token: Optional[SecretStr] = Field(
        default=None, description="Bearer token for the LLM function."
    )
    api_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Timeout for LLM HTTP requests."
    )
    llm_model: str = Field(
        default="gpt-4o", description="Model name sent with each completion request."
    )
    llm_temperature: float = Field(
        default=0.0, ge=0.0, le=2.0, description="Sampling temperature."
    )
    llm_max_tokens: int = Field(
        default=4000, gt=0, description="Maximum tokens per completion."
    )
    llm_max_attempts: int = Field(
        default=1, ge=1, description="Transport attempts on network failure."
    )
    image_api_base_url: Optional[str] = Field(
        default=None, description="Host serving image recognition."
    )
    image_api_token: Optional[SecretStr] = Field(
        default=None, description="Bearer token for image recognition."
    )
    image_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Timeout for image recognition requests."
    )
    image_max_bytes: int = Field(
        default=10 * 1024 * 1024, gt=0, description="Maximum image upload size."
    )
    max_steps: int = Field(default=10, ge=1, description="Agent loop step cap.")
    tool_history_limit: int = Field(
        default=100, ge=1, description="Retained tool execution records."
    )
    tool_delay_scale: float = Field(
        default=1.0, ge=0.0, description="Multiplier on simulated tool latency."
    )
    log_level: str = Field(default="WARNING", description="Root log level.")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="forbid"
    )

    @model_validator(mode="after")
    def _apply_defaults(self) -> "Config":
        """
        Normalizes hosts and derives the image host from the LLM host.

        Returns:
            The validated configuration instance.
        """
        self.api_base_url = self.api_base_url.rstrip("/")
        if not self.api_base_url:
            raise ValueError("api_base_url must not be empty.")
        if self.image_api_base_url:
            self.image_api_base_url = self.image_api_base_url.rstrip("/")
        else:
            self.image_api_base_url = self.api_base_url
        self.log_level = self.log_level.upper()
        return self

    @staticmethod
    def _secret_to_str(secret: Optional[SecretStr]) -> Optional[str]:
        """Return the underlying secret value if present."""

        if secret is None:
            return None
        return secret.get_secret_value()

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Loads configuration from a JSON file when present.

        Args:
            path: Optional override path for the JSON config file.

        Returns:
            A validated configuration object.
        """
        config_path = path or DEFAULT_CONFIG_PATH
        if not config_path.exists():
            return cls()

        json_source = JsonConfigSettingsSource(cls, json_file=config_path)
        dotenv_source = DotEnvSettingsSource(cls)
        env_source = EnvSettingsSource(cls)
        merged: dict[str, object] = {}
        merged.update(json_source())
        merged.update(dotenv_source())
        merged.update(env_source())
        return cls.model_validate(merged)

    def get_api_base_url(self) -> str:
        return self.api_base_url

    def get_api_token(self) -> Optional[str]:
        """
        Returns the LLM bearer token for runtime usage.

        Returns:
            The token or None if unset.
        """
        return self._secret_to_str(self.api_token)

    def get_image_api_base_url(self) -> str:
        """Returns the image host, falling back to the LLM host."""

        return self.image_api_base_url or self.api_base_url

    def get_image_api_token(self) -> Optional[str]:
        return self._secret_to_str(self.image_api_token)

    def get_llm_model(self) -> str:
        return self.llm_model

    def get_max_steps(self) -> int:
        return self.max_steps
