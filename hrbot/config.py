"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """HR assistant configuration. All values come from environment variables."""

    # Anthropic
    anthropic_api_key: str = Field(default="")
    chat_model: str = Field(default="claude-sonnet-4-5-20250929")
    model_temperature: float = Field(default=0.7)
    model_max_tokens: int = Field(default=1000)

    # Employee directory
    employee_data_path: Path = Field(default=Path("data/employee_data.csv"))
    employee_result_limit: int = Field(default=10)

    # Vectorize (remote policy index); the local policy set is used when unset
    vectorize_api_key: str = Field(default="")
    vectorize_endpoint: str = Field(default="")
    vectorize_index_name: str = Field(default="hr-policies")
    policy_search_timeout: float = Field(default=10.0)

    # Conversation memory
    max_messages_per_session: int = Field(default=10)
    session_timeout_minutes: int = Field(default=30)
    sweep_interval_minutes: int = Field(default=5)
    context_staleness_minutes: int = Field(default=5)

    # Guardrails
    max_message_length: int = Field(default=1000)

    # HTTP server
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=3001)
    frontend_url: str = Field(default="http://localhost:3000")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @property
    def vectorize_configured(self) -> bool:
        """True when both the remote index endpoint and key are set."""
        return bool(self.vectorize_api_key.strip() and self.vectorize_endpoint.strip())

    @property
    def anthropic_configured(self) -> bool:
        return bool(self.anthropic_api_key.strip())


settings = Settings()
