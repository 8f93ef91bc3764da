"""
Settings
========

Environment configuration, read once at startup.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# SQL draft, one corrective redraft, answer summary
LLM_CALLS_PER_REQUEST = 3


class Settings(BaseSettings):
    motherduck_token: str | None = None
    motherduck_database: str = "md:chat_rfb"

    anthropic_api_key: str | None = None
    sql_model: str = "claude-sonnet-4-5"
    summary_model: str = "claude-haiku-4-5"
    llm_timeout_seconds: float = Field(default=15.0, gt=0)
    llm_max_retries: int = Field(default=1, ge=0)

    port: int = 10000
    allowed_origins: str = (
        "https://brazildatacorp.com,https://www.brazildatacorp.com,"
        "http://localhost:5500,http://127.0.0.1:5500"
    )

    default_limit: int = Field(default=50, ge=1)
    max_limit: int = Field(default=500, ge=1)
    schema_cache_ttl_seconds: float = 3600
    request_timeout_seconds: float = 60
    warehouse_max_attempts: int = Field(default=3, ge=1)
    warehouse_backoff_seconds: float = 0.2

    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"
    otel_exporter_otlp_endpoint: str = "localhost:4317"

    # Reads from the process environment, then a .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @model_validator(mode="after")
    def check_llm_budget(self) -> "Settings":
        # Every LLM call must be able to time out before the request does
        if LLM_CALLS_PER_REQUEST * self.llm_timeout_seconds >= self.request_timeout_seconds:
            raise ValueError(
                f"llm_timeout_seconds must be below request_timeout_seconds / {LLM_CALLS_PER_REQUEST}"
            )
        return self

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
