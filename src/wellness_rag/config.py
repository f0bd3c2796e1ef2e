"""Shared configuration loaded from environment / dotenv files."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wellness_rag.errors import ConfigurationError


class Settings(BaseSettings):
    """Immutable runtime settings, populated from env vars or ``.env`` files.

    Construct once at the entry point (see :func:`load_settings`) and pass
    the instance to every component that needs it.
    """

    # Credentials
    openai_api_key: SecretStr | None = Field(default=None, description="Embedding service API key")
    vector_store_service_key: SecretStr | None = Field(default=None, description="Admin key for the vector store")
    vector_store_anon_key: SecretStr | None = Field(default=None, description="Public key, used when the service key is blank")
    vector_store_key: SecretStr | None = Field(
        default=None,
        description="Effective vector store key; resolved from the service and anon keys when unset",
    )

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_ssl: bool = False
    collection_name: str = "documents"
    query_name: str = "match_documents"

    # Ingestion
    data_dir: Path = Path("data") / "text_csv"
    batch_size: int = Field(default=3, ge=1)
    total_batches: int | None = Field(
        default=None,
        ge=1,
        description="Fixed number of batches; computed from the file count when unset",
    )
    chunk_size: int = Field(default=1000, ge=1)
    chunk_overlap: int = Field(default=200, ge=0)
    batch_delay_seconds: float = Field(default=2.0, ge=0)

    # Embedding
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int | None = 1536
    request_timeout_seconds: float = Field(default=60.0, gt=0)
    embedding_max_retries: int = Field(default=0, ge=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _resolve_store_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and not _raw_secret(data.get("vector_store_key")):
            for name in ("vector_store_service_key", "vector_store_anon_key"):
                if _raw_secret(data.get(name)):
                    return {**data, "vector_store_key": data[name]}
        return data

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_overlap(self) -> Settings:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be < chunk_size ({self.chunk_size})"
            )
        return self

    def require_ingestion_credentials(self) -> None:
        """Raise :class:`ConfigurationError` listing every missing credential."""
        missing: list[str] = []
        if not _secret_value(self.vector_store_key):
            missing.append("VECTOR_STORE_SERVICE_KEY (or VECTOR_STORE_ANON_KEY)")
        if not _secret_value(self.openai_api_key):
            missing.append("OPENAI_API_KEY")
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


def _secret_value(secret: SecretStr | None) -> str:
    return secret.get_secret_value().strip() if secret is not None else ""


def _raw_secret(value: Any) -> str:
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    return value.strip() if isinstance(value, str) else ""


def mask_secret(secret: SecretStr | None, visible: int = 8) -> str:
    """Return the first *visible* characters of *secret* followed by an ellipsis."""
    value = _secret_value(secret)
    if not value:
        return "<unset>"
    return f"{value[:visible]}..."


def load_settings(**overrides: Any) -> Settings:
    """Build :class:`Settings`, converting validation failures to ``ConfigurationError``."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
