from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    pg_dsn: str | None = Field(default=None, alias="PG_DSN")
    pg_host: str | None = Field(default=None, alias="POSTGRES_HOST")
    pg_port: int = Field(default=5432, alias="POSTGRES_PORT")
    pg_db: str | None = Field(default=None, alias="POSTGRES_DB")
    pg_user: str | None = Field(default=None, alias="POSTGRES_USER")
    pg_password: SecretStr | None = Field(default=None, alias="POSTGRES_PASSWORD")
    pg_schema: str = Field(default="public", alias="POSTGRES_SCHEMA")

    embedding_base_url: str = Field(default="https://api.openai.com", alias="EMBEDDING_BASE_URL")
    embedding_api_key: SecretStr | None = Field(default=None, alias="EMBEDDING_API_KEY")
    embedding_model: str = Field(default="text-embedding-ada-002", alias="EMBEDDING_MODEL")
    embedding_timeout_s: float = Field(default=60.0, gt=0, alias="EMBEDDING_TIMEOUT_S")
    embedding_dim: int = Field(default=1536, gt=0, alias="EMBEDDING_DIM")

    chunk_size: int = Field(default=200, gt=0, alias="CHUNK_SIZE")
    chunk_min_tokens: int = Field(default=100, ge=0, alias="CHUNK_MIN_TOKENS")
    tokenizer_encoding: str = Field(default="gpt2", alias="TOKENIZER_ENCODING")

    ingest_delay_ms: int = Field(default=300, ge=0, alias="INGEST_DELAY_MS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def ingest_delay_s(self) -> float:
        return self.ingest_delay_ms / 1000.0


def load_settings() -> Settings:
    return Settings()
