from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import psycopg
from pydantic import SecretStr

from essay_ingest_core.config import Settings
from essay_ingest_core.repositories.chunks import ChunkRepository

APPLICATION_NAME = "essay-ingest"


@dataclass(frozen=True)
class PostgresConfig:
    dsn: str | None = None
    host: str | None = None
    port: int = 5432
    db: str | None = None
    user: str | None = None
    password: SecretStr | str | None = None
    schema: str = "public"

    @classmethod
    def from_settings(cls, settings: Settings) -> PostgresConfig:
        return cls(
            dsn=settings.pg_dsn,
            host=settings.pg_host,
            port=settings.pg_port,
            db=settings.pg_db,
            user=settings.pg_user,
            password=settings.pg_password,
            schema=settings.pg_schema,
        )

    def build_dsn(self) -> str:
        if self.dsn:
            return self.dsn
        missing = [
            name
            for name, value in (
                ("POSTGRES_HOST", self.host),
                ("POSTGRES_DB", self.db),
                ("POSTGRES_USER", self.user),
                ("POSTGRES_PASSWORD", self.password),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing Postgres config: {', '.join(missing)} (or set PG_DSN)")
        password = self.password.get_secret_value() if isinstance(self.password, SecretStr) else self.password
        return f"postgresql://{self.user}:{password}@{self.host}:{self.port}/{self.db}"


@contextmanager
def connect(dsn: str, *, schema: str = "public") -> Iterator[psycopg.Connection]:
    # pgvector lives in `public`; keep it resolvable from the essay schema.
    options = f"-c search_path={schema},public -c timezone=UTC"
    with psycopg.connect(dsn, options=options, application_name=APPLICATION_NAME) as conn:
        yield conn


@contextmanager
def open_chunk_store(settings: Settings) -> Iterator[ChunkRepository]:
    """
    Connection-scoped essay chunk store configured from settings.
    """
    cfg = PostgresConfig.from_settings(settings)
    with connect(cfg.build_dsn(), schema=cfg.schema) as conn:
        yield ChunkRepository(conn)
