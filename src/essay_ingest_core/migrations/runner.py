from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from string import Template

import psycopg

logger = logging.getLogger(__name__)

# text-embedding-ada-002
DEFAULT_EMBEDDING_DIM = 1536


class MigrationError(RuntimeError):
    pass


@dataclass(frozen=True)
class Migration:
    version: str
    path: Path

    def render(self, *, embedding_dim: int) -> str:
        return Template(self.path.read_text(encoding="utf-8")).substitute(embedding_dim=int(embedding_dim))


def discover_migrations() -> list[Migration]:
    sql_dir = Path(__file__).resolve().parent / "sql"
    return [Migration(version=path.stem, path=path) for path in sorted(sql_dir.glob("*.sql"))]


def ensure_vector_extension(conn: psycopg.Connection) -> None:
    """
    Installs pgvector into `public`, where the chunk table and repository expect the `vector` type.
    """
    row = conn.execute("select extnamespace::regnamespace::text from pg_extension where extname = 'vector'").fetchone()
    if row:
        if row[0] != "public":
            raise MigrationError(f"pgvector is installed in schema {row[0]!r}; essay_chunks expects it in 'public'")
        return
    available = conn.execute("select 1 from pg_available_extensions where name = 'vector'").fetchone()
    if not available:
        raise MigrationError("pgvector extension is not available on this Postgres server")
    conn.execute("create extension if not exists vector schema public")
    logger.info("Installed pgvector extension")


def embedding_dimension(conn: psycopg.Connection) -> int | None:
    """
    Declared dimension of `essay_chunks.embedding` in the current search path, or None if absent.
    """
    row = conn.execute(
        """
        select a.atttypmod
        from pg_attribute a
        where a.attrelid = to_regclass('essay_chunks') and a.attname = 'embedding' and not a.attisdropped
        """
    ).fetchone()
    if not row or row[0] is None or row[0] < 0:
        return None
    return int(row[0])


def apply_migrations(
    dsn: str,
    *,
    schema: str = "public",
    embedding_dim: int = DEFAULT_EMBEDDING_DIM,
    migrations: Iterable[Migration] | None = None,
) -> list[str]:
    """
    Creates the chunk store in `schema`. Idempotent: recorded versions are skipped.

    Raises MigrationError when an existing store was created for a different embedding dimension.
    """
    if embedding_dim <= 0:
        raise ValueError("embedding_dim must be > 0")
    if migrations is None:
        migrations = discover_migrations()

    applied: list[str] = []
    with psycopg.connect(dsn) as conn:
        conn.execute("set timezone to 'UTC'")
        ensure_vector_extension(conn)
        conn.execute(f'create schema if not exists "{schema}"')
        conn.execute(f'set search_path to "{schema}", public')
        conn.execute(
            """
            create table if not exists schema_migrations (
              version text primary key,
              applied_at timestamptz not null default now()
            )
            """
        )
        conn.commit()
        done = {r[0] for r in conn.execute("select version from schema_migrations").fetchall()}

        for mig in migrations:
            if mig.version in done:
                continue
            conn.execute(mig.render(embedding_dim=embedding_dim))
            conn.execute("insert into schema_migrations(version) values (%s)", (mig.version,))
            conn.commit()
            logger.info("Applied migration %s to schema %s", mig.version, schema)
            applied.append(mig.version)

        current = embedding_dimension(conn)
        if current is not None and current != embedding_dim:
            raise MigrationError(
                f"essay_chunks.embedding in schema {schema!r} holds {current}-dim vectors, expected {embedding_dim}"
            )

    return applied
