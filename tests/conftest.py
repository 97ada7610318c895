from __future__ import annotations

import os
import uuid
from collections.abc import Generator

import psycopg
import pytest

from essay_ingest_core.db import connect
from essay_ingest_core.migrations.runner import apply_migrations

TEST_EMBEDDING_DIM = 3


class WordTokenizer:
    """Whitespace tokenizer; keeps chunking tests independent of BPE vocab downloads."""

    def encode(self, text: str) -> list[str]:
        return text.split()


@pytest.fixture()
def word_tokenizer() -> WordTokenizer:
    return WordTokenizer()


@pytest.fixture(scope="session")
def pg_dsn() -> str:
    dsn = os.environ.get("PG_DSN")
    if not dsn:
        pytest.skip("PG_DSN not set; skipping DB integration tests")
    return dsn


@pytest.fixture(scope="session")
def pg_schema(pg_dsn: str) -> Generator[str, None, None]:
    schema = f"test_{uuid.uuid4().hex[:10]}"
    apply_migrations(pg_dsn, schema=schema, embedding_dim=TEST_EMBEDDING_DIM)
    yield schema
    with psycopg.connect(pg_dsn) as conn:
        conn.execute(f'drop schema if exists "{schema}" cascade')
        conn.commit()


@pytest.fixture()
def conn(pg_dsn: str, pg_schema: str) -> Generator[psycopg.Connection, None, None]:
    with connect(pg_dsn, schema=pg_schema) as c:
        c.execute("truncate essay_chunks")
        c.commit()
        yield c
