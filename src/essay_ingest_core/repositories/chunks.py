from __future__ import annotations

import psycopg

from essay_ingest_core.models import StoredRecord
from essay_ingest_core.util import format_vector, parse_vector, sha256_text

_COLUMNS = """
    essay_title, essay_url, essay_date, essay_authors,
    content, content_tokens, embedding::text, content_sha256, created_at
"""


def _record_from_row(row: tuple) -> StoredRecord:
    return StoredRecord(
        essay_title=row[0],
        essay_url=row[1],
        essay_date=row[2],
        essay_authors=row[3],
        content=row[4],
        content_tokens=row[5],
        embedding=parse_vector(row[6]),
        content_sha256=row[7],
        created_at=row[8],
    )


class ChunkRepository:
    """
    Embedded essay chunks, one row per distinct content.

    Uniqueness is not enforced by the table; callers check `find_by_content` before `insert`.
    """

    def __init__(self, conn: psycopg.Connection):
        self._conn = conn

    def find_by_content(self, content: str) -> StoredRecord | None:
        with self._conn.transaction():
            row = self._conn.execute(
                f"""
                select {_COLUMNS}
                from essay_chunks
                where content_sha256=%s and content=%s
                order by id asc
                limit 1
                """,
                (sha256_text(content), content),
            ).fetchone()
        if not row:
            return None
        return _record_from_row(row)

    def insert(self, record: StoredRecord) -> None:
        with self._conn.transaction():
            self._conn.execute(
                """
                insert into essay_chunks (
                  essay_title, essay_url, essay_date, essay_authors,
                  content, content_sha256, content_tokens, embedding
                ) values (
                  %s, %s, %s, %s,
                  %s, %s, %s, %s::vector
                )
                """,
                (
                    record.essay_title,
                    record.essay_url,
                    record.essay_date,
                    record.essay_authors,
                    record.content,
                    sha256_text(record.content),
                    record.content_tokens,
                    format_vector(record.embedding),
                ),
            )

    def count(self) -> int:
        with self._conn.transaction():
            row = self._conn.execute("select count(*) from essay_chunks").fetchone()
        return int(row[0]) if row else 0

    def count_by_content(self, content: str) -> int:
        with self._conn.transaction():
            row = self._conn.execute(
                "select count(*) from essay_chunks where content_sha256=%s and content=%s",
                (sha256_text(content), content),
            ).fetchone()
        return int(row[0]) if row else 0

    def list_for_essay(self, essay_url: str) -> list[StoredRecord]:
        with self._conn.transaction():
            rows = self._conn.execute(
                f"""
                select {_COLUMNS}
                from essay_chunks
                where essay_url=%s
                order by id asc
                """,
                (essay_url,),
            ).fetchall()
        return [_record_from_row(r) for r in rows]
