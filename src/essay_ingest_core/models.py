from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Sequence


@dataclass(frozen=True)
class Document:
    title: str
    url: str
    content: str
    token_count: int
    date: str = ""
    authors: str = ""


@dataclass(frozen=True)
class Chunk:
    essay_title: str
    essay_url: str
    essay_date: str
    essay_authors: str
    content: str
    content_tokens: int
    embedding: tuple[float, ...] = ()

    @classmethod
    def from_document(cls, document: Document, *, content: str, content_tokens: int) -> Chunk:
        return cls(
            essay_title=document.title,
            essay_url=document.url,
            essay_date=document.date,
            essay_authors=document.authors,
            content=content,
            content_tokens=content_tokens,
        )

    def merged_with(self, other: Chunk) -> Chunk:
        return replace(
            self,
            content=f"{self.content} {other.content}",
            content_tokens=self.content_tokens + other.content_tokens,
        )

    def with_embedding(self, embedding: Sequence[float]) -> Chunk:
        return replace(self, embedding=tuple(float(v) for v in embedding))


@dataclass(frozen=True)
class StoredRecord:
    essay_title: str
    essay_url: str
    essay_date: str
    essay_authors: str
    content: str
    content_tokens: int
    embedding: tuple[float, ...]
    content_sha256: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: Sequence[float]) -> StoredRecord:
        return cls(
            essay_title=chunk.essay_title,
            essay_url=chunk.essay_url,
            essay_date=chunk.essay_date,
            essay_authors=chunk.essay_authors,
            content=chunk.content,
            content_tokens=chunk.content_tokens,
            embedding=tuple(float(v) for v in embedding),
        )
