from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from essay_ingest_core.models import Chunk, Document


class ChunkRecord(BaseModel):
    essay_title: str
    essay_url: str
    essay_date: str = ""
    essay_authors: str = ""
    content: str
    content_tokens: int
    embedding: list[float] = Field(default_factory=list)

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> ChunkRecord:
        return cls(
            essay_title=chunk.essay_title,
            essay_url=chunk.essay_url,
            essay_date=chunk.essay_date,
            essay_authors=chunk.essay_authors,
            content=chunk.content,
            content_tokens=chunk.content_tokens,
            embedding=list(chunk.embedding),
        )

    def to_chunk(self) -> Chunk:
        return Chunk(
            essay_title=self.essay_title,
            essay_url=self.essay_url,
            essay_date=self.essay_date,
            essay_authors=self.essay_authors,
            content=self.content,
            content_tokens=self.content_tokens,
            embedding=tuple(self.embedding),
        )


class EssayRecord(BaseModel):
    title: str
    url: str
    date: str = ""
    authors: str = ""
    content: str = ""
    tokens: int = 0
    chunks: list[ChunkRecord] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: Document, chunks: list[Chunk] | None = None) -> EssayRecord:
        return cls(
            title=document.title,
            url=document.url,
            date=document.date,
            authors=document.authors,
            content=document.content,
            tokens=document.token_count,
            chunks=[ChunkRecord.from_chunk(c) for c in chunks or []],
        )

    def to_document(self) -> Document:
        return Document(
            title=self.title,
            url=self.url,
            date=self.date,
            authors=self.authors,
            content=self.content,
            token_count=self.tokens,
        )

    def to_chunks(self) -> list[Chunk]:
        return [c.to_chunk() for c in self.chunks]


class CorpusFile(BaseModel):
    """
    JSON hand-off between document acquisition and embedding: `{"tokens": ..., "essays": [...]}`.
    """

    tokens: int = 0
    essays: list[EssayRecord] = Field(default_factory=list)

    @classmethod
    def from_essays(cls, essays: list[EssayRecord]) -> CorpusFile:
        return cls(tokens=sum(e.tokens for e in essays), essays=essays)


def read_corpus(path: str | Path) -> CorpusFile:
    return CorpusFile.model_validate_json(Path(path).read_text(encoding="utf-8"))


def write_corpus(path: str | Path, corpus: CorpusFile) -> None:
    Path(path).write_text(corpus.model_dump_json(), encoding="utf-8")
