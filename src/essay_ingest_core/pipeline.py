from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

import psycopg

from essay_ingest_core.chunking import DEFAULT_CHUNK_SIZE, DEFAULT_MIN_CHUNK_TOKENS, chunk_document
from essay_ingest_core.config import Settings
from essay_ingest_core.corpus import CorpusFile, EssayRecord
from essay_ingest_core.db import open_chunk_store
from essay_ingest_core.embedding import EmbeddingClient
from essay_ingest_core.ingest import ChunkOutcome, Embedder, Ingestor, IngestStatus
from essay_ingest_core.logging_config import configure_logging
from essay_ingest_core.models import Chunk, Document
from essay_ingest_core.repositories.chunks import ChunkRepository
from essay_ingest_core.tokenizer import Tokenizer, get_tokenizer

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    outcomes: list[ChunkOutcome] = field(default_factory=list)

    def counts(self) -> dict[IngestStatus, int]:
        c = Counter(o.status for o in self.outcomes)
        return {status: c.get(status, 0) for status in IngestStatus}

    @property
    def stored(self) -> int:
        return self.counts()[IngestStatus.STORED]

    @property
    def skipped(self) -> int:
        return self.counts()[IngestStatus.SKIPPED]

    @property
    def failed(self) -> int:
        return self.counts()[IngestStatus.FAILED]

    def failures(self) -> list[ChunkOutcome]:
        return [o for o in self.outcomes if o.status is IngestStatus.FAILED]


def chunk_documents(
    documents: Iterable[Document],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    min_chunk_tokens: int = DEFAULT_MIN_CHUNK_TOKENS,
    tokenizer: Tokenizer | None = None,
) -> list[tuple[Document, list[Chunk]]]:
    return [
        (
            doc,
            chunk_document(doc, chunk_size=chunk_size, min_chunk_tokens=min_chunk_tokens, tokenizer=tokenizer),
        )
        for doc in documents
    ]


def build_corpus(chunked: Iterable[tuple[Document, list[Chunk]]]) -> CorpusFile:
    return CorpusFile.from_essays([EssayRecord.from_document(doc, chunks) for doc, chunks in chunked])


def _ingest_essay(ingestor: Ingestor, url: str, chunks: list[Chunk], report: IngestReport) -> None:
    outcomes = ingestor.ingest(chunks)
    report.outcomes.extend(outcomes)
    stored = sum(1 for o in outcomes if o.status is IngestStatus.STORED)
    logger.info("Essay %s: %d chunks, %d stored", url, len(outcomes), stored)


def ingest_documents(
    documents: Iterable[Document],
    ingestor: Ingestor,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    min_chunk_tokens: int = DEFAULT_MIN_CHUNK_TOKENS,
    tokenizer: Tokenizer | None = None,
) -> IngestReport:
    """
    Chunks and ingests documents one at a time, in order.
    """
    report = IngestReport()
    for doc in documents:
        chunks = chunk_document(doc, chunk_size=chunk_size, min_chunk_tokens=min_chunk_tokens, tokenizer=tokenizer)
        _ingest_essay(ingestor, doc.url, chunks, report)
    return report


def ingest_corpus(corpus: CorpusFile, ingestor: Ingestor) -> IngestReport:
    """
    Ingests the chunks already recorded in a corpus file, essay by essay.
    """
    report = IngestReport()
    for essay in corpus.essays:
        _ingest_essay(ingestor, essay.url, essay.to_chunks(), report)
    return report


def build_embedding_client(settings: Settings) -> EmbeddingClient:
    return EmbeddingClient(
        base_url=settings.embedding_base_url,
        api_key=settings.embedding_api_key.get_secret_value() if settings.embedding_api_key else None,
        model=settings.embedding_model,
        timeout_s=settings.embedding_timeout_s,
    )


def build_ingestor(settings: Settings, conn: psycopg.Connection) -> Ingestor:
    return Ingestor(
        ChunkRepository(conn),
        build_embedding_client(settings),
        delay_s=settings.ingest_delay_s,
    )


def build_tokenizer(settings: Settings) -> Tokenizer:
    return get_tokenizer(settings.tokenizer_encoding)


def chunk_documents_with_settings(
    documents: Iterable[Document],
    settings: Settings,
    *,
    tokenizer: Tokenizer | None = None,
) -> list[tuple[Document, list[Chunk]]]:
    return chunk_documents(
        documents,
        chunk_size=settings.chunk_size,
        min_chunk_tokens=settings.chunk_min_tokens,
        tokenizer=tokenizer if tokenizer is not None else build_tokenizer(settings),
    )


def ingest_documents_with_settings(
    documents: Iterable[Document],
    ingestor: Ingestor,
    settings: Settings,
    *,
    tokenizer: Tokenizer | None = None,
) -> IngestReport:
    return ingest_documents(
        documents,
        ingestor,
        chunk_size=settings.chunk_size,
        min_chunk_tokens=settings.chunk_min_tokens,
        tokenizer=tokenizer if tokenizer is not None else build_tokenizer(settings),
    )


def run(
    settings: Settings,
    documents: Iterable[Document],
    *,
    embedder: Embedder | None = None,
    tokenizer: Tokenizer | None = None,
) -> IngestReport:
    """
    Configures logging, opens the Postgres chunk store and ingests `documents` with settings-driven
    chunk sizes, embedding client and pacing.
    """
    configure_logging(settings.log_level)
    with open_chunk_store(settings) as store:
        ingestor = Ingestor(
            store,
            embedder if embedder is not None else build_embedding_client(settings),
            delay_s=settings.ingest_delay_s,
        )
        report = ingest_documents_with_settings(documents, ingestor, settings, tokenizer=tokenizer)
    logger.info("Ingest finished: %d stored, %d skipped, %d failed", report.stored, report.skipped, report.failed)
    return report
