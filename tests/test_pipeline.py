from __future__ import annotations

import pytest

from essay_ingest_core.chunking import build_document
from essay_ingest_core.config import Settings
from essay_ingest_core.ingest import Ingestor, IngestStatus
from essay_ingest_core.models import StoredRecord
from essay_ingest_core.pipeline import (
    build_corpus,
    build_embedding_client,
    build_ingestor,
    chunk_documents,
    chunk_documents_with_settings,
    ingest_corpus,
    ingest_documents,
    ingest_documents_with_settings,
)
from essay_ingest_core.repositories.chunks import ChunkRepository


class MemoryStore:
    def __init__(self) -> None:
        self.records: dict[str, StoredRecord] = {}

    def find_by_content(self, content: str) -> StoredRecord | None:
        return self.records.get(content)

    def insert(self, record: StoredRecord) -> None:
        self.records[record.content] = record


class CountingEmbedder:
    def __init__(self, fail_on: str | None = None) -> None:
        self.calls = 0
        self.fail_on = fail_on

    def embed_text(self, text: str) -> list[float]:
        self.calls += 1
        if self.fail_on and self.fail_on in text:
            raise RuntimeError("rate limited")
        return [float(self.calls)]


def _docs(tokenizer):  # noqa: ANN001, ANN202
    long_text = ". ".join(f"Sentence {i} about slow wave sleep and memory" for i in range(30)) + "."
    return [
        build_document(title="Long", url="https://example.org/long/", content=long_text, tokenizer=tokenizer),
        build_document(title="Short", url="https://example.org/short/", content="REM sleep aids learning.", tokenizer=tokenizer),
        build_document(title="Copy", url="https://example.org/copy/", content="REM sleep aids learning.", tokenizer=tokenizer),
    ]


def test_chunk_documents_keeps_document_order(word_tokenizer) -> None:  # noqa: ANN001
    chunked = chunk_documents(_docs(word_tokenizer), chunk_size=60, min_chunk_tokens=20, tokenizer=word_tokenizer)

    assert [d.title for d, _ in chunked] == ["Long", "Short", "Copy"]
    assert len(chunked[0][1]) > 1
    assert len(chunked[1][1]) == 1


def test_ingest_documents_reports_counts(word_tokenizer) -> None:  # noqa: ANN001
    store = MemoryStore()
    ingestor = Ingestor(store, CountingEmbedder(), delay_s=0)

    report = ingest_documents(
        _docs(word_tokenizer),
        ingestor,
        chunk_size=60,
        min_chunk_tokens=20,
        tokenizer=word_tokenizer,
    )

    assert report.skipped == 1
    assert report.failed == 0
    assert report.stored == len(report.outcomes) - 1
    assert len(store.records) == report.stored


def test_ingest_documents_rerun_only_retries_failures(word_tokenizer) -> None:  # noqa: ANN001
    store = MemoryStore()
    docs = _docs(word_tokenizer)

    first = ingest_documents(docs, Ingestor(store, CountingEmbedder(fail_on="REM"), delay_s=0), tokenizer=word_tokenizer)
    # The identical "Copy" text is not in the store yet, so it is attempted and fails too.
    assert first.failed == 2
    assert [o.chunk.essay_url for o in first.failures()] == [
        "https://example.org/short/",
        "https://example.org/copy/",
    ]
    assert first.counts()[IngestStatus.STORED] == 1

    embedder = CountingEmbedder()
    second = ingest_documents(docs, Ingestor(store, embedder, delay_s=0), tokenizer=word_tokenizer)
    assert second.failed == 0
    assert second.stored == 1
    assert embedder.calls == 1


def test_ingest_corpus_uses_recorded_chunks(word_tokenizer) -> None:  # noqa: ANN001
    chunked = chunk_documents(_docs(word_tokenizer), chunk_size=60, min_chunk_tokens=20, tokenizer=word_tokenizer)
    corpus = build_corpus(chunked)
    assert corpus.tokens == sum(d.token_count for d, _ in chunked)

    store = MemoryStore()
    report = ingest_corpus(corpus, Ingestor(store, CountingEmbedder(), delay_s=0))

    total_chunks = sum(len(c) for _, c in chunked)
    assert len(report.outcomes) == total_chunks
    assert report.skipped == 1


def test_build_ingestor_from_settings() -> None:
    settings = Settings.model_validate(
        {
            "EMBEDDING_BASE_URL": "http://embeddings.local",
            "EMBEDDING_API_KEY": "sk-test",
            "EMBEDDING_MODEL": "text-embedding-3-small",
            "INGEST_DELAY_MS": "150",
        }
    )
    client = build_embedding_client(settings)
    assert client.base_url == "http://embeddings.local"
    assert client.api_key == "sk-test"
    assert client.model == "text-embedding-3-small"
    assert client.max_retries == 0

    ingestor = build_ingestor(settings, conn=None)  # type: ignore[arg-type]
    assert isinstance(ingestor._store, ChunkRepository)
    assert ingestor._delay_s == pytest.approx(0.15)


def test_settings_drive_chunk_sizes(word_tokenizer) -> None:  # noqa: ANN001
    docs = _docs(word_tokenizer)
    small = Settings.model_validate({"CHUNK_SIZE": "60", "CHUNK_MIN_TOKENS": "20"})
    large = Settings.model_validate({})

    assert len(chunk_documents_with_settings(docs, small, tokenizer=word_tokenizer)[0][1]) == 4
    assert len(chunk_documents_with_settings(docs, large, tokenizer=word_tokenizer)[0][1]) == 1


def test_ingest_with_small_chunk_size_and_default_threshold(word_tokenizer) -> None:  # noqa: ANN001
    settings = Settings.model_validate({"CHUNK_SIZE": "10"})
    report = ingest_documents_with_settings(
        _docs(word_tokenizer),
        Ingestor(MemoryStore(), CountingEmbedder(), delay_s=0),
        settings,
        tokenizer=word_tokenizer,
    )

    # Every chunk after the first is under 100 tokens, so each essay collapses to one chunk.
    assert [o.status for o in report.outcomes] == [IngestStatus.STORED, IngestStatus.STORED, IngestStatus.SKIPPED]
