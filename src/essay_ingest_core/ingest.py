from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from essay_ingest_core.errors import EmbeddingFailure, IngestError, LookupFailure, PersistenceFailure
from essay_ingest_core.models import Chunk, StoredRecord

logger = logging.getLogger(__name__)

DEFAULT_DELAY_S = 0.3


class ChunkStore(Protocol):
    def find_by_content(self, content: str) -> StoredRecord | None: ...
    def insert(self, record: StoredRecord) -> None: ...


class Embedder(Protocol):
    def embed_text(self, text: str) -> Sequence[float]: ...


class IngestStatus(str, Enum):
    SKIPPED = "skipped"
    STORED = "stored"
    FAILED = "failed"


@dataclass(frozen=True)
class ChunkOutcome:
    index: int
    chunk: Chunk
    status: IngestStatus
    error: IngestError | None = None


class Ingestor:
    """
    Embeds and stores chunks one at a time, skipping content the store already holds.

    Each chunk runs lookup, embed and persist to completion before the next one starts, with a
    fixed pause in between. Failures are scoped to their chunk. Re-running over the same chunks is
    safe: stored content is skipped and only missing chunks are embedded again.

    Not safe for concurrent use against one store; the lookup and insert are not atomic.
    """

    def __init__(
        self,
        store: ChunkStore,
        embedder: Embedder,
        *,
        delay_s: float = DEFAULT_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        self._store = store
        self._embedder = embedder
        self._delay_s = delay_s
        self._sleep = sleep
        self._resolved_any = False

    def _pace(self) -> None:
        if self._resolved_any and self._delay_s > 0:
            self._sleep(self._delay_s)

    def _resolve(self, chunk: Chunk) -> IngestStatus:
        try:
            existing = self._store.find_by_content(chunk.content)
        except Exception as e:  # noqa: BLE001
            raise LookupFailure(f"Existence check failed: {e}") from e
        if existing is not None:
            return IngestStatus.SKIPPED

        try:
            embedding = self._embedder.embed_text(chunk.content)
            empty = len(embedding) == 0
        except Exception as e:  # noqa: BLE001
            raise EmbeddingFailure(f"Embedding request failed: {e}") from e
        if empty:
            raise EmbeddingFailure("Embedding service returned an empty vector")

        try:
            self._store.insert(StoredRecord.from_chunk(chunk, embedding))
        except Exception as e:  # noqa: BLE001
            raise PersistenceFailure(f"Store write failed: {e}") from e
        return IngestStatus.STORED

    def ingest_chunk(self, chunk: Chunk, *, index: int = 0) -> ChunkOutcome:
        self._pace()
        try:
            status = self._resolve(chunk)
        except IngestError as e:
            logger.warning(
                "Chunk %d of %s failed at %s: %s",
                index,
                chunk.essay_url,
                e.step,
                e,
                exc_info=True,
            )
            return ChunkOutcome(index=index, chunk=chunk, status=IngestStatus.FAILED, error=e)
        finally:
            self._resolved_any = True

        if status is IngestStatus.SKIPPED:
            logger.info("Chunk %d of %s already exists; skipped", index, chunk.essay_url)
        else:
            logger.info("Chunk %d of %s saved (%d tokens)", index, chunk.essay_url, chunk.content_tokens)
        return ChunkOutcome(index=index, chunk=chunk, status=status)

    def iter_ingest(self, chunks: Iterable[Chunk]) -> Iterator[ChunkOutcome]:
        for index, chunk in enumerate(chunks):
            yield self.ingest_chunk(chunk, index=index)

    def ingest(self, chunks: Iterable[Chunk]) -> list[ChunkOutcome]:
        return list(self.iter_ingest(chunks))
