from __future__ import annotations


class IngestError(RuntimeError):
    """
    Base class for chunk-scoped ingestion failures.

    Each failure is reported as a `FAILED` outcome for its chunk and never stops the run.
    """

    step = "ingest"


class LookupFailure(IngestError):
    step = "lookup"


class EmbeddingFailure(IngestError):
    step = "embed"


class PersistenceFailure(IngestError):
    step = "persist"


class ChunkingFault(RuntimeError):
    """
    Raised inside the chunker when segmenting or merging cannot complete. Always recovered locally.
    """
