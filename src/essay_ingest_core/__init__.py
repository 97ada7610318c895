from essay_ingest_core.config import Settings, load_settings
from essay_ingest_core.chunking import build_document, chunk_document, merge_small_chunks
from essay_ingest_core.embedding import EmbeddingClient
from essay_ingest_core.errors import (
    ChunkingFault,
    EmbeddingFailure,
    IngestError,
    LookupFailure,
    PersistenceFailure,
)
from essay_ingest_core.ingest import ChunkOutcome, Ingestor, IngestStatus
from essay_ingest_core.models import Chunk, Document, StoredRecord
from essay_ingest_core.tokenizer import TiktokenTokenizer, count_tokens, get_tokenizer

__all__ = [
    "__version__",
    "Chunk",
    "ChunkOutcome",
    "ChunkingFault",
    "Document",
    "EmbeddingClient",
    "EmbeddingFailure",
    "IngestError",
    "IngestStatus",
    "Ingestor",
    "LookupFailure",
    "PersistenceFailure",
    "Settings",
    "StoredRecord",
    "TiktokenTokenizer",
    "build_document",
    "chunk_document",
    "count_tokens",
    "get_tokenizer",
    "load_settings",
    "merge_small_chunks",
]

__version__ = "0.1.0"
