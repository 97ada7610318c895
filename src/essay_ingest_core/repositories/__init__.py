from essay_ingest_core.repositories.chunks import ChunkRepository

__all__ = [
    "ChunkRepository",
]
