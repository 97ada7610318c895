from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from typing import Iterable

from essay_ingest_core.errors import ChunkingFault
from essay_ingest_core.models import Chunk, Document
from essay_ingest_core.tokenizer import Tokenizer, count_tokens, get_tokenizer

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 200
DEFAULT_MIN_CHUNK_TOKENS = 100

# Naive sentence boundary. Abbreviations, decimals and quotes are split too.
SENTENCE_SEPARATOR = ". "


@dataclass(frozen=True)
class _Accumulator:
    finished: tuple[str, ...] = ()
    buffer: str = ""


def build_document(
    *,
    title: str,
    url: str,
    content: str,
    date: str = "",
    authors: str = "",
    tokenizer: Tokenizer | None = None,
) -> Document:
    """
    Builds a Document, counting tokens of the trimmed content.
    """
    return Document(
        title=title,
        url=url,
        date=date,
        authors=authors,
        content=content,
        token_count=count_tokens(content.strip(), tokenizer),
    )


def split_segments(content: str) -> list[str]:
    return content.split(SENTENCE_SEPARATOR)


def _append_segment(buffer: str, segment: str) -> str:
    last = segment[-1:]
    if last.isascii() and last.isalnum():
        return buffer + segment + SENTENCE_SEPARATOR
    return buffer + segment + " "


def accumulate_segments(
    segments: Iterable[str],
    *,
    chunk_size: int,
    tokenizer: Tokenizer,
) -> list[str]:
    """
    Packs segments into texts whose token count stays within `chunk_size` where possible.

    Mid-stream texts keep their trailing separator; only the last text is trimmed. A segment
    that alone exceeds the budget becomes its own oversized text.
    """

    def step(acc: _Accumulator, segment: str) -> _Accumulator:
        finished = acc.finished
        buffer = acc.buffer
        if buffer and count_tokens(buffer, tokenizer) + count_tokens(segment, tokenizer) > chunk_size:
            finished = finished + (buffer,)
            buffer = ""
        return _Accumulator(finished=finished, buffer=_append_segment(buffer, segment))

    acc = reduce(step, segments, _Accumulator())
    tail = acc.buffer.strip()
    if tail or not acc.finished:
        return [*acc.finished, tail]
    return list(acc.finished)


def merge_small_chunks(chunks: Iterable[Chunk], *, min_tokens: int) -> list[Chunk]:
    """
    Folds every chunk below `min_tokens` into the chunk before it.

    Single forward pass: each input chunk is judged once by its own token count, and the
    growing predecessor is not re-checked. The first chunk is never folded away.
    """
    merged: list[Chunk] = []
    for chunk in chunks:
        if merged and chunk.content_tokens < min_tokens:
            merged[-1] = merged[-1].merged_with(chunk)
        else:
            merged.append(chunk)
    return merged


def _split_document(
    document: Document,
    *,
    chunk_size: int,
    min_chunk_tokens: int,
    tokenizer: Tokenizer,
) -> list[Chunk]:
    content = document.content
    if count_tokens(content, tokenizer) <= chunk_size:
        text = content.strip()
        return [Chunk.from_document(document, content=text, content_tokens=count_tokens(text, tokenizer))]

    texts = accumulate_segments(split_segments(content), chunk_size=chunk_size, tokenizer=tokenizer)
    if not texts:
        raise ChunkingFault(f"No chunks produced for {document.url}")
    chunks = [
        Chunk.from_document(document, content=text, content_tokens=count_tokens(text, tokenizer))
        for text in texts
    ]
    return merge_small_chunks(chunks, min_tokens=min_chunk_tokens)


def chunk_document(
    document: Document,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    min_chunk_tokens: int = DEFAULT_MIN_CHUNK_TOKENS,
    tokenizer: Tokenizer | None = None,
) -> list[Chunk]:
    """
    Splits a document into token-bounded chunks on sentence boundaries.

    Deterministic and side-effect free. Any failure while segmenting or merging falls back to a
    single chunk holding the whole trimmed content.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if min_chunk_tokens < 0:
        raise ValueError("min_chunk_tokens must be >= 0")

    try:
        tok = tokenizer if tokenizer is not None else get_tokenizer()
        return _split_document(
            document,
            chunk_size=chunk_size,
            min_chunk_tokens=min_chunk_tokens,
            tokenizer=tok,
        )
    except Exception:  # noqa: BLE001
        logger.warning(
            "Chunking failed for %s; keeping the document as a single chunk",
            document.url,
            exc_info=True,
        )
        return [
            Chunk.from_document(
                document,
                content=document.content.strip(),
                content_tokens=document.token_count,
            )
        ]
