from __future__ import annotations

import hashlib


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    """
    Hex digest of the UTF-8 encoding of `text`. Used as an index key for exact content lookups.
    """
    return sha256_bytes(text.encode("utf-8"))


def format_vector(values: list[float] | tuple[float, ...]) -> str:
    """
    pgvector text literal, e.g. `[0.1,0.2]`.
    """
    return "[" + ",".join(repr(float(v)) for v in values) + "]"


def parse_vector(text: str | None) -> tuple[float, ...]:
    if not text:
        return ()
    body = text.strip().removeprefix("[").removesuffix("]")
    if not body.strip():
        return ()
    return tuple(float(v) for v in body.split(","))
