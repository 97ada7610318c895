from __future__ import annotations

import logging
from dataclasses import dataclass
from time import sleep
from typing import Any

import httpx

logger = logging.getLogger(__name__)


def _extract_embedding(payload: dict[str, Any]) -> list[float]:
    data = payload.get("data") or []
    if not isinstance(data, list) or len(data) != 1:
        raise RuntimeError(f"Expected exactly one embedding, got {len(data) if isinstance(data, list) else 'none'}")
    first = data[0] if isinstance(data[0], dict) else {}
    vector = first.get("embedding")
    if not isinstance(vector, list) or not all(isinstance(v, (int, float)) for v in vector):
        raise RuntimeError("Embedding response missing a numeric `embedding` list")
    return [float(v) for v in vector]


@dataclass(frozen=True)
class EmbeddingClient:
    """
    Client for an OpenAI-compatible `/v1/embeddings` endpoint, one chunk per request.

    Transport retries are off by default: a failed call surfaces to the caller, and ingestion
    re-runs pick the chunk up again.
    """

    base_url: str
    api_key: str | None = None
    model: str = "text-embedding-ada-002"
    timeout_s: float = 60.0
    max_retries: int = 0
    retry_backoff_s: float = 1.0
    transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_backoff_s < 0:
            raise ValueError("retry_backoff_s must be >= 0")

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    def embed_text(self, text: str) -> list[float]:
        url = self.base_url.rstrip("/") + "/v1/embeddings"
        body = {"model": self.model, "input": text}

        attempt = 0
        with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
            while True:
                try:
                    resp = client.post(url, headers=self._headers(), json=body)
                    resp.raise_for_status()
                    return _extract_embedding(resp.json())
                except httpx.HTTPStatusError as e:
                    if e.response is not None and e.response.status_code == 413:
                        raise RuntimeError(
                            f"Embedding request too large (413) for a {len(text)}-char chunk. Reduce CHUNK_SIZE."
                        ) from e
                    raise
                except (httpx.TimeoutException, httpx.TransportError):
                    if attempt >= self.max_retries:
                        raise
                    delay = self.retry_backoff_s * (2**attempt)
                    logger.info("Embedding request failed; retrying in %.1fs", delay)
                    sleep(delay)
                    attempt += 1
