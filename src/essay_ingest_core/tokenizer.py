from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol, Sequence

import tiktoken

# GPT-2/GPT-3 byte-pair encoding, the scheme chunk budgets were tuned against.
DEFAULT_ENCODING = "gpt2"


class Tokenizer(Protocol):
    def encode(self, text: str) -> Sequence[Any]: ...


@dataclass(frozen=True)
class TiktokenTokenizer:
    encoding_name: str = DEFAULT_ENCODING
    _encoding: tiktoken.Encoding = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_encoding", tiktoken.get_encoding(self.encoding_name))

    def encode(self, text: str) -> list[int]:
        # Special-token markers inside essay text are plain text, not control tokens.
        return self._encoding.encode(text or "", disallowed_special=())


@lru_cache(maxsize=8)
def get_tokenizer(encoding_name: str = DEFAULT_ENCODING) -> TiktokenTokenizer:
    return TiktokenTokenizer(encoding_name=encoding_name)


def count_tokens(text: str, tokenizer: Tokenizer | None = None) -> int:
    tok = tokenizer if tokenizer is not None else get_tokenizer()
    return len(tok.encode(text))
