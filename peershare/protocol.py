"""Wire-level helpers shared by the tracker and its clients."""

from __future__ import annotations

import hashlib
from typing import AnyStr

MAX_THREADS = 50
ARGS_BUFFER_SIZE = 32768
FILE_PIECE_SIZE = 524288

SHA_DIGEST_LENGTH = 20
HASH_HEX_LENGTH = SHA_DIGEST_LENGTH * 2
MESSAGE_TERMINATOR = "|"


def tokenize_input(text: str, delimiter: str) -> list[str]:
    """Split ``text`` on ``delimiter``.

    Empty fields between delimiters are kept, but a trailing delimiter
    does not produce a final empty field, and an empty string yields no
    fields at all.
    """
    if len(delimiter) != 1:
        raise ValueError("delimiter must be a single character")
    parts = text.split(delimiter)
    if parts[-1] == "":
        parts.pop()
    return parts


def split_chunks(message: AnyStr, size: int = ARGS_BUFFER_SIZE) -> list[AnyStr]:
    """Cut ``message`` into consecutive pieces of at most ``size`` items."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [message[start:start + size] for start in range(0, len(message), size)]


def sha1_hex(data: bytes) -> str:
    """Return the lower-case hexadecimal SHA-1 digest of ``data``."""
    return hashlib.sha1(data).hexdigest()