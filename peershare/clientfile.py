"""Client-side record of a file the peer knows about."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from .protocol import FILE_PIECE_SIZE


class FileStatus(str, Enum):
    """Where a file stands on this peer."""

    LOCAL = "L"
    DOWNLOADING = "D"
    COMPLETE = "C"


def piece_count(size: int) -> int:
    """Number of pieces needed to hold ``size`` bytes."""
    if size < 0:
        raise ValueError("file size cannot be negative")
    return -(-size // FILE_PIECE_SIZE)


@dataclass
class ClientFile:
    """A file this peer seeds or downloads, with the group it belongs to."""

    path: str
    group_name: str
    num_pieces: int = 0
    status: FileStatus = FileStatus.LOCAL

    @classmethod
    def from_path(cls, path: str, group_name: str) -> ClientFile:
        """Describe the local file at ``path``, counting its pieces."""
        size = os.stat(path).st_size
        return cls(path, group_name, piece_count(size), FileStatus.LOCAL)