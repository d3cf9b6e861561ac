"""Peer operations: serving pieces to other peers and uploading to the tracker."""

from __future__ import annotations

import os
import socket
from collections.abc import MutableMapping, Sequence

from .clientfile import ClientFile
from .protocol import (
    ARGS_BUFFER_SIZE,
    FILE_PIECE_SIZE,
    MESSAGE_TERMINATOR,
    sha1_hex,
    split_chunks,
    tokenize_input,
)


def _iter_pieces(path: str):
    with open(path, "rb") as source:
        while piece := source.read(FILE_PIECE_SIZE):
            yield piece


def piece_hashes(path: str) -> list[str]:
    """Return the SHA-1 hex digest of every piece of the file at ``path``."""
    return [sha1_hex(piece) for piece in _iter_pieces(path)]


def read_piece(path: str, index: int) -> bytes:
    """Return piece ``index`` of the file at ``path``; empty past its end."""
    if index < 0:
        raise ValueError("piece index cannot be negative")
    with open(path, "rb") as source:
        source.seek(index * FILE_PIECE_SIZE)
        return source.read(FILE_PIECE_SIZE)


def serve_piece(
    conn: socket.socket, command: str, files: MutableMapping[str, ClientFile]
) -> int:
    """Answer a ``path;index`` request from a peer with that piece.

    The connection is always closed. Returns the number of bytes sent and
    raises :class:`ValueError` for a malformed request or a file this peer
    does not seed.
    """
    with conn:
        fields = tokenize_input(command, ";")
        if len(fields) != 2:
            raise ValueError("Invalid number of arguments provided.")
        path, index_text = fields
        if path not in files:
            raise ValueError("File not seeded.")
        try:
            index = int(index_text)
        except ValueError:
            raise ValueError(f"Invalid piece index: {index_text!r}") from None
        piece = read_piece(path, index)
        for chunk in split_chunks(piece, ARGS_BUFFER_SIZE):
            conn.sendall(chunk)
        return len(piece)


def build_upload_request(
    args: Sequence[str], socket_string: str, files: MutableMapping[str, ClientFile]
) -> str:
    """Register the file named in ``[upload_file, path, group]`` and build its request.

    The request reads ``upload_file PATH GROUP SOCKET;PIECES;HASHES|``.
    """
    if len(args) != 3:
        raise ValueError("Invalid number of arguments provided.")
    _, path, group_name = args
    record = ClientFile.from_path(path, group_name)
    files[path] = record
    hashes = "".join(piece_hashes(path))
    return (
        " ".join(args)
        + f" {socket_string};{record.num_pieces};{hashes}{MESSAGE_TERMINATOR}"
    )


def upload_to_tracker(
    tracker: socket.socket,
    args: Sequence[str],
    socket_string: str,
    files: MutableMapping[str, ClientFile],
) -> str:
    """Announce a local file to the tracker and return the tracker's reply."""
    request = build_upload_request(args, socket_string, files)
    for chunk in split_chunks(request.encode(), ARGS_BUFFER_SIZE):
        tracker.sendall(chunk)
    reply = tracker.recv(ARGS_BUFFER_SIZE).decode("utf-8", errors="replace")
    print(f"Response from Tracker => {reply}")
    return reply


def _file_size(path: str) -> int:
    return os.stat(path).st_size