"""Downloading a file piece by piece from the peers that seed it."""

from __future__ import annotations

import os
import random
import socket
import sys
from collections.abc import MutableMapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .clientfile import ClientFile, FileStatus
from .protocol import (
    ARGS_BUFFER_SIZE,
    HASH_HEX_LENGTH,
    MAX_THREADS,
    MESSAGE_TERMINATOR,
    sha1_hex,
    split_chunks,
    tokenize_input,
)


@dataclass
class DownloadInfo:
    """What the tracker tells a peer about a file it wants to download."""

    num_pieces: int
    hash_sequence: str
    hashes: list[str] = field(default_factory=list)
    seeders: list[str] = field(default_factory=list)


def file_name(path: str) -> str:
    """Return the last component of a ``/``-separated path."""
    parts = tokenize_input(path, "/")
    if not parts:
        raise ValueError(f"no file name in {path!r}")
    return parts[-1]


def _piece_path(dest_path: str, index: int) -> str:
    return f"{file_name(dest_path)}_{index}"


def parse_download_response(response: str) -> DownloadInfo:
    """Parse ``pieces;hashes;seeder;...`` sent by the tracker.

    A reply made of several words is an error message from the tracker and
    is raised as :class:`ValueError`.
    """
    if len(tokenize_input(response, " ")) > 1:
        raise ValueError(response)
    fields = tokenize_input(response, ";")
    if len(fields) < 2:
        raise ValueError(f"malformed tracker response: {response!r}")
    try:
        num_pieces = int(fields[0])
    except ValueError:
        raise ValueError(f"malformed tracker response: {response!r}") from None
    hash_sequence = fields[1]
    hashes = [
        hash_sequence[i * HASH_HEX_LENGTH:(i + 1) * HASH_HEX_LENGTH]
        for i in range(num_pieces)
    ]
    seeders = [seeder for seeder in fields[2:] if seeder]
    return DownloadInfo(num_pieces, hash_sequence, hashes, seeders)


def download_piece(
    index: int, peer: str, file_path: str, dest_path: str, expected_hash: str
) -> str:
    """Fetch piece ``index`` from ``peer`` and store it beside the download.

    The piece is written to ``<name>_<index>`` in the working directory,
    where ``<name>`` is the file name of ``dest_path``; that path is
    returned. A piece whose hash differs raises :class:`ValueError`.
    """
    address = tokenize_input(peer, ":")
    if len(address) < 2:
        raise ValueError(f"malformed peer address: {peer!r}")
    host, port = address[0], int(address[1])

    content = bytearray()
    with socket.create_connection((host, port)) as seeder:
        seeder.sendall(f"{file_path};{index}".encode())
        while chunk := seeder.recv(ARGS_BUFFER_SIZE):
            content += chunk

    calculated = sha1_hex(bytes(content))
    if calculated != expected_hash:
        raise ValueError(f"Piece hash does not match: {calculated}")

    piece_path = _piece_path(dest_path, index)
    with open(piece_path, "wb") as piece:
        piece.write(content)
    return piece_path


def assemble_pieces(dest_path: str, num_pieces: int) -> None:
    """Append the downloaded pieces to ``dest_path`` in order, removing each.

    A missing piece raises :class:`FileNotFoundError`; pieces before it
    have already been appended.
    """
    with open(dest_path, "ab") as dest:
        for index in range(num_pieces):
            piece_path = _piece_path(dest_path, index)
            with open(piece_path, "rb") as piece:
                dest.write(piece.read())
            os.remove(piece_path)


def _receive_terminated(tracker: socket.socket) -> str:
    received = bytearray()
    while True:
        chunk = tracker.recv(ARGS_BUFFER_SIZE)
        if not chunk:
            break
        received += chunk
        if received.endswith(MESSAGE_TERMINATOR.encode()):
            break
    text = received.decode("utf-8", errors="replace")
    return text[:-1] if text.endswith(MESSAGE_TERMINATOR) else text


def download_from_peers(
    tracker: socket.socket,
    command: str,
    my_socket: str,
    files: MutableMapping[str, ClientFile],
) -> bool:
    """Run ``download_file GROUP PATH DEST`` and seed the file once it is complete.

    Raises :class:`ValueError` for a malformed command, a file already known
    here, or an error reply from the tracker. Returns whether the file was
    assembled.
    """
    words = tokenize_input(command, " ")
    if len(words) != 4:
        raise ValueError("Invalid number of arguments provided.")
    _, group_name, path, dest_path = words
    if path in files:
        raise ValueError("Requested file is already present on the system.")

    tracker.sendall((" ".join(words[:3]) + MESSAGE_TERMINATOR).encode())
    info = parse_download_response(_receive_terminated(tracker))
    if info.num_pieces and not info.seeders:
        raise ValueError("There are no seeders for the specified file.")

    files[path] = ClientFile(path, group_name, info.num_pieces, FileStatus.DOWNLOADING)
    print("Download in progress...")
    with ThreadPoolExecutor(max_workers=MAX_THREADS) as pool:
        futures = [
            pool.submit(
                download_piece, index, random.choice(info.seeders), path, dest_path, expected
            )
            for index, expected in enumerate(info.hashes)
        ]
    for index, future in enumerate(futures):
        error = future.exception()
        if error is not None:
            print(f"Index {index}: {error}", file=sys.stderr)

    try:
        assemble_pieces(dest_path, info.num_pieces)
    except OSError as error:
        print(f"File assembly: {error}", file=sys.stderr)
        del files[path]
        print("File download failed.")
        return False

    request = (
        f"upload_file {path} {group_name} {my_socket};"
        f"{info.num_pieces};{info.hash_sequence}{MESSAGE_TERMINATOR}"
    )
    for chunk in split_chunks(request.encode(), ARGS_BUFFER_SIZE):
        tracker.sendall(chunk)
    tracker.recv(ARGS_BUFFER_SIZE)

    files[path].status = FileStatus.COMPLETE
    print("File download complete!")
    return True