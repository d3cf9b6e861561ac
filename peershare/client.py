"""The peer client: talks to the tracker and serves pieces to other peers."""

from __future__ import annotations

import random
import socket
import sys
import threading
from collections.abc import Iterable, Mapping, MutableMapping, Sequence

from .client_ops import serve_piece, upload_to_tracker
from .clientfile import ClientFile, FileStatus
from .peer_download import download_from_peers
from .protocol import ARGS_BUFFER_SIZE, MESSAGE_TERMINATOR, tokenize_input
from .tracker import create_server_socket, read_socket_info

DEFAULT_TRACKER_NUM = 0

_SOCKET_SUFFIXED = frozenset({"login", "logout", "stop_sharing"})


def read_tracker_address(path: str) -> tuple[str, int]:
    """Return the ``(host, port)`` of the default tracker listed in ``path``."""
    return read_socket_info(path, DEFAULT_TRACKER_NUM)


def listen_for_peers(port: int) -> socket.socket:
    """Open the socket on which other peers request pieces."""
    return create_server_socket(port)


def connect_tracker(host: str, port: int) -> socket.socket:
    """Open a connection to the tracker at ``host:port``."""
    return socket.create_connection((host, port))


def _serve_one(conn: socket.socket, message: str, files: MutableMapping[str, ClientFile]) -> None:
    try:
        serve_piece(conn, message, files)
    except (ValueError, OSError) as error:
        print(error, file=sys.stderr)


def serve_peers(server: socket.socket, files: MutableMapping[str, ClientFile]) -> None:
    """Accept piece requests from peers, each answered on its own thread.

    Stops when a peer connects and sends nothing, or when ``server`` is closed.
    """
    while True:
        try:
            conn, _ = server.accept()
        except OSError as error:
            if server.fileno() == -1:
                return
            print(f"Accept connection: {error}", file=sys.stderr)
            continue
        try:
            data = conn.recv(ARGS_BUFFER_SIZE)
        except OSError:
            data = b""
        message = data.decode("utf-8", errors="replace")
        if not message:
            print("LOGGER: Peer Disconnected or sent empty message.")
            conn.close()
            return
        worker = threading.Thread(target=_serve_one, args=(conn, message, files), daemon=True)
        worker.start()


def format_downloads(files: Mapping[str, ClientFile]) -> list[str]:
    """Describe every file being or having been downloaded, one line each."""
    return [
        f"[{record.status.value}] {record.group_name} {record.path}"
        for record in files.values()
        if record.status is not FileStatus.LOCAL
    ]


def prepare_tracker_command(line: str, my_socket: str) -> str:
    """Turn a user's command line into the message sent to the tracker."""
    words = tokenize_input(line, " ")
    if words and words[0] in _SOCKET_SUFFIXED:
        line = f"{line} {my_socket}"
    return line + MESSAGE_TERMINATOR


def _run_download(
    tracker: socket.socket, line: str, my_socket: str, files: MutableMapping[str, ClientFile]
) -> None:
    try:
        download_from_peers(tracker, line, my_socket, files)
    except (ValueError, OSError) as error:
        print(error, file=sys.stderr)


def _run_upload(
    tracker: socket.socket,
    words: Sequence[str],
    my_socket: str,
    files: MutableMapping[str, ClientFile],
) -> None:
    try:
        upload_to_tracker(tracker, words, my_socket, files)
    except OSError as error:
        print(f"Read file: {error.strerror or error}", file=sys.stderr)
    except ValueError as error:
        print(error, file=sys.stderr)


def _command_loop(
    lines: Iterable[str],
    tracker: socket.socket,
    my_socket: str,
    files: MutableMapping[str, ClientFile],
) -> None:
    for raw in lines:
        line = raw.rstrip("\n")
        if not line:
            continue
        words = tokenize_input(line, " ")
        command = words[0] if words else ""
        if command == "download_file":
            threading.Thread(
                target=_run_download, args=(tracker, line, my_socket, files), daemon=True
            ).start()
        elif command == "upload_file":
            threading.Thread(
                target=_run_upload, args=(tracker, words, my_socket, files), daemon=True
            ).start()
        elif command == "show_downloads":
            for entry in format_downloads(files):
                print(entry)
        else:
            tracker.sendall(prepare_tracker_command(line, my_socket).encode())
            if command == "quit":
                print("Exiting...")
                return
            reply = tracker.recv(ARGS_BUFFER_SIZE).decode("utf-8", errors="replace")
            print(f"Response from Tracker => {reply}")


def main(argv: Sequence[str] | None = None) -> int:
    """Run a peer: ``client IP:PORT TRACKER_INFO_FILE``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("Invalid number of arguments provided.", file=sys.stderr)
        return 1
    my_socket, config_file = args
    try:
        port = int(tokenize_input(my_socket, ":")[1])
    except (IndexError, ValueError):
        print("Invalid port provided.", file=sys.stderr)
        return 1

    random.seed()
    files: dict[str, ClientFile] = {}

    try:
        peer_server = listen_for_peers(port)
    except OSError as error:
        print(f"Socket Bind: {error.strerror or error}", file=sys.stderr)
        return 1
    print(f"Listening to peers on port {port}...")
    threading.Thread(target=serve_peers, args=(peer_server, files), daemon=True).start()

    try:
        host, tracker_port = read_tracker_address(config_file)
    except (OSError, ValueError) as error:
        print(f"Tracker Config: {error}", file=sys.stderr)
        peer_server.close()
        return 1
    try:
        tracker = connect_tracker(host, tracker_port)
    except OSError as error:
        print(f"Tracker connection: {error.strerror or error}", file=sys.stderr)
        peer_server.close()
        return 1
    print(f"Connected to tracker {DEFAULT_TRACKER_NUM}.")

    with tracker:
        try:
            _command_loop(sys.stdin, tracker, my_socket, files)
        finally:
            peer_server.close()
    return 0