"""The tracker server: accepts clients and answers their commands."""

from __future__ import annotations

import re
import socket
import sys
import threading
from collections.abc import Hashable, Sequence

from .accounts import TrackerState
from .protocol import ARGS_BUFFER_SIZE, MAX_THREADS, MESSAGE_TERMINATOR, tokenize_input
from .sharing import process_request

_CONFIG_READ_LIMIT = 64
_TERMINATOR = MESSAGE_TERMINATOR.encode()


def read_socket_info(path: str, tracker_num: int) -> tuple[str, int]:
    """Return the ``(host, port)`` on line ``tracker_num`` of a tracker config."""
    with open(path, "rb") as config:
        data = config.read(_CONFIG_READ_LIMIT).decode("utf-8", errors="replace")
    lines = tokenize_input(data, "\n")
    if not 0 <= tracker_num < len(lines):
        raise ValueError(f"no tracker {tracker_num} in {path}")
    fields = tokenize_input(lines[tracker_num], ":")
    if len(fields) < 2:
        raise ValueError(f"malformed tracker address: {lines[tracker_num]!r}")
    return fields[0], int(fields[1])


def create_server_socket(port: int) -> socket.socket:
    """Bind a listening TCP socket on all interfaces at ``port``."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        server.bind(("", port))
        server.listen(MAX_THREADS)
    except OSError:
        server.close()
        raise
    return server


def receive_message(conn: socket.socket) -> str | None:
    """Read one ``|``-terminated message, without the terminator.

    Returns ``None`` when the peer disconnects or sends a bare ``quit``.
    """
    received = bytearray()
    while True:
        chunk = conn.recv(ARGS_BUFFER_SIZE)
        if not chunk:
            return None
        received += chunk
        if received.endswith(_TERMINATOR):
            return received[:-1].decode("utf-8", errors="replace")
        if received in (b"quit", b"quit\n"):
            return None


def handle_client(conn: socket.socket, client: Hashable, state: TrackerState) -> None:
    """Serve commands from one connected client until it goes away."""
    with conn:
        while True:
            try:
                message = receive_message(conn)
            except OSError:
                message = None
            if message is None:
                print("LOGGER: Client disconnected.")
                return
            print(f"LOGGER: Message received from client: {message}")
            reply = process_request(state, client, message)
            if reply is None:
                continue
            print(f"RESPONSE: {reply}")
            try:
                conn.sendall(reply.encode())
            except OSError:
                print("LOGGER: Client disconnected.")
                return


def _leading_int(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _accept_loop(server: socket.socket, state: TrackerState) -> None:
    while True:
        try:
            conn, (host, port) = server.accept()
        except OSError:
            return
        print(f"LOGGER: Client {host} connected from port {port}!")
        worker = threading.Thread(
            target=handle_client, args=(conn, (host, port), state), daemon=True
        )
        worker.start()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tracker: ``tracker CONFIG_FILE TRACKER_NUMBER``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("Invalid number of arguments provided.", file=sys.stderr)
        return 1
    config_file = args[0]
    tracker_num = _leading_int(args[1])

    try:
        _, port = read_socket_info(config_file, tracker_num)
    except OSError as error:
        print(f"Tracker Config: {error.strerror or error}", file=sys.stderr)
        return 1
    except ValueError as error:
        print(f"Tracker Config: {error}", file=sys.stderr)
        return 1

    try:
        server = create_server_socket(port)
    except OSError as error:
        print(f"Socket Bind: {error.strerror or error}", file=sys.stderr)
        return 1

    print(f"Tracker {tracker_num} listening on port {port}...")
    state = TrackerState()
    acceptor = threading.Thread(target=_accept_loop, args=(server, state), daemon=True)
    acceptor.start()

    for line in sys.stdin:
        if "quit" in line.split():
            server.close()
            return 0
    acceptor.join()
    return 0