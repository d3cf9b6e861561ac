"""File-sharing commands of the tracker and the request dispatcher."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence

from .accounts import GROUP_MISSING, INVALID_ARGUMENTS, RequestError, TrackerState
from .models import Group, Seeder, TorrentFile, User
from .protocol import MESSAGE_TERMINATOR, tokenize_input

INVALID_REQUEST = "Invalid request received."
NOT_MEMBER = "User is not member of the group."


def _expect_args(args: Sequence[str], count: int, message: str = INVALID_ARGUMENTS) -> None:
    if len(args) != count:
        raise RequestError(message)


def _member_group(state: TrackerState, user: User, group_id: str) -> Group:
    group = state.groups.get(group_id)
    if group is None:
        raise RequestError(GROUP_MISSING)
    if user.user_id not in group.members:
        raise RequestError(NOT_MEMBER)
    return group


def list_files(state: TrackerState, client: Hashable, args: Sequence[str]) -> str:
    """List files of ``[group_id]`` that have a sharing seeder, ``;``-separated."""
    _expect_args(args, 1, "Invalid number of arguments provided")
    if not state.groups:
        raise RequestError("No groups exist.")
    (group_id,) = args
    user = state.current_user(client)
    group = state.groups.get(group_id)
    if group is None or user.user_id not in group.members:
        raise RequestError(NOT_MEMBER)
    if not group.files:
        raise RequestError("No files are shared.")
    shared = [path for path, torrent in group.files.items() if torrent.has_active_seeder()]
    if not shared:
        raise RequestError("No seeders for any shared file.")
    return ";".join(shared)


def stop_sharing(state: TrackerState, client: Hashable, args: Sequence[str]) -> str:
    """Stop seeding ``[group_id, file_path, peer_socket]``."""
    _expect_args(args, 3)
    user = state.current_user(client)
    group_id, file_path, socket_string = args
    group = _member_group(state, user, group_id)
    torrent = group.files.get(file_path)
    if torrent is None:
        raise RequestError("File is not shared in the group.")
    seeder = torrent.seeders.get(socket_string)
    if seeder is None:
        raise RequestError("User is not a seeder of the file.")
    seeder.is_sharing = False
    return "Successfully stopped sharing."


def _decode_upload(spec: str) -> tuple[str, int, str]:
    fields = tokenize_input(spec, ";")
    if len(fields) < 2:
        raise RequestError(INVALID_ARGUMENTS)
    socket_string = fields[0]
    try:
        pieces = int(fields[1])
    except ValueError:
        raise RequestError(INVALID_ARGUMENTS) from None
    hash_sequence = fields[2] if len(fields) > 2 else ""
    return socket_string, pieces, hash_sequence


def upload_file(state: TrackerState, client: Hashable, args: Sequence[str]) -> str:
    """Seed ``[file_path, group_id, "socket;pieces;hashes"]`` in a group."""
    _expect_args(args, 3)
    user = state.current_user(client)
    file_path, group_id, spec = args
    group = _member_group(state, user, group_id)
    socket_string, pieces, hash_sequence = _decode_upload(spec)

    torrent = group.files.get(file_path)
    if torrent is not None:
        seeder = torrent.seeders.get(socket_string)
        if seeder is not None:
            seeder.is_sharing = True
            return "You are now seeding the uploaded file."
        torrent.seeders[socket_string] = Seeder(socket_string)
        return "Successfully added to the seeders' list."

    torrent = TorrentFile(file_path, pieces, hash_sequence)
    torrent.seeders[socket_string] = Seeder(socket_string)
    group.add_file(torrent)
    return "You are now seeding the uploaded file."


def download_file(state: TrackerState, client: Hashable, args: Sequence[str]) -> str:
    """Describe ``[group_id, file_path]`` as ``pieces;hashes;seeder;...``.

    Seeders that are not sharing appear as empty fields.
    """
    _expect_args(args, 2)
    user = state.current_user(client)
    group_id, file_path = args
    group = _member_group(state, user, group_id)
    torrent = group.files.get(file_path)
    if torrent is None:
        raise RequestError("The specified file is not shared in the group.")
    if not torrent.has_active_seeder():
        raise RequestError("There are no seeders for the specified file.")
    seeders = [sock if seeder.is_sharing else "" for sock, seeder in torrent.seeders.items()]
    return ";".join([str(torrent.num_pieces), torrent.hash_sequence, *seeders])


_Handler = Callable[[TrackerState, Hashable, Sequence[str]], str]

_HANDLERS: dict[str, _Handler] = {
    "create_user": TrackerState.create_user,
    "login": TrackerState.login,
    "create_group": TrackerState.create_group,
    "join_group": TrackerState.join_group,
    "leave_group": TrackerState.leave_group,
    "list_requests": TrackerState.list_requests,
    "accept_request": TrackerState.accept_request,
    "list_groups": TrackerState.list_groups,
    "logout": TrackerState.logout,
    "list_files": list_files,
    "stop_sharing": stop_sharing,
    "upload_file": upload_file,
    "download_file": download_file,
}


def process_request(state: TrackerState, client: Hashable, command: str) -> str | None:
    """Answer one client command; ``None`` means no reply is sent.

    Replies to ``download_file`` carry the message terminator, since they
    may span several network reads on the client side.
    """
    words = tokenize_input(command, " ")
    if not words:
        return INVALID_REQUEST
    name, args = words[0], words[1:]
    if name == "quit":
        return None
    handler = _HANDLERS.get(name)
    if handler is None:
        return INVALID_REQUEST
    with state.lock:
        try:
            reply = handler(state, client, args)
        except RequestError as error:
            reply = error.message
    if name == "download_file":
        reply += MESSAGE_TERMINATOR
    return reply