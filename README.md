# peershare

A small peer-to-peer file sharing system built around groups. The
**tracker** keeps track of users, groups, shared files and the peers that
seed them. The **client** talks to the tracker, serves file pieces to other
peers and downloads files from them in parallel.

Files are split into 512 KiB pieces. Every downloaded piece is checked
against its SHA-1 hash before it is written to disk.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Tracker configuration

Both programs read a small text file that lists tracker addresses, one
`host:port` per line (only the first 64 bytes are read):

```
127.0.0.1:6000
127.0.0.1:6001
```

## Running the tracker

```
peershare-tracker tracker_info.txt 0
```

The second argument selects the line of the configuration file whose port the
tracker listens on, on all interfaces. Type `quit` on the tracker's standard
input to stop it.

## Running a client

```
peershare-client 127.0.0.1:7000 tracker_info.txt
```

The first argument is the address on which this client serves pieces to other
peers; its port is the one the client listens on, and the whole address is
what the client reports to the tracker as its seeding address. The client
connects to the first tracker listed in the configuration file.

## Client commands

Commands are read one per line from standard input.

| Command | Meaning |
| --- | --- |
| `create_user <user_id> <password>` | register a new user |
| `login <user_id> <password>` | log in; your earlier seeded files become shared again |
| `logout` | log out; files you seed from this address stop being shared |
| `create_group <group_id>` | create a group you own |
| `join_group <group_id>` | ask to join a group |
| `leave_group <group_id>` | leave a group; an owner who leaves hands the group to a random member |
| `list_requests <group_id>` | list pending join requests (owner only) |
| `accept_request <group_id> <user_id>` | accept a join request (owner only) |
| `list_groups` | list all groups |
| `list_files <group_id>` | list files with at least one active seeder |
| `upload_file <file_path> <group_id>` | share a local file with a group |
| `download_file <group_id> <file_path> <destination_path>` | download a shared file |
| `show_downloads` | show downloads: `[D]` in progress, `[C]` complete |
| `stop_sharing <group_id> <file_path>` | stop seeding a file |
| `quit` | leave the client |

For `login`, `logout` and `stop_sharing` the client appends its own address
before sending the command. `upload_file` and `download_file` run in the
background, so the prompt stays usable while they work.

During a download each piece is stored as `<name>_<index>` in the current
directory (where `<name>` is the file name of the destination), then the
pieces are appended to the destination in order and removed. After a
download finishes, the client registers itself with the tracker as a seeder
of that file.

## Using it as a library

The tracker's state can be driven without sockets:

```python
from peershare.accounts import TrackerState
from peershare.sharing import process_request

state = TrackerState()
print(process_request(state, 1, "create_user alice password"))
# Successfully created new user.
```

The second argument of `process_request` identifies the connection; any
hashable value will do. It returns the reply text, or `None` for `quit`.

- `peershare.accounts` — `TrackerState` with the account and group commands
  (`create_user`, `login`, `logout`, `create_group`, `join_group`,
  `leave_group`, `list_requests`, `accept_request`, `list_groups`,
  `current_user`); a refused request raises `RequestError`, whose `message`
  is the reply.
- `peershare.sharing` — `list_files`, `stop_sharing`, `upload_file`,
  `download_file` and the dispatcher `process_request`.
- `peershare.models` — the `Seeder`, `TorrentFile`, `User` and `Group`
  records.
- `peershare.protocol` — `tokenize_input`, `split_chunks` and `sha1_hex`,
  the helpers used to frame messages and hash pieces, and the size limits.
- `peershare.clientfile` — `ClientFile`, `FileStatus` and `piece_count`.
- `peershare.client_ops` — `piece_hashes`, `read_piece`, `serve_piece`,
  `build_upload_request` and `upload_to_tracker`.
- `peershare.peer_download` — `parse_download_response`, `download_piece`,
  `assemble_pieces` and `download_from_peers`.
- `peershare.tracker` and `peershare.client` — the two programs, with their
  socket helpers (`read_socket_info`, `create_server_socket`,
  `receive_message`, `handle_client`; `read_tracker_address`,
  `listen_for_peers`, `connect_tracker`, `serve_peers`, `format_downloads`,
  `prepare_tracker_command`).

## What it does not do

- The tracker keeps everything in memory; users, groups and shared files are
  lost when it stops.
- Several trackers may be listed in the configuration file, but they do not
  share state with each other, and a client only ever uses the first one.
- Passwords are stored and compared as plain text, and traffic is not
  encrypted.
- A download cannot be resumed; a piece that fails its hash check makes the
  assembly of the file fail.