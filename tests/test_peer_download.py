import socket
import threading

import pytest

from peershare.client_ops import piece_hashes, serve_piece
from peershare.clientfile import ClientFile, FileStatus
from peershare.peer_download import (
    DownloadInfo,
    assemble_pieces,
    download_from_peers,
    download_piece,
    file_name,
    parse_download_response,
)
from peershare.protocol import ARGS_BUFFER_SIZE, FILE_PIECE_SIZE


def _seed(files, count):
    server = socket.create_server(("127.0.0.1", 0))
    port = server.getsockname()[1]

    def run():
        with server:
            for _ in range(count):
                conn, _ = server.accept()
                command = conn.recv(ARGS_BUFFER_SIZE).decode()
                try:
                    serve_piece(conn, command, files)
                except ValueError:
                    pass

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return f"127.0.0.1:{port}", thread


def _read_terminated(sock):
    data = bytearray()
    while not data.endswith(b"|"):
        chunk = sock.recv(65536)
        if not chunk:
            break
        data += chunk
    return data.decode()


def _fake_tracker(sock, download_reply, requests):
    def run():
        requests.append(_read_terminated(sock))
        sock.sendall(download_reply.encode())
        requests.append(_read_terminated(sock))
        sock.sendall(b"You are now seeding the uploaded file.")

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


@pytest.mark.parametrize(
    "path, expected",
    [("a/b/c.txt", "c.txt"), ("c.txt", "c.txt"), ("/abs/dir/", "dir")],
)
def test_file_name(path, expected):
    assert file_name(path) == expected


def test_file_name_of_empty_path():
    with pytest.raises(ValueError):
        file_name("")


def test_parse_download_response_skips_idle_seeders():
    hashes = "a" * 40 + "b" * 40
    info = parse_download_response(f"2;{hashes};h:1;;h:2")
    assert info == DownloadInfo(2, hashes, ["a" * 40, "b" * 40], ["h:1", "h:2"])


def test_parse_download_response_error_message():
    with pytest.raises(ValueError, match="Group does not exist."):
        parse_download_response("Group does not exist.")


def test_parse_download_response_malformed():
    with pytest.raises(ValueError):
        parse_download_response("notanumber;abc")


def test_download_piece_round_trip(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "src.bin"
    source.write_bytes(b"piece content")
    files = {str(source): ClientFile.from_path(str(source), "g")}
    peer, thread = _seed(files, 1)
    expected = piece_hashes(str(source))[0]
    written = download_piece(0, peer, str(source), "out/dest.bin", expected)
    thread.join(5)
    assert written == "dest.bin_0"
    assert (tmp_path / written).read_bytes() == b"piece content"


def test_download_piece_hash_mismatch(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "src.bin"
    source.write_bytes(b"piece content")
    files = {str(source): ClientFile.from_path(str(source), "g")}
    peer, thread = _seed(files, 1)
    with pytest.raises(ValueError, match="Piece hash does not match"):
        download_piece(0, peer, str(source), "dest.bin", "0" * 40)
    thread.join(5)
    assert not (tmp_path / "dest.bin_0").exists()


def test_assemble_pieces_joins_and_removes(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "out.bin_0").write_bytes(b"first-")
    (tmp_path / "out.bin_1").write_bytes(b"second")
    assemble_pieces(str(tmp_path / "out.bin"), 2)
    assert (tmp_path / "out.bin").read_bytes() == b"first-second"
    assert not (tmp_path / "out.bin_0").exists()
    assert not (tmp_path / "out.bin_1").exists()


def test_assemble_pieces_missing_piece(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "out.bin_0").write_bytes(b"first")
    with pytest.raises(FileNotFoundError):
        assemble_pieces(str(tmp_path / "out.bin"), 2)
    assert (tmp_path / "out.bin").read_bytes() == b"first"


def test_download_from_peers_end_to_end(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    data = bytes(range(256)) * ((FILE_PIECE_SIZE + 4096) // 256)
    source = tmp_path / "src.bin"
    source.write_bytes(data)
    seeder_files = {str(source): ClientFile.from_path(str(source), "grp")}
    hashes = "".join(piece_hashes(str(source)))
    peer, seed_thread = _seed(seeder_files, 2)

    ours, theirs = socket.socketpair()
    requests = []
    tracker_thread = _fake_tracker(theirs, f"2;{hashes};{peer}|", requests)
    dest = tmp_path / "dest.bin"
    files = {}
    with ours, theirs:
        ok = download_from_peers(ours, f"download_file grp {source} {dest}", "me:1", files)
        tracker_thread.join(5)
    seed_thread.join(5)

    assert ok is True
    assert dest.read_bytes() == data
    assert files[str(source)].status is FileStatus.COMPLETE
    assert files[str(source)].num_pieces == 2
    assert requests[0] == f"download_file grp {source}|"
    assert requests[1] == f"upload_file {source} grp me:1;2;{hashes}|"


def test_download_from_peers_tracker_error(tmp_path):
    ours, theirs = socket.socketpair()
    files = {}
    with ours, theirs:
        theirs.sendall(b"Group does not exist.|")
        with pytest.raises(ValueError, match="Group does not exist."):
            download_from_peers(ours, "download_file grp f.bin out.bin", "me:1", files)
    assert files == {}


def test_download_from_peers_rejects_known_file():
    files = {"f.bin": ClientFile("f.bin", "grp", 1)}
    ours, theirs = socket.socketpair()
    with ours, theirs, pytest.raises(ValueError, match="already present"):
        download_from_peers(ours, "download_file grp f.bin out.bin", "me:1", files)


def test_download_from_peers_wrong_argument_count():
    ours, theirs = socket.socketpair()
    with ours, theirs, pytest.raises(ValueError, match="arguments"):
        download_from_peers(ours, "download_file grp f.bin", "me:1", {})