import pytest

from peershare.protocol import (
    ARGS_BUFFER_SIZE,
    FILE_PIECE_SIZE,
    HASH_HEX_LENGTH,
    MAX_THREADS,
    sha1_hex,
    split_chunks,
    tokenize_input,
)


def test_constants_match_wire_format():
    assert MAX_THREADS == 50
    assert ARGS_BUFFER_SIZE == 32768
    assert FILE_PIECE_SIZE == 524288
    chunks = split_chunks(b"p" * FILE_PIECE_SIZE)
    assert len(chunks) == 16
    assert all(len(chunk) == 32768 for chunk in chunks)


def test_tokenize_simple_command():
    assert tokenize_input("login alice secret", " ") == ["login", "alice", "secret"]


def test_tokenize_keeps_inner_empty_fields():
    assert tokenize_input("a;;b", ";") == ["a", "", "b"]


def test_tokenize_drops_trailing_empty_field():
    assert tokenize_input("a;b;", ";") == ["a", "b"]


def test_tokenize_empty_string_gives_nothing():
    assert tokenize_input("", ";") == []


def test_tokenize_lone_delimiter_gives_one_empty_field():
    assert tokenize_input(";", ";") == [""]


@pytest.mark.parametrize("text", ["x", "1:2:3", "host:8080", "a::b"])
def test_tokenize_round_trip(text):
    assert ":".join(tokenize_input(text, ":")) == text


def test_tokenize_rejects_long_delimiter():
    with pytest.raises(ValueError):
        tokenize_input("a,,b", ",,")


def test_split_chunks_rejoins():
    message = "x" * 10 + "y" * 7
    chunks = split_chunks(message, 4)
    assert "".join(chunks) == message
    assert all(len(chunk) <= 4 for chunk in chunks)
    assert len(chunks) == 5


def test_split_chunks_default_size():
    message = "a" * (ARGS_BUFFER_SIZE + 1)
    chunks = split_chunks(message)
    assert [len(c) for c in chunks] == [ARGS_BUFFER_SIZE, 1]


def test_split_chunks_bytes():
    data = bytes(range(10))
    assert b"".join(split_chunks(data, 3)) == data


def test_split_chunks_empty():
    assert split_chunks("", 8) == []


def test_split_chunks_rejects_nonpositive_size():
    with pytest.raises(ValueError):
        split_chunks("abc", 0)


def test_sha1_hex_empty_input():
    assert sha1_hex(b"") == "da39a3ee5e6b4b0d3255bfef95601890afd80709"


def test_sha1_hex_shape_and_determinism():
    digest = sha1_hex(b"piece data")
    assert len(digest) == HASH_HEX_LENGTH
    assert digest == digest.lower()
    assert digest == sha1_hex(b"piece data")
    assert digest != sha1_hex(b"piece datb")