"""Unit tests for utility functions."""

import hashlib
import os
import random
import string
from pathlib import Path
from unittest.mock import patch

import pytest

from pybunny.exceptions import (
    BunnyInvalidArgumentError,
    BunnyLocalIOError,
    BunnyNotFoundError,
    BunnyUnsupportedPathError,
)
from pybunny.utils import (
    bytes_to_hex,
    compute_checksum,
    compute_file_checksum,
    diff_names,
    format_size,
    hex_to_bytes,
    list_local,
    read_local,
    stat_local,
    write_local,
)

_rng = random.Random(20241017)

RANDOM_BYTES = [
    bytes(_rng.randrange(256) for _ in range(2 * _rng.randrange(1, 40)))
    for _ in range(25)
]
RANDOM_HEX = [
    "".join(_rng.choice("0123456789abcdef") for _ in range(2 * _rng.randrange(1, 40)))
    for _ in range(25)
]
RANDOM_NAME_SETS = [
    (
        {_rng.choice(string.ascii_lowercase[:8]) for _ in range(_rng.randrange(0, 8))},
        {_rng.choice(string.ascii_lowercase[:8]) for _ in range(_rng.randrange(0, 8))},
    )
    for _ in range(25)
]


class TestHexCodec:
    """Tests for bytes_to_hex and hex_to_bytes."""

    def test_known_values(self):
        """Test encoding and decoding of known values."""
        assert bytes_to_hex(b"\x00\x0f\xff") == "000fff"
        assert hex_to_bytes("000fff") == b"\x00\x0f\xff"

    def test_upper_case_accepted(self):
        """Test that upper-case hex decodes to the same bytes."""
        assert hex_to_bytes("ABCDEF") == hex_to_bytes("abcdef")

    @pytest.mark.parametrize("data", RANDOM_BYTES)
    def test_bytes_survive_hex(self, data):
        """Test that hex encoding is reversible for byte strings."""
        assert hex_to_bytes(bytes_to_hex(data)) == data

    @pytest.mark.parametrize("value", RANDOM_HEX)
    def test_hex_survives_bytes(self, value):
        """Test that decoding then encoding returns the lower-case input."""
        assert bytes_to_hex(hex_to_bytes(value)) == value
        assert bytes_to_hex(hex_to_bytes(value.upper())) == value

    @pytest.mark.parametrize("value", ["", "abc", "zz", "12 4", "0x12"])
    def test_malformed_hex_raises(self, value):
        """Test that empty, odd-length or non-hex input is rejected."""
        with pytest.raises(BunnyInvalidArgumentError, match="Malformed digest"):
            hex_to_bytes(value)

    def test_malformed_hex_is_value_error(self):
        """Test that the error can be caught as ValueError."""
        with pytest.raises(ValueError):
            hex_to_bytes("xyz1")


class TestChecksums:
    """Tests for SHA-256 helpers."""

    def test_compute_checksum(self):
        """Test checksum of in-memory bytes."""
        assert compute_checksum(b"hello") == hashlib.sha256(b"hello").digest()
        assert len(compute_checksum(b"")) == 32

    def test_compute_file_checksum_matches_bytes(self, tmp_path):
        """Test that hashing a file equals hashing its content."""
        body = os.urandom(3 * 1024 * 1024 + 17)
        path = tmp_path / "large.bin"
        path.write_bytes(body)

        assert compute_file_checksum(path) == compute_checksum(body)


class TestDiffNames:
    """Tests for diff_names."""

    def test_example(self):
        """Test a small known example."""
        result = diff_names(["a.txt", "b.txt"], ["b.txt", "c.txt"])

        assert result.only_left == ["a.txt"]
        assert result.only_right == ["c.txt"]
        assert result.both == ["b.txt"]

    def test_results_are_sorted(self):
        """Test that output order does not depend on input order."""
        result = diff_names(["z", "m", "a", "k"], ["k", "b", "z"])

        assert result.only_left == ["a", "m"]
        assert result.only_right == ["b"]
        assert result.both == ["k", "z"]

    def test_duplicates_ignored(self):
        """Test that duplicate names count once."""
        result = diff_names(["a", "a", "b"], ["b", "b"])

        assert result.only_left == ["a"]
        assert result.both == ["b"]

    @pytest.mark.parametrize("left,right", RANDOM_NAME_SETS)
    def test_set_identities(self, left, right):
        """Test the partition laws for arbitrary name sets."""
        result = diff_names(left, right)

        assert set(result.only_left) == left - right
        assert set(result.only_right) == right - left
        assert set(result.both) == left & right
        assert len(result.only_left) + len(result.both) == len(left)
        assert len(result.only_right) + len(result.both) == len(right)


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024 * 1024 * 1024, "3.0 GB"),
        ],
    )
    def test_format_size(self, size, expected):
        """Test human-readable sizes."""
        assert format_size(size) == expected


class TestStatLocal:
    """Tests for stat_local."""

    def test_existing_file(self, tmp_path):
        """Test that an existing path is stat'ed."""
        path = tmp_path / "a.txt"
        path.write_text("a")
        assert stat_local(path).st_size == 1

    def test_missing_path_raises_not_found(self, tmp_path):
        """Test that a missing path raises BunnyNotFoundError."""
        with pytest.raises(BunnyNotFoundError, match="not found"):
            stat_local(tmp_path / "missing")

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlink_loop_raises_unsupported(self, tmp_path):
        """Test that a symlink loop is reported as an unsupported path."""
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.symlink_to(second)
        second.symlink_to(first)

        with pytest.raises(BunnyUnsupportedPathError, match="Symlink loop"):
            stat_local(first)

    def test_permission_error_wrapped(self, tmp_path):
        """Test that other stat failures become BunnyLocalIOError."""
        with patch.object(
            Path, "stat", side_effect=PermissionError(13, "Permission denied")
        ):
            with pytest.raises(BunnyLocalIOError, match="Permission denied"):
                stat_local(tmp_path / "a.txt")


class TestLocalIO:
    """Tests for local read, write and listing helpers."""

    def test_list_local_sorted(self, tmp_path):
        """Test that child names are returned sorted."""
        for name in ("b", "c", "a"):
            (tmp_path / name).write_text(name)
        assert list_local(tmp_path) == ["a", "b", "c"]

    def test_list_local_on_file(self, tmp_path):
        """Test that listing a file raises BunnyLocalIOError."""
        path = tmp_path / "a.txt"
        path.write_text("a")
        with pytest.raises(BunnyLocalIOError, match="Cannot list"):
            list_local(path)

    def test_read_and_write(self, tmp_path):
        """Test a write followed by a read."""
        path = tmp_path / "a.bin"
        write_local(path, b"\x00\x01")
        assert read_local(path) == b"\x00\x01"

    def test_read_directory(self, tmp_path):
        """Test that reading a directory raises BunnyLocalIOError."""
        with pytest.raises(BunnyLocalIOError, match="Cannot read"):
            read_local(tmp_path)

    def test_write_into_missing_directory(self, tmp_path):
        """Test that writing below a missing directory raises BunnyLocalIOError."""
        with pytest.raises(BunnyLocalIOError, match="Cannot write"):
            write_local(tmp_path / "missing" / "a.txt", b"a")

    def test_checksum_of_directory(self, tmp_path):
        """Test that hashing an unreadable path raises BunnyLocalIOError."""
        with pytest.raises(BunnyLocalIOError, match="Cannot read"):
            compute_file_checksum(tmp_path)
