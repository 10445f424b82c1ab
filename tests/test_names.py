"""Tests for length-prefixed name decoding."""

import struct

from bigfile_audio.core.names import read_length_prefixed_name


def _field(text: bytes) -> bytes:
    return struct.pack("<i", len(text)) + text


class TestReadLengthPrefixedName:

    def test_single_field_round_trip(self):
        buffer = b"\x00" + _field(b"Ambience_Forest")
        assert read_length_prefixed_name(buffer, 0) == "Ambience_Forest"

    def test_following_field_supersedes_first(self):
        buffer = b"\x00" + _field(b"placeholder") + _field(b"RealName")
        assert read_length_prefixed_name(buffer, 0) == "RealName"

    def test_length_search_skips_gap_bytes(self):
        buffer = b"\x00" + _field(b"first") + b"\x00\x00" + _field(b"second")
        assert read_length_prefixed_name(buffer, 0) == "second"

    def test_length_search_limited_by_count(self):
        buffer = b"\x00" + _field(b"first") + b"\x00" * 8 + _field(b"second")
        assert read_length_prefixed_name(buffer, 0, probe_count=4) == "first"

    def test_utf8_name(self):
        buffer = b"\x00" + _field("Musique_Été".encode("utf-8"))
        assert read_length_prefixed_name(buffer, 0) == "Musique_Été"

    def test_resynchronises_past_oversized_length(self):
        # First read sees a length of 5000; the next read sits five bytes later.
        buffer = b"\x00" + struct.pack("<i", 5000) + b"\x00" + _field(b"Name")
        assert read_length_prefixed_name(buffer, 0) == "Name"

    def test_length_running_past_buffer_is_rejected(self):
        buffer = b"\x00" + struct.pack("<i", 50) + b"short"
        assert read_length_prefixed_name(buffer, 0) is None

    def test_garbage_returns_none(self):
        assert read_length_prefixed_name(b"\xff" * 40, 0) is None

    def test_invalid_utf8_is_not_a_match(self):
        buffer = b"\x00" + _field(b"\xff\xfe\xfd")
        assert read_length_prefixed_name(buffer, 0) is None

    def test_too_short_buffer(self):
        assert read_length_prefixed_name(b"\x00\x01", 0) is None

    def test_max_length_respected(self):
        buffer = b"\x00" + _field(b"x" * 20)
        assert read_length_prefixed_name(buffer, 0, max_length=10) is None
