"""
Tests for the ArchiveWriter container transforms.

Archives are read back with the standard library readers.
"""

import bz2
import gzip
import io
import tarfile
import zipfile

import pytest

from parcel.core.archive import ArchiveEntry, ArchiveWriter
from parcel.core.spill import SpillBuffer


class TrackingStream(io.BytesIO):
    """BytesIO that remembers it was closed (and keeps its bytes readable for asserts)."""

    def close(self):
        self.was_closed = True
        super().close()


def entry(name, data, size=None):
    return ArchiveEntry(name=name, stream=TrackingStream(data), size=len(data) if size is None else size)


@pytest.fixture
def writer(tmp_path):
    return ArchiveWriter(chunk_size=7, staging_threshold=8, temp_dir=str(tmp_path))


class TestZip:
    """Tests for ArchiveWriter.zip."""

    def test_entries_in_order(self, writer):
        with SpillBuffer(threshold=1024) as sink:
            written = writer.zip(sink, [entry("b.txt", b"bravo"), entry("a.txt", b"alpha")])
            data = sink.as_byte_source().read_bytes()

        assert written == ["b.txt", "a.txt"]
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == ["b.txt", "a.txt"]
            assert archive.read("b.txt") == b"bravo"
            assert archive.testzip() is None

    def test_duplicate_names_first_wins(self, writer):
        first = entry("same.txt", b"first bytes")
        second = entry("same.txt", b"second bytes")
        with SpillBuffer(threshold=1024) as sink:
            written = writer.zip(sink, [first, second])
            data = sink.as_byte_source().read_bytes()

        assert written == ["same.txt"]
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == ["same.txt"]
            assert archive.read("same.txt") == b"first bytes"
        assert first.stream.was_closed
        assert second.stream.was_closed

    def test_unknown_size_entry(self, writer):
        with SpillBuffer(threshold=1024) as sink:
            writer.zip(sink, [entry("stream.bin", b"\x00" * 100, size=-1)])
            data = sink.as_byte_source().read_bytes()

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("stream.bin") == b"\x00" * 100

    def test_zip_into_spilled_sink(self, writer, tmp_path):
        payload = bytes(range(256)) * 64
        with SpillBuffer(threshold=32, temp_dir=str(tmp_path)) as sink:
            writer.zip(sink, [entry("big.bin", payload)])
            assert sink.spilled
            data = sink.as_byte_source().read_bytes()

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("big.bin") == payload


class TestTar:
    """Tests for ArchiveWriter.tar."""

    def test_entries_and_metadata(self, writer):
        with SpillBuffer(threshold=4096) as sink:
            writer.tar(sink, [entry("one.txt", b"one"), entry("two.txt", b"two!")], mtime=1700000000)
            data = sink.as_byte_source().read_bytes()

        with tarfile.open(fileobj=io.BytesIO(data)) as archive:
            members = archive.getmembers()
            assert [m.name for m in members] == ["one.txt", "two.txt"]
            assert all(m.mtime == 1700000000 for m in members)
            assert all(m.mode == 0o660 for m in members)
            assert all(m.isfile() for m in members)
            assert archive.extractfile("two.txt").read() == b"two!"

    def test_default_mtime_is_now(self, writer):
        import time

        before = int(time.time())
        with SpillBuffer(threshold=4096) as sink:
            writer.tar(sink, [entry("a", b"a")])
            data = sink.as_byte_source().read_bytes()
        with tarfile.open(fileobj=io.BytesIO(data)) as archive:
            assert archive.getmembers()[0].mtime >= before

    def test_unknown_size_is_staged(self, writer):
        payload = b"unknown length payload" * 10
        with SpillBuffer(threshold=4096) as sink:
            writer.tar(sink, [entry("u.bin", payload, size=-1)])
            data = sink.as_byte_source().read_bytes()

        with tarfile.open(fileobj=io.BytesIO(data)) as archive:
            member = archive.getmember("u.bin")
            assert member.size == len(payload)
            assert archive.extractfile(member).read() == payload

    def test_streams_closed(self, writer):
        items = [entry("a", b"a"), entry("b", b"b")]
        with SpillBuffer(threshold=4096) as sink:
            writer.tar(sink, items)
        assert all(item.stream.was_closed for item in items)

    def test_custom_permissions(self):
        writer = ArchiveWriter(tar_permissions=0o644)
        with SpillBuffer(threshold=4096) as sink:
            writer.tar(sink, [entry("a", b"a")])
            data = sink.as_byte_source().read_bytes()
        with tarfile.open(fileobj=io.BytesIO(data)) as archive:
            assert archive.getmember("a").mode == 0o644


class TestCompression:
    """Tests for single-stream gzip and bzip2."""

    def test_gzip(self, writer):
        stream = TrackingStream(b"compress me " * 50)
        with SpillBuffer(threshold=4096) as sink:
            writer.gzip(sink, stream)
            data = sink.as_byte_source().read_bytes()
        assert gzip.decompress(data) == b"compress me " * 50
        assert stream.was_closed

    def test_bzip2(self, writer):
        stream = TrackingStream(b"compress me " * 50)
        with SpillBuffer(threshold=4096) as sink:
            writer.bzip2(sink, stream)
            data = sink.as_byte_source().read_bytes()
        assert bz2.decompress(data) == b"compress me " * 50
        assert stream.was_closed

    def test_gzip_empty_stream(self, writer):
        with SpillBuffer(threshold=4096) as sink:
            writer.gzip(sink, io.BytesIO(b""))
            data = sink.as_byte_source().read_bytes()
        assert gzip.decompress(data) == b""
