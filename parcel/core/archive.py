# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# ARCHIVE WRITER - CONTAINER TRANSFORMS
# -----------------------------------------------------------------------------
# Responsibility: Wrap input streams into zip, tar, gzip or bzip2 containers
# written to a sink. Knows nothing about formats, file naming or delivery.
#
# Every input stream handed in is closed once it has been copied (or skipped).
# Sinks are written sequentially; no seek() is required.
# -----------------------------------------------------------------------------

import bz2
import gzip
import shutil
import tarfile
import time
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from typing import BinaryIO

from rich.console import Console

from parcel.core.spill import SpillBuffer

console = Console()

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_TAR_PERMISSIONS = 0o660
DEFAULT_STAGING_THRESHOLD = 100 * 1024 * 1024


@dataclass
class ArchiveEntry:
    """One input to an archive: entry name, open stream and size (-1 if unknown)."""

    name: str
    stream: BinaryIO
    size: int = -1


class ArchiveWriter:
    """
    Writes archive containers into a sink.

    Example:
        writer = ArchiveWriter()
        with SpillBuffer(threshold) as sink:
            writer.tar(sink, [ArchiveEntry("a.txt", stream, size)])
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        tar_permissions: int = DEFAULT_TAR_PERMISSIONS,
        staging_threshold: int = DEFAULT_STAGING_THRESHOLD,
        temp_dir: str | None = None,
    ) -> None:
        """
        Args:
            chunk_size: Copy buffer size in bytes.
            tar_permissions: Unix mode bits stored on every tar entry.
            staging_threshold: Memory threshold used when a tar input of
                unknown size has to be staged to learn its size.
            temp_dir: Directory for staging files (system default if None).
        """
        self.chunk_size = chunk_size
        self.tar_permissions = tar_permissions
        self.staging_threshold = staging_threshold
        self.temp_dir = temp_dir

    def zip(self, sink: BinaryIO, entries: Iterable[ArchiveEntry]) -> list[str]:
        """
        Write one deflated zip entry per input, in order.

        An entry whose name was already written is skipped: the first
        occurrence wins.

        Returns:
            Entry names actually written.
        """
        written: list[str] = []
        seen: set[str] = set()

        with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry in entries:
                with entry.stream:
                    if entry.name in seen:
                        console.print(
                            f"[yellow][ARCHIVE] Duplicate zip entry skipped: {entry.name}[/yellow]"
                        )
                        continue

                    info = zipfile.ZipInfo(entry.name, date_time=time.localtime()[:6])
                    info.compress_type = zipfile.ZIP_DEFLATED
                    info.external_attr = (0o100000 | self.tar_permissions) << 16
                    if entry.size >= 0:
                        info.file_size = entry.size

                    with archive.open(info, mode="w", force_zip64=entry.size < 0) as target:
                        shutil.copyfileobj(entry.stream, target, self.chunk_size)

                seen.add(entry.name)
                written.append(entry.name)

        sink.flush()
        return written

    def tar(
        self,
        sink: BinaryIO,
        entries: Iterable[ArchiveEntry],
        mtime: int | None = None,
    ) -> list[str]:
        """
        Write one regular-file tar entry per input, in order.

        All entries share the same modification time (build time unless
        given) and the configured permission bits. Inputs of unknown size
        are staged in a SpillBuffer first, since a tar header needs the size.

        Returns:
            Entry names written.
        """
        if mtime is None:
            mtime = int(time.time())

        written: list[str] = []

        with tarfile.open(fileobj=sink, mode="w|", format=tarfile.PAX_FORMAT) as archive:
            for entry in entries:
                with entry.stream:
                    if entry.size >= 0:
                        self._add_tar_member(archive, entry.name, entry.stream, entry.size, mtime)
                    else:
                        with SpillBuffer(self.staging_threshold, self.temp_dir) as staged:
                            shutil.copyfileobj(entry.stream, staged, self.chunk_size)
                            source = staged.as_byte_source()
                            with source.open_stream() as stream:
                                self._add_tar_member(
                                    archive, entry.name, stream, source.size, mtime
                                )
                written.append(entry.name)

        sink.flush()
        return written

    def _add_tar_member(
        self,
        archive: tarfile.TarFile,
        name: str,
        stream: BinaryIO,
        size: int,
        mtime: int,
    ) -> None:
        info = tarfile.TarInfo(name=name)
        info.size = size
        info.mtime = mtime
        info.mode = self.tar_permissions
        info.type = tarfile.REGTYPE
        archive.addfile(info, stream)

    def gzip(self, sink: BinaryIO, stream: BinaryIO) -> None:
        """Gzip a single stream into the sink."""
        with stream, gzip.GzipFile(filename="", mode="wb", fileobj=sink) as compressed:
            shutil.copyfileobj(stream, compressed, self.chunk_size)
        sink.flush()

    def bzip2(self, sink: BinaryIO, stream: BinaryIO) -> None:
        """Bzip2 a single stream into the sink."""
        with stream, bz2.BZ2File(sink, mode="wb") as compressed:
            shutil.copyfileobj(stream, compressed, self.chunk_size)
        sink.flush()
