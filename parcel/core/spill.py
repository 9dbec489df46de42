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
# SPILL BUFFER - BOUNDED-MEMORY SINK
# -----------------------------------------------------------------------------
# Responsibility: Accumulate bytes in memory up to a threshold, then move
# everything to a temporary file and keep writing there.
#
# Afterwards the content is exposed as a ByteSource: a known size plus
# open_stream(), which can be called any number of times.
#
# The sink deliberately has no seek(): archive writers fall back to their
# streaming modes (zip data descriptors, tar stream mode).
# -----------------------------------------------------------------------------

import io
import os
import tempfile
from contextlib import suppress
from typing import BinaryIO

from rich.console import Console

console = Console()


class SpillBufferError(Exception):
    """Raised when a SpillBuffer is used after release."""

    pass


class ByteSource:
    """A sized, re-openable view over bytes accumulated in a SpillBuffer."""

    def __init__(self, buffer: "SpillBuffer") -> None:
        self._buffer = buffer

    @property
    def size(self) -> int:
        return self._buffer.size

    def open_stream(self) -> BinaryIO:
        """Open a fresh reader positioned at the first byte."""
        return self._buffer._open_reader()

    def read_bytes(self) -> bytes:
        """Read the whole content. Only meant for small payloads and tests."""
        with self.open_stream() as stream:
            return stream.read()


class SpillBuffer:
    """
    Write sink that spills to disk above a memory threshold.

    Use as a context manager; the temporary file (if any) is removed when
    the scope ends, whether it ends normally or with an exception.

    Example:
        with SpillBuffer(threshold=1024 * 1024) as sink:
            sink.write(data)
            source = sink.as_byte_source()
            with source.open_stream() as stream:
                ...
    """

    def __init__(self, threshold: int, temp_dir: str | None = None) -> None:
        self.threshold = threshold
        self._temp_dir = temp_dir
        self._memory: io.BytesIO | None = io.BytesIO()
        self._file: BinaryIO | None = None
        self._path: str | None = None
        self._size = 0
        self._closed = False

    @classmethod
    def create(cls, threshold: int, temp_dir: str | None = None) -> "SpillBuffer":
        return cls(threshold, temp_dir)

    def __enter__(self) -> "SpillBuffer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def size(self) -> int:
        return self._size

    @property
    def spilled(self) -> bool:
        """True once content has moved to a temporary file."""
        return self._path is not None

    @property
    def memory_bytes(self) -> int:
        """Bytes currently held in memory (0 once spilled or released)."""
        if self._closed or self._file is not None:
            return 0
        return self._size

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return True

    def readable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def write(self, data) -> int:
        if self._closed:
            raise SpillBufferError("write to a released SpillBuffer")

        length = memoryview(data).nbytes
        if self._file is None and self._size + length > self.threshold:
            self._spill()

        if self._file is not None:
            self._file.write(data)
        else:
            self._memory.write(data)

        self._size += length
        return length

    def tell(self) -> int:
        return self._size

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def _spill(self) -> None:
        handle = tempfile.NamedTemporaryFile(
            prefix="parcel-", suffix=".spill", dir=self._temp_dir, delete=False
        )
        self._path = handle.name
        self._file = handle
        handle.write(self._memory.getvalue())
        self._memory = None
        console.print(
            f"[dim][SPILL] Threshold {self.threshold} bytes exceeded, spilling to {self._path}[/dim]"
        )

    def as_byte_source(self) -> ByteSource:
        if self._closed:
            raise SpillBufferError("SpillBuffer already released")
        self.flush()
        return ByteSource(self)

    def _open_reader(self) -> BinaryIO:
        if self._closed:
            raise SpillBufferError("SpillBuffer already released")
        if self._file is not None:
            self._file.flush()
            return open(self._path, "rb")
        return io.BytesIO(self._memory.getvalue())

    def close(self) -> None:
        """Release memory and delete the temporary file, if any."""
        if self._closed:
            return
        self._closed = True
        self._memory = None
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._path is not None:
            with suppress(FileNotFoundError):
                os.unlink(self._path)
