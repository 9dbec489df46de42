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
# THE PLANNER - FORMAT MATRIX & FILE NAMING
# -----------------------------------------------------------------------------
# Responsibility: Turn (format, resources, base name) into delivered artifacts.
#
# Every PackagingFormat maps to a Recipe:
# - per_file recipes emit one artifact per resource (ordinal-named when
#   there is more than one resource)
# - collective recipes emit exactly one artifact named <base><ext>
#
# A recipe is a tuple of stages. Each stage writes into its own SpillBuffer
# and the next stage reads that buffer as its single input, so composed
# formats (tar then zip/gzip/bzip2) always pass through a materialized
# intermediate of known size.
# -----------------------------------------------------------------------------

from collections.abc import Iterator, Sequence
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum

from rich.console import Console

from parcel.core.archive import ArchiveEntry, ArchiveWriter
from parcel.core.config import ParcelConfig
from parcel.core.spill import ByteSource, SpillBuffer
from parcel.domain.models import PackagingFormat

console = Console()

FILE_COUNT_FORMAT = "{:02d}"
TAR_EXTENSION = ".tar"


class PackagingError(Exception):
    """Raised when an artifact cannot be built."""

    pass


class Stage(str, Enum):
    """A single container transform applied by a recipe."""

    ZIP = "zip"
    TAR = "tar"
    GZIP = "gzip"
    BZIP2 = "bzip2"


@dataclass(frozen=True)
class Recipe:
    """How one PackagingFormat is built."""

    per_file: bool
    stages: tuple[Stage, ...]


RECIPES: dict[PackagingFormat, Recipe] = {
    PackagingFormat.FILESUNC: Recipe(per_file=True, stages=()),
    PackagingFormat.FILESCOMPRESS: Recipe(per_file=True, stages=(Stage.ZIP,)),
    PackagingFormat.FILESGZIP: Recipe(per_file=True, stages=(Stage.GZIP,)),
    PackagingFormat.FILESZIP: Recipe(per_file=False, stages=(Stage.ZIP,)),
    PackagingFormat.TARUNC: Recipe(per_file=False, stages=(Stage.TAR,)),
    PackagingFormat.TARZIP: Recipe(per_file=False, stages=(Stage.TAR, Stage.ZIP)),
    PackagingFormat.TARGZIP: Recipe(per_file=False, stages=(Stage.TAR, Stage.GZIP)),
    PackagingFormat.TARCOMPRESS: Recipe(per_file=False, stages=(Stage.TAR, Stage.ZIP)),
    PackagingFormat.TARBZIP2: Recipe(per_file=False, stages=(Stage.TAR, Stage.BZIP2)),
}


@dataclass
class BufferedResource:
    """
    A resolved product whose bytes live in a SpillBuffer.

    Each packaging pass opens its own reader, so the same resource can be
    packaged for several destinations.
    """

    name: str
    content_type: str
    source: ByteSource

    @property
    def size(self) -> int:
        return self.source.size


@dataclass
class Artifact:
    """One file ready to push. source is only valid until the next artifact."""

    name: str
    content_type: str
    source: ByteSource


def recipe_for(packaging_format: PackagingFormat) -> Recipe:
    try:
        return RECIPES[PackagingFormat(packaging_format)]
    except (KeyError, ValueError):
        raise PackagingError(f"No recipe for packaging format {packaging_format!r}")


def ordinal_name(base: str, index: int, total: int, extension: str = "") -> str:
    """
    Name file `index` (1-based) of a multi-file delivery.

    >>> ordinal_name("pkg", 2, 4, ".gz")
    'pkg.02.04.gz'
    """
    return f"{base}.{FILE_COUNT_FORMAT.format(index)}.{FILE_COUNT_FORMAT.format(total)}{extension}"


def output_names(
    packaging_format: PackagingFormat,
    count: int,
    base: str,
    total_offset: int = 1,
) -> list[str]:
    """
    Compute the delivered file names for `count` resources.

    Per-file recipes with more than one resource use the ordinal convention
    with total = count + total_offset. FILESUNC never gets an extension.
    """
    if count <= 0:
        return []

    packaging_format = PackagingFormat(packaging_format)
    recipe = recipe_for(packaging_format)
    extension = packaging_format.extension

    if not recipe.per_file:
        return [f"{base}{extension}"]

    if count == 1:
        return [f"{base}{extension}"]

    total = count + total_offset
    return [ordinal_name(base, index, total, extension) for index in range(1, count + 1)]


class PackagingPlanner:
    """
    Builds the artifacts of an order for one destination.

    package() is a generator: each Artifact's byte source is released as
    soon as the caller asks for the next one (or closes the generator), so
    at most one artifact's buffers are alive at a time.
    """

    def __init__(
        self,
        writer: ArchiveWriter | None = None,
        memory_threshold: int | None = None,
        temp_dir: str | None = None,
        total_offset: int | None = None,
        config: ParcelConfig | None = None,
    ) -> None:
        config = config or ParcelConfig()
        self.writer = writer or ArchiveWriter(
            chunk_size=config.chunk_size,
            tar_permissions=config.tar_permissions,
            staging_threshold=config.memory_threshold_bytes,
            temp_dir=config.temp_dir,
        )
        self.memory_threshold = (
            memory_threshold if memory_threshold is not None else config.memory_threshold_bytes
        )
        self.temp_dir = temp_dir if temp_dir is not None else config.temp_dir
        self.total_offset = (
            total_offset if total_offset is not None else config.ordinal_total_offset
        )

    def package(
        self,
        packaging_format: PackagingFormat,
        resources: Sequence[BufferedResource],
        base: str,
    ) -> Iterator[Artifact]:
        """
        Yield the artifacts for `resources` packaged as `packaging_format`.

        Args:
            packaging_format: Requested format.
            resources: Buffered resources, in order.
            base: Base file name for the delivered artifacts.

        Raises:
            PackagingError: If a container cannot be built.
        """
        packaging_format = PackagingFormat(packaging_format)
        recipe = recipe_for(packaging_format)
        names = output_names(packaging_format, len(resources), base, self.total_offset)

        if not resources:
            console.print("[yellow][PLANNER] No resources to package[/yellow]")
            return

        console.print(
            f"[cyan][PLANNER] {packaging_format.value}: {len(resources)} resource(s) "
            f"-> {len(names)} file(s)[/cyan]"
        )

        if recipe.per_file:
            for resource, name in zip(resources, names):
                with ExitStack() as scope:
                    if recipe.stages:
                        source = self._run_stages(scope, recipe.stages, [resource], base)
                        content_type = packaging_format.content_type
                    else:
                        source = resource.source
                        content_type = resource.content_type
                    yield Artifact(name=name, content_type=content_type, source=source)
        else:
            with ExitStack() as scope:
                source = self._run_stages(scope, recipe.stages, list(resources), base)
                yield Artifact(
                    name=names[0], content_type=packaging_format.content_type, source=source
                )

    def _run_stages(
        self,
        scope: ExitStack,
        stages: tuple[Stage, ...],
        resources: list[BufferedResource],
        base: str,
    ) -> ByteSource:
        inputs = [(resource.name, resource.source) for resource in resources]
        source: ByteSource | None = None

        for stage in stages:
            if source is not None:
                inputs = [(f"{base}{TAR_EXTENSION}", source)]

            sink = scope.enter_context(SpillBuffer(self.memory_threshold, self.temp_dir))
            try:
                self._apply(stage, sink, inputs)
            except (OSError, ValueError, EOFError, RuntimeError) as e:
                raise PackagingError(f"{stage.value} stage failed: {e}") from e
            source = sink.as_byte_source()

        return source

    def _apply(self, stage: Stage, sink: SpillBuffer, inputs: list[tuple[str, ByteSource]]) -> None:
        if stage is Stage.ZIP:
            self.writer.zip(sink, _open_entries(inputs))
        elif stage is Stage.TAR:
            self.writer.tar(sink, _open_entries(inputs))
        elif stage is Stage.GZIP:
            self.writer.gzip(sink, _single_input(stage, inputs).open_stream())
        elif stage is Stage.BZIP2:
            self.writer.bzip2(sink, _single_input(stage, inputs).open_stream())
        else:
            raise PackagingError(f"Unknown stage {stage}")


def _open_entries(inputs: list[tuple[str, ByteSource]]) -> Iterator[ArchiveEntry]:
    # Streams are opened lazily so an aborted build never leaves one open.
    for name, source in inputs:
        yield ArchiveEntry(name=name, stream=source.open_stream(), size=source.size)


def _single_input(stage: Stage, inputs: list[tuple[str, ByteSource]]) -> ByteSource:
    if len(inputs) != 1:
        raise PackagingError(f"{stage.value} stage takes exactly one input, got {len(inputs)}")
    return inputs[0][1]
