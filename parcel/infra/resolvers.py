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
# DIRECTORY RESOLVER
# -----------------------------------------------------------------------------
# Responsibility: Serve products straight from a local directory tree.
# product_id is a path relative to the root; source_id selects a
# sub-directory when given.
#
# Security: ids that escape the root (../, absolute paths) are refused.
# -----------------------------------------------------------------------------

import mimetypes
from pathlib import Path

from rich.console import Console

from parcel.core.resolver import ResourceNotFoundError, ResourceNotSupportedError
from parcel.domain.models import DEFAULT_CONTENT_TYPE, ResourceContainer

console = Console()


class DirectoryResolver:
    """ResourceResolver backed by files under a root directory."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).resolve()
        if not self._root.is_dir():
            raise ValueError(f"Resolver root is not a directory: {root}")
        console.print(f"[cyan][RESOLVER] Serving products from {self._root}[/cyan]")

    def _locate(self, product_id: str, source_id: str | None) -> Path:
        base = self._root / source_id if source_id else self._root
        candidate = (base / product_id).resolve()
        if not candidate.is_relative_to(self._root):
            raise ResourceNotSupportedError(
                f"Product id escapes the resolver root: {product_id}", product_id
            )
        return candidate

    def resolve(self, product_id: str, source_id: str | None = None) -> ResourceContainer:
        """
        Open a product file.

        Raises:
            ResourceNotFoundError: If no such file exists.
            ResourceNotSupportedError: If the id is not a regular file inside the root.
        """
        path = self._locate(product_id, source_id)

        if not path.exists():
            raise ResourceNotFoundError(f"Product not found: {product_id}", product_id)
        if not path.is_file():
            raise ResourceNotSupportedError(f"Product is not a file: {product_id}", product_id)

        content_type, _ = mimetypes.guess_type(path.name)
        return ResourceContainer(
            stream=open(path, "rb"),
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )
