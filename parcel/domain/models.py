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
# DOMAIN MODELS - ORDERS, DESTINATIONS & MANIFESTS
# -----------------------------------------------------------------------------
# These Pydantic models define the contract between the caller (the request
# layer that received the order) and the fulfillment pipeline.
#
# Orders come in as OrderSpec; the pipeline hands back a DeliveryManifest.
# Invalid orders are rejected at the gate, before any product is resolved.
# -----------------------------------------------------------------------------

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

from pydantic import BaseModel, Field

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class PackagingFormat(str, Enum):
    """
    Supported packaging recipes for an order.

    Each format combines an archive choice (none, zip, tar) with an
    optional compression step. The token values are the ones carried
    on the wire by the ordering client.
    """

    FILESUNC = "FILESUNC"
    FILESCOMPRESS = "FILESCOMPRESS"
    FILESZIP = "FILESZIP"
    FILESGZIP = "FILESGZIP"
    TARUNC = "TARUNC"
    TARZIP = "TARZIP"
    TARGZIP = "TARGZIP"
    TARCOMPRESS = "TARCOMPRESS"
    TARBZIP2 = "TARBZIP2"

    @property
    def extension(self) -> str:
        """File extension appended to delivered artifacts (may be empty)."""
        return FORMAT_EXTENSIONS[self]

    @property
    def content_type(self) -> str:
        """Content-Type sent with delivered artifacts."""
        return FORMAT_CONTENT_TYPES[self]


FORMAT_EXTENSIONS = {
    PackagingFormat.FILESUNC: "",
    PackagingFormat.FILESCOMPRESS: ".Z",
    PackagingFormat.FILESZIP: ".zip",
    PackagingFormat.FILESGZIP: ".gz",
    PackagingFormat.TARUNC: ".tar",
    PackagingFormat.TARZIP: ".tar.zip",
    PackagingFormat.TARGZIP: ".tar.gz",
    PackagingFormat.TARCOMPRESS: ".tar.Z",
    PackagingFormat.TARBZIP2: ".tar.bz2",
}

FORMAT_CONTENT_TYPES = {
    PackagingFormat.FILESUNC: DEFAULT_CONTENT_TYPE,
    PackagingFormat.FILESCOMPRESS: "application/x-compress",
    PackagingFormat.FILESZIP: "application/zip",
    PackagingFormat.FILESGZIP: "application/gzip",
    PackagingFormat.TARUNC: "application/x-tar",
    PackagingFormat.TARZIP: "application/zip",
    PackagingFormat.TARGZIP: "application/gzip",
    PackagingFormat.TARCOMPRESS: "application/x-compress",
    PackagingFormat.TARBZIP2: "application/x-bzip2",
}


class TransportKind(str, Enum):
    """
    Delivery transport requested by a destination.

    Only HTTP and HTTPS are deliverable: the Deliverer performs an HTTP PUT.
    The other kinds exist so orders carrying them validate and can be
    reported as unusable instead of failing to parse.
    """

    HTTP = "http"
    HTTPS = "https"
    FTP = "ftp"
    EMAIL = "email"
    PHYSICAL = "physical"


SUPPORTED_TRANSPORTS = frozenset({TransportKind.HTTP, TransportKind.HTTPS})

DEFAULT_PORTS = {
    TransportKind.HTTP: 80,
    TransportKind.HTTPS: 443,
}


class Destination(BaseModel):
    """
    A single push target.

    Credentials are only used when both username and password are present.
    file_name is the destination's suggested name for the delivered package,
    used when the order itself does not name one.
    """

    host: str = Field(..., min_length=1, description="Host name or address of the receiver")
    port: int | None = Field(default=None, ge=1, le=65535, description="Receiver port")
    path: str = Field(default="", description="Path prefix under which files are PUT")
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    transport: TransportKind = TransportKind.HTTP
    file_name: str | None = Field(default=None, description="Suggested package file name")

    class Config:
        """Pydantic configuration for strict validation."""

        str_strip_whitespace = True

    @property
    def is_supported(self) -> bool:
        """True if the Deliverer can push to this destination."""
        return self.transport in SUPPORTED_TRANSPORTS

    @property
    def scheme(self) -> str:
        return TransportKind(self.transport).value

    @property
    def effective_port(self) -> int:
        if self.port is not None:
            return self.port
        return DEFAULT_PORTS.get(TransportKind(self.transport), 80)

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None


class ProductDetails(BaseModel):
    """Reference to one previously identified product."""

    product_id: str = Field(..., min_length=1)
    source_id: str | None = Field(default=None, description="Catalog source holding the product")


class PackagingSpec(BaseModel):
    """How the order wants its products packaged."""

    package_identifier: str | None = Field(
        default=None, description="Base file name for delivered artifacts"
    )
    packaging_format: PackagingFormat = PackagingFormat.FILESUNC


class OrderSpec(BaseModel):
    """
    The order to fulfil.

    products may contain None entries (null product details on the wire);
    those are skipped with a warning during fulfillment.
    """

    products: list[ProductDetails | None] | None = None
    packaging: PackagingSpec | None = None
    destinations: list[Destination] = Field(default_factory=list)

    @property
    def package_identifier(self) -> str | None:
        if self.packaging is None:
            return None
        return self.packaging.package_identifier

    @property
    def packaging_format(self) -> PackagingFormat:
        if self.packaging is None:
            return PackagingFormat.FILESUNC
        return PackagingFormat(self.packaging.packaging_format)


class PackageElement(BaseModel):
    """The files actually pushed to one destination."""

    files: tuple[str, ...] = ()

    class Config:
        frozen = True


class DeliveryManifest(BaseModel):
    """
    Record of what was delivered for an order.

    Built once by OrderFulfillment and frozen before it is handed back.
    """

    package_name: str | None = None
    elements: tuple[PackageElement, ...] = ()

    class Config:
        frozen = True

    @property
    def files(self) -> list[str]:
        """All delivered file names across every element, in order."""
        return [name for element in self.elements for name in element.files]


@dataclass
class ResourceContainer:
    """
    A resolved product: an open byte stream plus its metadata.

    The stream is owned exclusively by whoever holds the container and is
    consumed exactly once. size is -1 when the resolver could not tell.
    """

    stream: BinaryIO
    name: str
    size: int = -1
    content_type: str = DEFAULT_CONTENT_TYPE

    def close(self) -> None:
        self.stream.close()
