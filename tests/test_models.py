"""
Tests for Pydantic domain models.
"""

import io

import pytest
from pydantic import ValidationError

from parcel.domain.models import (
    DeliveryManifest,
    Destination,
    OrderSpec,
    PackageElement,
    PackagingFormat,
    PackagingSpec,
    ProductDetails,
    ResourceContainer,
    TransportKind,
)


class TestPackagingFormat:
    """Tests for PackagingFormat enum."""

    def test_nine_formats(self):
        """All nine packaging recipes are declared."""
        assert len(PackagingFormat) == 9

    def test_format_from_token(self):
        """Wire tokens map to enum members."""
        assert PackagingFormat("TARGZIP") == PackagingFormat.TARGZIP
        assert PackagingFormat("FILESUNC") == PackagingFormat.FILESUNC

    def test_invalid_token(self):
        with pytest.raises(ValueError):
            PackagingFormat("TARXZ")

    def test_every_format_has_extension_and_content_type(self):
        for packaging_format in PackagingFormat:
            assert isinstance(packaging_format.extension, str)
            assert "/" in packaging_format.content_type

    def test_uncompressed_files_have_no_extension(self):
        assert PackagingFormat.FILESUNC.extension == ""

    def test_tar_compress_distinct_from_tar_zip(self):
        """TARCOMPRESS and TARZIP share a recipe but not their labels."""
        assert PackagingFormat.TARCOMPRESS.extension != PackagingFormat.TARZIP.extension
        assert PackagingFormat.TARCOMPRESS.content_type != PackagingFormat.TARZIP.content_type


class TestDestination:
    """Tests for Destination model."""

    def test_defaults(self):
        destination = Destination(host="example.com")
        assert destination.transport == TransportKind.HTTP
        assert destination.effective_port == 80
        assert destination.path == ""
        assert not destination.has_credentials

    def test_https_default_port(self):
        destination = Destination(host="example.com", transport="https")
        assert destination.scheme == "https"
        assert destination.effective_port == 443

    def test_explicit_port_wins(self):
        destination = Destination(host="example.com", port=8443, transport="https")
        assert destination.effective_port == 8443

    def test_credentials_need_both_parts(self):
        assert not Destination(host="h", username="bob").has_credentials
        assert Destination(host="h", username="bob", password="pw").has_credentials

    def test_password_hidden_from_repr(self):
        destination = Destination(host="h", username="bob", password="s3cret")
        assert "s3cret" not in repr(destination)

    def test_supported_transports(self):
        assert Destination(host="h", transport="http").is_supported
        assert Destination(host="h", transport="https").is_supported
        assert not Destination(host="h", transport="ftp").is_supported
        assert not Destination(host="h", transport="email").is_supported

    def test_empty_host_rejected(self):
        with pytest.raises(ValidationError):
            Destination(host="")

    def test_invalid_port_rejected(self):
        with pytest.raises(ValidationError):
            Destination(host="h", port=70000)


class TestOrderSpec:
    """Tests for OrderSpec model."""

    def test_defaults_to_files_uncompressed(self):
        order = OrderSpec(products=[ProductDetails(product_id="p1")])
        assert order.packaging_format == PackagingFormat.FILESUNC
        assert order.package_identifier is None

    def test_packaging_spec(self):
        order = OrderSpec(
            products=[ProductDetails(product_id="p1")],
            packaging=PackagingSpec(package_identifier="pkg", packaging_format="TARZIP"),
        )
        assert order.packaging_format == PackagingFormat.TARZIP
        assert order.package_identifier == "pkg"

    def test_null_products_allowed(self):
        order = OrderSpec(products=[None, {"product_id": "p1"}])
        assert order.products[0] is None
        assert order.products[1].product_id == "p1"

    def test_from_dict(self):
        order = OrderSpec(
            **{
                "products": [{"product_id": "p1", "source_id": "catalog"}],
                "destinations": [{"host": "example.com", "transport": "https"}],
            }
        )
        assert order.destinations[0].transport == TransportKind.HTTPS
        assert order.products[0].source_id == "catalog"


class TestDeliveryManifest:
    """Tests for DeliveryManifest model."""

    def test_files_flattened(self):
        manifest = DeliveryManifest(
            package_name="pkg",
            elements=(PackageElement(files=("a", "b")), PackageElement(files=("c",))),
        )
        assert manifest.files == ["a", "b", "c"]

    def test_frozen(self):
        manifest = DeliveryManifest(package_name="pkg")
        with pytest.raises(ValidationError):
            manifest.package_name = "other"

    def test_serializes(self):
        manifest = DeliveryManifest(
            package_name="pkg", elements=(PackageElement(files=("pkg.tar",)),)
        )
        data = manifest.model_dump()
        assert data["package_name"] == "pkg"
        assert list(data["elements"][0]["files"]) == ["pkg.tar"]


class TestResourceContainer:
    """Tests for ResourceContainer."""

    def test_close_closes_stream(self):
        stream = io.BytesIO(b"data")
        container = ResourceContainer(stream=stream, name="a.txt", size=4)
        container.close()
        assert stream.closed

    def test_unknown_size_default(self):
        container = ResourceContainer(stream=io.BytesIO(), name="a")
        assert container.size == -1
        assert container.content_type == "application/octet-stream"
