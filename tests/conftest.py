"""
Pytest configuration and fixtures for Parcel tests.
"""

import io
import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep tests independent of any local parcel.yaml / .env
os.environ.setdefault("PARCEL_CONFIG", str(Path(__file__).parent / "missing-parcel.yaml"))

from parcel.core.config import ParcelConfig  # noqa: E402
from parcel.domain.models import Destination, ResourceContainer  # noqa: E402


class FakeResolver:
    """Resolver serving in-memory products; unknown ids raise ResourceNotFoundError."""

    def __init__(self, products: dict[str, tuple[str, bytes]], content_type: str = "text/plain"):
        self.products = products
        self.content_type = content_type
        self.opened: list[io.BytesIO] = []
        self.calls: list[tuple[str, str | None]] = []

    def resolve(self, product_id, source_id=None):
        from parcel.core.resolver import ResourceNotFoundError

        self.calls.append((product_id, source_id))
        if product_id not in self.products:
            raise ResourceNotFoundError(f"Product not found: {product_id}", product_id)
        name, data = self.products[product_id]
        stream = io.BytesIO(data)
        self.opened.append(stream)
        return ResourceContainer(
            stream=stream, name=name, size=len(data), content_type=self.content_type
        )


class RecordingDeliverer:
    """Deliverer double that reads every pushed artifact into memory."""

    def __init__(self, fail_on: set[str] | None = None):
        self.pushes: list[dict] = []
        self.fail_on = fail_on or set()

    def push(self, destination, name, content_type, source):
        from parcel.core.deliverer import DeliveryError

        if name in self.fail_on or destination.host in self.fail_on:
            raise DeliveryError(f"refused: {name}")
        self.pushes.append(
            {
                "host": destination.host,
                "name": name,
                "content_type": content_type,
                "data": source.read_bytes(),
                "size": source.size,
            }
        )


@pytest.fixture
def small_config(tmp_path):
    """Config with a tiny spill threshold so buffers hit the disk."""
    return ParcelConfig(memory_threshold_bytes=16, chunk_size=8, temp_dir=str(tmp_path))


@pytest.fixture
def http_destination():
    return Destination(host="receiver.example.com", port=8080, path="incoming")


@pytest.fixture
def three_products():
    return {
        "p1": ("alpha.txt", b"alpha content"),
        "p2": ("bravo.txt", b"bravo content, a little longer"),
        "p3": ("charlie.bin", bytes(range(256)) * 4),
    }


@pytest.fixture
def fake_resolver(three_products):
    return FakeResolver(three_products)


@pytest.fixture
def recording_deliverer():
    return RecordingDeliverer()


@pytest.fixture
def mock_session():
    """A requests.Session double that records the body of every PUT."""
    session = MagicMock()
    session.__enter__.return_value = session
    session.__exit__.return_value = False
    session.bodies = []

    def _put(url, data=None, **kwargs):
        payload = data if isinstance(data, bytes) else data.read()
        session.bodies.append(payload)
        response = MagicMock()
        response.status_code = 201
        return response

    session.put.side_effect = _put
    return session


@pytest.fixture
def resolver_class():
    """FakeResolver itself, for tests that subclass or configure it."""
    return FakeResolver


@pytest.fixture
def make_deliverer():
    return RecordingDeliverer
