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
# ORDER FULFILLMENT - ORCHESTRATOR
# -----------------------------------------------------------------------------
# Responsibility: Run one order end to end on the calling thread.
# Connects: Resolver -> SpillBuffer -> Planner -> Deliverer -> Manifest
#
# Only two conditions fail the call:
# - NoProductsError: the order lists no products
# - UnsupportedTransportError: no destination is HTTP(S)
#
# Everything else (a product that won't resolve, a destination that won't
# accept a push) is logged and shows up as a smaller manifest.
#
# Resolved streams are read once into order-scoped SpillBuffers; every
# destination packages from fresh readers over those buffers. Together
# they keep at most memory_threshold_bytes in memory; the rest spills.
# -----------------------------------------------------------------------------

import shutil
import traceback
import uuid
from contextlib import ExitStack, closing
from functools import partial

from rich.console import Console

from parcel.core.config import ParcelConfig, load_config
from parcel.core.deliverer import Deliverer, DeliveryError
from parcel.core.planner import BufferedResource, PackagingError, PackagingPlanner
from parcel.core.resolver import (
    DirectSecurityContext,
    ResolutionError,
    ResourceResolver,
    SecurityContext,
    SecurityContextError,
)
from parcel.core.spill import SpillBuffer, SpillBufferError
from parcel.domain.models import (
    DeliveryManifest,
    Destination,
    OrderSpec,
    PackageElement,
    PackagingFormat,
    ProductDetails,
    ResourceContainer,
)

console = Console()


class NoProductsError(Exception):
    """Raised when an order lists no products."""

    pass


class UnsupportedTransportError(Exception):
    """Raised when none of an order's destinations can be pushed to."""

    pass


class OrderFulfillment:
    """
    Packages and delivers orders.

    Flow:
    1. Validate: products present, at least one HTTP(S) destination
    2. Resolve each product under the security context, buffer its bytes
    3. For each usable destination: pick the base name, package, push
    4. Return the manifest of what was actually pushed
    """

    def __init__(
        self,
        resolver: ResourceResolver,
        security_context: SecurityContext | None = None,
        deliverer: Deliverer | None = None,
        planner: PackagingPlanner | None = None,
        config: ParcelConfig | None = None,
    ) -> None:
        """
        Args:
            resolver: Turns product ids into resource streams.
            security_context: Identity under which resolution runs.
            deliverer: Push implementation (HTTP PUT by default).
            planner: Packaging implementation.
            config: Pipeline settings. If None, parcel.yaml and the PARCEL_*
                environment variables are read through load_config().
        """
        self._config = config or load_config()
        self._resolver = resolver
        self._security_context = security_context or DirectSecurityContext()
        self._deliverer = deliverer or Deliverer(self._config)
        self._planner = planner or PackagingPlanner(config=self._config)

    @property
    def config(self) -> ParcelConfig:
        return self._config

    def fulfill(self, order: OrderSpec) -> DeliveryManifest:
        """
        Fulfil an order.

        Args:
            order: The validated order.

        Returns:
            DeliveryManifest with one element per destination that was
            packaged and pushed without error.

        Raises:
            NoProductsError: If the order has no products.
            UnsupportedTransportError: If no destination is HTTP(S).
        """
        if not order.products:
            console.print("[red][FULFILLMENT] Rejected: no products specified[/red]")
            raise NoProductsError("No products specified for the order")

        destinations = self._usable_destinations(order.destinations)
        if not destinations:
            console.print("[red][FULFILLMENT] Rejected: no HTTP(S) destination[/red]")
            raise UnsupportedTransportError("Only HTTP(S) delivery is supported")

        packaging_format = order.packaging_format
        elements: list[PackageElement] = []

        console.print(
            f"[cyan][FULFILLMENT] Order: {len(order.products)} product(s), "
            f"{len(destinations)} destination(s), format {packaging_format.value}[/cyan]"
        )

        with ExitStack() as order_scope:
            resources = self._resolve_all(order.products, order_scope)

            for destination in destinations:
                base = self._base_filename(order.package_identifier, destination)
                try:
                    sent = self._package_and_deliver(
                        destination, packaging_format, resources, base
                    )
                except (PackagingError, DeliveryError, SpillBufferError) as e:
                    console.print(
                        f"[red][FULFILLMENT] Delivery to {destination.host} failed: {e}[/red]"
                    )
                    continue
                except OSError as e:
                    console.print(f"[red][FULFILLMENT] I/O error for {destination.host}: {e}[/red]")
                    continue
                except Exception as e:
                    console.print(f"[red][FULFILLMENT] Unexpected error for {destination.host}: {e}[/red]")
                    console.print(f"[dim]{traceback.format_exc()}[/dim]")
                    continue

                elements.append(PackageElement(files=tuple(sent)))

        manifest = DeliveryManifest(
            package_name=order.package_identifier,
            elements=tuple(elements),
        )
        console.print(
            f"[green][FULFILLMENT] Complete: {len(manifest.files)} file(s) "
            f"in {len(manifest.elements)} element(s)[/green]"
        )
        return manifest

    def _usable_destinations(self, destinations: list[Destination]) -> list[Destination]:
        usable = []
        for destination in destinations:
            if destination.is_supported:
                usable.append(destination)
            else:
                console.print(
                    f"[yellow][FULFILLMENT] Skipping {destination.scheme} destination "
                    f"{destination.host}: only HTTP(S) is supported[/yellow]"
                )
        return usable

    def _base_filename(self, package_identifier: str | None, destination: Destination) -> str:
        """Order's package identifier, else the destination's file name, else a UUID."""
        if package_identifier and package_identifier.strip():
            return package_identifier
        if destination.file_name and destination.file_name.strip():
            return destination.file_name
        return str(uuid.uuid4())

    def _resolve_all(
        self,
        products: list[ProductDetails | None],
        order_scope: ExitStack,
    ) -> list[BufferedResource]:
        resources = []
        # One memory budget for every resource buffer of the order
        budget = self._config.memory_threshold_bytes
        for product in products:
            if product is None:
                console.print("[yellow][FULFILLMENT] Skipping null product detail[/yellow]")
                continue

            try:
                container = self._security_context.execute(
                    partial(self._resolver.resolve, product.product_id, product.source_id)
                )
            except (ResolutionError, SecurityContextError, OSError) as e:
                console.print(
                    f"[yellow][FULFILLMENT] Unable to retrieve {product.product_id}: {e}[/yellow]"
                )
                continue
            except Exception as e:
                console.print(
                    f"[red][FULFILLMENT] Unexpected error retrieving {product.product_id}: {e}[/red]"
                )
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
                continue

            if container is None:
                console.print(
                    f"[yellow][FULFILLMENT] No resource returned for {product.product_id}[/yellow]"
                )
                continue

            try:
                resource, held = self._buffer(container, order_scope, budget)
            except OSError as e:
                console.print(
                    f"[yellow][FULFILLMENT] Unable to read {product.product_id}: {e}[/yellow]"
                )
                continue
            except Exception as e:
                console.print(
                    f"[red][FULFILLMENT] Unexpected error reading {product.product_id}: {e}[/red]"
                )
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
                continue

            budget -= held
            resources.append(resource)

        console.print(
            f"[cyan][FULFILLMENT] Resolved {len(resources)} of {len(products)} product(s)[/cyan]"
        )
        return resources

    def _buffer(
        self,
        container: ResourceContainer,
        order_scope: ExitStack,
        budget: int,
    ) -> tuple[BufferedResource, int]:
        """
        Copy a container's stream into an order-scoped SpillBuffer and close it.

        The buffer may keep at most `budget` bytes in memory. Returns the
        resource and the number of bytes it ended up holding in memory.
        """
        buffer = SpillBuffer(max(budget, 0), self._config.temp_dir)
        try:
            with closing(container):
                shutil.copyfileobj(container.stream, buffer, self._config.chunk_size)
        except BaseException:
            buffer.close()
            raise

        order_scope.enter_context(buffer)
        if container.size >= 0 and container.size != buffer.size:
            console.print(
                f"[yellow][FULFILLMENT] {container.name}: expected {container.size} bytes, "
                f"read {buffer.size}[/yellow]"
            )
        resource = BufferedResource(
            name=container.name,
            content_type=container.content_type,
            source=buffer.as_byte_source(),
        )
        return resource, buffer.memory_bytes

    def _package_and_deliver(
        self,
        destination: Destination,
        packaging_format: PackagingFormat,
        resources: list[BufferedResource],
        base: str,
    ) -> list[str]:
        """Package `resources` for one destination; return the names pushed."""
        sent: list[str] = []
        try:
            with closing(self._planner.package(packaging_format, resources, base)) as artifacts:
                for artifact in artifacts:
                    self._deliverer.push(
                        destination, artifact.name, artifact.content_type, artifact.source
                    )
                    sent.append(artifact.name)
        except BaseException:
            if sent:
                console.print(
                    f"[yellow][FULFILLMENT] {destination.host} already received: "
                    f"{', '.join(sent)}[/yellow]"
                )
            raise
        return sent
