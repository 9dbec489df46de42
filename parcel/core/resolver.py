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
# RESOURCE RESOLUTION CONTRACT
# -----------------------------------------------------------------------------
# The pipeline does not know where product bytes come from. The caller
# supplies:
# - a ResourceResolver: product id (+ source id) -> ResourceContainer
# - a SecurityContext: runs the resolution on behalf of the requesting
#   identity
#
# Any error listed here means "skip this product", never "fail the order".
# -----------------------------------------------------------------------------

from collections.abc import Callable
from typing import Protocol, TypeVar

from parcel.domain.models import ResourceContainer

T = TypeVar("T")


class ResolutionError(Exception):
    """Base class for product resolution failures."""

    def __init__(self, message: str, product_id: str | None = None) -> None:
        super().__init__(message)
        self.product_id = product_id


class ResourceNotFoundError(ResolutionError):
    """The product does not exist in the given source."""

    pass


class ResourceNotSupportedError(ResolutionError):
    """The product exists but its content cannot be retrieved."""

    pass


class SecurityContextError(Exception):
    """Raised by a SecurityContext when the delegated execution fails."""

    pass


class ResourceResolver(Protocol):
    """Resolves product identifiers into open resource streams."""

    def resolve(self, product_id: str, source_id: str | None = None) -> ResourceContainer:
        """Return the product's content, or raise ResolutionError / OSError."""
        ...


class SecurityContext(Protocol):
    """Runs an action under a delegated identity."""

    def execute(self, action: Callable[[], T]) -> T:
        ...


class DirectSecurityContext:
    """SecurityContext that runs the action as the current process identity."""

    def execute(self, action: Callable[[], T]) -> T:
        return action()
