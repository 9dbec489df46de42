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
# THE DELIVERER - HTTP(S) PUSH
# -----------------------------------------------------------------------------
# Responsibility: Push one named, typed, sized artifact to a destination.
#
# Fire-and-forget model:
# - A push counts as "sent" once the PUT returns
# - The response status is NOT inspected unless check_response_status is on
# - Only transport failures (connection refused, timeout, broken body) fail
# -----------------------------------------------------------------------------

from collections.abc import Callable
from urllib.parse import quote

import requests
from rich.console import Console

from parcel.core.config import ParcelConfig
from parcel.core.spill import ByteSource
from parcel.domain.models import Destination
from parcel.infra.http_push import PushError, ScopedBasicAuth, put_stream

console = Console()


class DeliveryError(Exception):
    """Raised when an artifact could not be pushed to a destination."""

    pass


def build_url(destination: Destination, name: str) -> str:
    """
    Build scheme://host:port/path/name for a destination.

    Empty path segments are dropped; path and name are percent-quoted.
    IPv6 literal hosts are bracketed.
    """
    host = destination.host
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    segments = [segment for segment in destination.path.split("/") if segment]
    segments.append(name)
    path = "/".join(quote(segment, safe="") for segment in segments)
    return f"{destination.scheme}://{host}:{destination.effective_port}/{path}"


class Deliverer:
    """
    Pushes artifacts to HTTP(S) destinations.

    Credentials on a destination are scoped to its host:port and never
    printed.
    """

    def __init__(
        self,
        config: ParcelConfig | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        """
        Args:
            config: Timeout, TLS and status-check settings.
            session_factory: Creates requests sessions (injectable for tests).
        """
        self._config = config or ParcelConfig()
        self._session_factory = session_factory

    def push(
        self,
        destination: Destination,
        name: str,
        content_type: str,
        source: ByteSource,
    ) -> None:
        """
        Push `source` to `destination` under `name`.

        Args:
            destination: Where to push.
            name: File name appended to the destination path.
            content_type: Content-Type header value.
            source: Sized, re-openable content.

        Raises:
            DeliveryError: If the destination is not HTTP(S) or the push fails.
        """
        if not destination.is_supported:
            raise DeliveryError(
                f"Transport '{destination.scheme}' is not supported, only HTTP(S) push is"
            )

        url = build_url(destination, name)
        auth = None
        if destination.has_credentials:
            auth = ScopedBasicAuth(
                destination.host,
                destination.effective_port,
                destination.username,
                destination.password,
            )

        console.print(f"[cyan][DELIVERER] Pushing {name} ({source.size} bytes) to {url}[/cyan]")

        try:
            status_code = put_stream(
                url,
                source.open_stream(),
                source.size,
                content_type,
                auth=auth,
                timeout=self._config.request_timeout_seconds,
                verify=self._config.verify_tls,
                check_status=self._config.check_response_status,
                session_factory=self._session_factory,
            )
        except PushError as e:
            console.print(f"[red][DELIVERER] Push failed: {name}[/red]")
            raise DeliveryError(str(e)) from e

        if status_code >= 400:
            console.print(
                f"[yellow][DELIVERER] {url} answered HTTP {status_code} (not checked)[/yellow]"
            )
        else:
            console.print(f"[green][DELIVERER] Sent: {name}[/green]")
