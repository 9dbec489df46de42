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
# HTTP PUSH INFRASTRUCTURE
# -----------------------------------------------------------------------------
# Responsibility: Stream a body to a URL with a single HTTP PUT.
#
# Security:
# - Basic credentials are only attached to requests aimed at the exact
#   host:port they were configured for (redirects elsewhere go without them)
# - Passwords are NEVER logged
# -----------------------------------------------------------------------------

from collections.abc import Callable
from typing import BinaryIO
from urllib.parse import urlsplit

import requests
from requests.auth import AuthBase, HTTPBasicAuth
from rich.console import Console

console = Console()

HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_LENGTH = "Content-Length"

DEFAULT_SCHEME_PORTS = {"http": 80, "https": 443}


class PushError(Exception):
    """Raised when the PUT could not be carried out at the transport level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ScopedBasicAuth(AuthBase):
    """
    Basic auth restricted to one host:port.

    requests calls the auth hook for the initial request; a request whose
    URL points at another host or port is sent without credentials.
    """

    def __init__(self, host: str, port: int, username: str, password: str) -> None:
        self.host = host.strip("[]").lower()
        self.port = port
        self._basic = HTTPBasicAuth(username, password)

    def matches(self, url: str) -> bool:
        parts = urlsplit(url)
        port = parts.port or DEFAULT_SCHEME_PORTS.get(parts.scheme, None)
        return (parts.hostname or "").lower() == self.host and port == self.port

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        if self.matches(request.url):
            return self._basic(request)
        return request

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, ScopedBasicAuth)
            and self.host == other.host
            and self.port == other.port
            and self._basic == other._basic
        )

    def __ne__(self, other) -> bool:
        return not self == other


def put_stream(
    url: str,
    body: BinaryIO,
    size: int,
    content_type: str,
    auth: AuthBase | None = None,
    timeout: float | None = None,
    verify: bool = True,
    check_status: bool = False,
    session_factory: Callable[[], requests.Session] = requests.Session,
) -> int:
    """
    PUT `size` bytes from `body` to `url`.

    The body stream and the HTTP session are closed on every exit path.
    The response status is returned but, unless check_status is set, never
    treated as a failure: only transport errors are.

    Args:
        url: Target URL.
        body: Open binary stream positioned at the first byte.
        size: Exact body length in bytes.
        content_type: Value of the Content-Type header.
        auth: Optional requests auth hook.
        timeout: Seconds for connect/read, None for no limit.
        verify: Verify TLS certificates.
        check_status: Raise PushError on 4xx/5xx responses.
        session_factory: Creates the requests session (injectable for tests).

    Returns:
        The HTTP status code of the response.

    Raises:
        PushError: On connection/timeout failures (or bad status when checked).
    """
    headers = {
        HEADER_CONTENT_TYPE: content_type,
        HEADER_CONTENT_LENGTH: str(size),
    }

    console.print(f"[dim][HTTP] PUT {url} ({size} bytes, {content_type})[/dim]")

    try:
        with session_factory() as session:
            response = session.put(
                url,
                data=body if size != 0 else b"",
                headers=headers,
                auth=auth,
                timeout=timeout,
                verify=verify,
            )
            try:
                status_code = response.status_code
                if check_status and status_code >= 400:
                    raise PushError(f"PUT {url} returned HTTP {status_code}", status_code)
                return status_code
            finally:
                response.close()
    except requests.RequestException as e:
        raise PushError(f"PUT {url} failed: {e}") from e
    except OSError as e:
        raise PushError(f"PUT {url} failed reading body: {e}") from e
    finally:
        body.close()
