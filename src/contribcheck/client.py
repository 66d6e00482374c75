# Copyright (c) Syntropy Systems
"""HTTP client for the Qlik Sense Repository Service (QRS).

One authenticated ``QrsSession`` owns the connection. Callers get two
capability-scoped handles over it: ``QrsClient`` issues reads as the acting
user and ``QrsAdminClient`` runs the probe and the rule cache reset as the
service account.
"""
from __future__ import annotations

import logging
import ssl
import secrets
import string
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError
from typing_extensions import Self

from contribcheck.errors import ConfigurationError, TransportError
from contribcheck.models.qrs import AboutResponse, ErrorResponse

if TYPE_CHECKING:
    from types import TracebackType

    from contribcheck.config import ContribCheckConfig

logger = logging.getLogger(__name__)

XRFKEY_LENGTH = 16
ABOUT_ENDPOINT = "/qrs/about"


@dataclass(frozen=True)
class Identity:
    """A Qlik Sense user, ``USERDIRECTORY\\userid``."""

    user_directory: str
    user_id: str

    @classmethod
    def parse(cls, text: str) -> Identity:
        """Parse ``DIRECTORY\\user``.

        Raises:
            ValueError: If either part is missing or empty

        """
        directory, sep, user_id = text.partition("\\")
        if not sep or not directory or not user_id or "\\" in user_id:
            msg = f"Expected USERDIRECTORY\\userid, got {text!r}"
            raise ValueError(msg)
        return cls(user_directory=directory, user_id=user_id)

    @property
    def header_value(self) -> str:
        """Value for the ``X-Qlik-User`` header."""
        return f"UserDirectory={self.user_directory}; UserId={self.user_id}"

    def __str__(self) -> str:
        return f"{self.user_directory}\\{self.user_id}"


def generate_xrfkey() -> str:
    """Generate a cross-site request forgery key for the session."""
    chars = string.ascii_letters + string.digits
    return "".join(secrets.choice(chars) for _ in range(XRFKEY_LENGTH))


def build_ssl_context(config: ContribCheckConfig) -> ssl.SSLContext:
    """Build the TLS context carrying the client certificate."""
    try:
        if config.verify_server:
            context = ssl.create_default_context(cafile=config.ca_cert)
        else:
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        if config.client_cert is not None and config.client_key is not None:
            context.load_cert_chain(config.client_cert, config.client_key)
    except (OSError, ssl.SSLError) as e:
        msg = f"Could not load certificates: {e}"
        raise ConfigurationError(msg) from e
    return context


def _error_detail(response: httpx.Response) -> str:
    try:
        return ErrorResponse.model_validate(response.json()).message
    except (ValidationError, ValueError):
        return response.text or response.reason_phrase


class QrsSession:
    """Authenticated connection shared by every handle."""

    server_url: str
    xrfkey: str
    _client: httpx.Client

    def __init__(
        self,
        config: ContribCheckConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            config: Loaded configuration (server URL, certificates, timeout)
            http_client: Pre-built client, mainly for tests. When omitted a
                client is built from the configured certificates.

        """
        self.server_url = config.server_url.rstrip("/")
        self.xrfkey = generate_xrfkey()
        if http_client is None:
            http_client = httpx.Client(
                verify=build_ssl_context(config),
                timeout=config.timeout,
            )
        self._client = http_client

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        """Enter the session context and return self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the session context and close the HTTP client."""
        self.close()

    def request(
        self,
        method: str,
        endpoint: str,
        identity: Identity,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send one request as ``identity``.

        Raises:
            TransportError: On connection failures and non-2xx responses

        """
        url = httpx.URL(f"{self.server_url}{endpoint}").copy_merge_params(
            {"xrfkey": self.xrfkey}
        )
        headers = {
            "X-Qlik-Xrfkey": self.xrfkey,
            "X-Qlik-User": identity.header_value,
        }
        logger.debug("%s %s as %s", method, endpoint, identity)
        try:
            response = self._client.request(
                method,
                url,
                headers=headers,
                content=content,
            )
            _ = response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            msg = (
                f"Server error: {method} {endpoint} returned "
                f"{e.response.status_code}: {detail}"
            )
            raise TransportError(msg) from e
        except httpx.RequestError as e:
            msg = f"Connection error: {method} {endpoint}: {e}"
            raise TransportError(msg) from e
        return response

    def user_client(self, identity: Identity) -> QrsClient:
        """Handle that reads as ``identity``."""
        return QrsClient(self, identity)

    def admin_client(
        self,
        identity: Identity,
        cache_clear_endpoint: str,
    ) -> QrsAdminClient:
        """Handle for administrative calls made as ``identity``."""
        return QrsAdminClient(self, identity, cache_clear_endpoint)


class QrsClient:
    """Read access to the repository as one user."""

    def __init__(self, session: QrsSession, identity: Identity) -> None:
        self._session = session
        self.identity = identity

    def get(self, endpoint: str) -> bytes:
        """GET ``endpoint`` and return the raw response body."""
        return self._session.request("GET", endpoint, self.identity).content


class QrsAdminClient:
    """Administrative access: connectivity probe and rule cache reset."""

    def __init__(
        self,
        session: QrsSession,
        identity: Identity,
        cache_clear_endpoint: str,
    ) -> None:
        self._session = session
        self.identity = identity
        self.cache_clear_endpoint = cache_clear_endpoint

    def probe(self) -> AboutResponse:
        """Fetch repository build information.

        Raises:
            TransportError: If the call fails or the payload is not recognised

        """
        response = self._session.request("GET", ABOUT_ENDPOINT, self.identity)
        try:
            return AboutResponse.model_validate(response.json())
        except (ValidationError, ValueError) as e:
            msg = f"Unexpected response from {ABOUT_ENDPOINT}: {e}"
            raise TransportError(msg) from e

    def clear_computation_cache(self) -> None:
        """Invalidate the repository's security rule cache."""
        _ = self._session.request(
            "POST",
            self.cache_clear_endpoint,
            self.identity,
            content=b"",
        )
