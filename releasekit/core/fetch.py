"""
Authenticated HTTP retrieval of release metadata, assets and checksum files.

ArtifactFetcher is deliberately narrow: one GET, an optional bearer token,
and a strict mapping of failures onto the releasekit error taxonomy. It
performs no retries and no backoff; callers decide how to react to each
error kind.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from requests.auth import AuthBase
from requests.exceptions import RequestException

from .exceptions import HTTPStatusError, MetadataParseError, NetworkError

logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = "releasekit"


class _BearerAuth(AuthBase):
    """
    Bearer token auth, or no credential at all.

    requests only consults ~/.netrc when a request carries no auth object,
    so passing this one even for anonymous fetches keeps the Authorization
    header tied to the configured token.
    """

    def __init__(self, token: Optional[str]):
        self.token = token

    def __call__(self, request):
        if self.token is not None:
            request.headers["Authorization"] = f"Bearer {self.token}"
        else:
            request.headers.pop("Authorization", None)
        return request


class _Session(requests.Session):
    """Session whose redirects never pick up ~/.netrc credentials."""

    def rebuild_auth(self, prepared_request, response):
        # Cross-host redirects drop the token and get nothing in its place
        headers = prepared_request.headers
        if "Authorization" in headers and self.should_strip_auth(
            response.request.url, prepared_request.url
        ):
            del headers["Authorization"]


@dataclass(frozen=True)
class FetchResponse:
    """
    Result of a successful GET.

    Attributes:
        status: HTTP status code (always 2xx)
        headers: Response headers (case-insensitive lookups via get_header)
        body: Raw response body
    """

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            MetadataParseError: If the body is not valid JSON
        """
        try:
            return json.loads(self.body)
        except (ValueError, UnicodeDecodeError) as e:
            raise MetadataParseError(f"Response is not valid JSON: {e}") from e


class ArtifactFetcher:
    """
    Perform GET requests, attaching a bearer token when one is configured.

    The token is supplied at construction (resolved once by the caller from
    configuration); the fetcher never looks at the environment itself.

    Example:
        >>> fetcher = ArtifactFetcher(token=settings.token)
        >>> response = fetcher.get("https://api.github.com/repos/o/r/releases/latest")
        >>> response.status
        200
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize fetcher.

        Args:
            token: Bearer token, or None for unauthenticated requests
            timeout: Per-request timeout in seconds; None waits indefinitely
            user_agent: User-Agent header value
            session: Optional pre-built requests session
        """
        self._token = token or None
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or _Session()
        self._auth = _BearerAuth(self._token)

    @property
    def authenticated(self) -> bool:
        """Whether requests carry an Authorization header."""
        return self._token is not None

    def build_headers(self, accept: Optional[str] = None) -> Dict[str, str]:
        """
        Build request headers.

        Args:
            accept: Optional Accept header value

        Returns:
            Header dict; includes 'Authorization: Bearer <token>' iff a token
            was configured
        """
        headers = {"User-Agent": self.user_agent}
        if accept:
            headers["Accept"] = accept
        if self._token is not None:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def get(self, url: str, accept: Optional[str] = None) -> FetchResponse:
        """
        Fetch a URL.

        Args:
            url: URL to fetch
            accept: Optional Accept header value

        Returns:
            FetchResponse with status, headers and body

        Raises:
            NetworkError: On transport failure
            HTTPStatusError: If the status is outside 200-299
        """
        if not url:
            raise ValueError("URL cannot be empty")

        logger.debug(
            f"GET {url} ({'authenticated' if self.authenticated else 'anonymous'})"
        )

        try:
            response = self.session.get(
                url,
                headers=self.build_headers(accept),
                auth=self._auth,
                timeout=self.timeout,
                allow_redirects=True,
            )
            body = response.content
        except RequestException as e:
            raise NetworkError(url, str(e)) from e

        headers = dict(response.headers)

        if not 200 <= response.status_code < 300:
            logger.debug(f"GET {url} returned HTTP {response.status_code}")
            raise HTTPStatusError(response.status_code, url, headers, body)

        logger.debug(f"GET {url} returned {len(body)} bytes")
        return FetchResponse(status=response.status_code, headers=headers, body=body)

    def close(self):
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        token = "***" if self.authenticated else None
        return f"ArtifactFetcher(token={token!r}, timeout={self.timeout!r})"


__all__ = ["ArtifactFetcher", "FetchResponse", "DEFAULT_USER_AGENT"]
