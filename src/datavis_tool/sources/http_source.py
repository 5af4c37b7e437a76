"""Descarga de muestras desde un endpoint HTTP."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

import requests
from requests import Session

from datavis_tool.errors import EmptyResponseError, InvalidURLError, NetworkError

logger = logging.getLogger(__name__)

_BAD_URL_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


def validate_url(url: str) -> str:
    """Return the stripped URL if it is an absolute http(s) URL with a host.

    Raises:
        InvalidURLError: If the URL is malformed or uses another scheme.
    """
    candidate = (url or "").strip()
    if _BAD_URL_CHARS.search(candidate):
        raise InvalidURLError(f"Invalid URL {url!r}: whitespace or control characters")
    try:
        parsed = urlparse(candidate)
        # .port valida el puerto y lanza ValueError si no es numérico.
        _ = parsed.port
    except ValueError as exc:
        raise InvalidURLError(f"Invalid URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidURLError(f"Invalid URL {url!r}")
    return candidate


@dataclass
class HttpFetcher:
    """Single-shot GET over a ``requests.Session``.

    ``timeout`` stays ``None`` unless configured, leaving the transport
    default in place. No retries.
    """

    timeout: float | None = None
    session: Session = field(default_factory=requests.Session)

    def fetch(self, url: str) -> bytes:
        """Fetch the body of ``url``.

        Raises:
            InvalidURLError: If ``url`` is malformed.
            NetworkError: On transport failure or non-2xx status.
            EmptyResponseError: If the body is empty.
        """
        target = validate_url(url)
        logger.info("Fetching %s", target)
        try:
            response = self.session.get(target, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkError(f"Error fetching {target}: {exc}") from exc
        body = response.content
        if not body:
            raise EmptyResponseError(f"No data received from {target}")
        return body

    def close(self) -> None:
        self.session.close()
