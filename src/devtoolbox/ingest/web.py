"""Web fetcher: URL scraping with SSRF protection.

Security requirements:
- SSRF guard: resolved addresses in private/loopback/link-local/reserved
  ranges are rejected before any connection is made.
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html and text/plain only.
- Max response body: 5 MB.
- Timeout: 30 seconds. Max redirects: 3.
"""

from __future__ import annotations

import ipaddress
import socket
import urllib.error
import urllib.parse
import urllib.request
from http.client import HTTPResponse

import html2text
from bs4 import BeautifulSoup

from devtoolbox.context.chunking import chunk
from devtoolbox.context.models import TEXT, URL, ContextChunk, ContextSource
from devtoolbox.ingest.base import BaseFetcher

_USER_AGENT = "devtoolbox/0.1"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_TIMEOUT = 30  # seconds
_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "text/plain"}

_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.body_width = 0


class SsrfError(ValueError):
    """Raised when a URL resolves to a private or reserved address."""


class WebFetcher(BaseFetcher):
    """Fetch a web page, reduce it to text and chunk it as ``text``.

    Scripts, styles and page chrome (nav, footer, head) are removed with
    BeautifulSoup before html2text converts the remainder.
    """

    def _new_source(self, locator: str) -> ContextSource:
        self._validate_scheme(locator)
        hostname = urllib.parse.urlparse(locator).hostname
        if not hostname:
            raise ValueError(f"URL has no hostname: {locator}")
        return ContextSource(kind=URL, locator=locator, title=hostname)

    def _load(self, source: ContextSource) -> list[ContextChunk]:
        text = self._fetch_and_convert(source.locator)
        if not text.strip():
            raise RuntimeError(f"No text content found at '{source.locator}'.")
        return chunk(text, source.locator, TEXT, chunk_size=self.chunk_size)

    # ------------------------------------------------------------------
    # Fetch pipeline
    # ------------------------------------------------------------------

    def _fetch_and_convert(self, url: str) -> str:
        self._check_ssrf(url)
        raw, content_type = self._fetch(url)
        return self._to_plain_text(raw, content_type)

    @staticmethod
    def _validate_scheme(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in _ALLOWED_SCHEMES:
            raise ValueError(
                f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
            )

    @staticmethod
    def _check_ssrf(url: str) -> None:
        """Resolve the hostname and block private/reserved IP ranges."""
        hostname = urllib.parse.urlparse(url).hostname
        if not hostname:
            raise ValueError(f"URL has no hostname: {url}")

        try:
            addrinfos = socket.getaddrinfo(hostname, None)
        except socket.gaierror as exc:
            raise ValueError(f"DNS resolution failed for '{hostname}': {exc}") from exc

        for addrinfo in addrinfos:
            try:
                ip = ipaddress.ip_address(addrinfo[4][0])
            except ValueError:
                continue
            if (
                ip.is_private
                or ip.is_loopback
                or ip.is_link_local
                or ip.is_reserved
                or ip.is_multicast
                or ip.is_unspecified
            ):
                raise SsrfError(
                    f"URL resolves to private address ({ip}). "
                    "Access to internal network addresses is not allowed."
                )

    @staticmethod
    def _fetch(url: str) -> tuple[bytes, str]:
        """Fetch *url*; returns (body_bytes, content_type_without_params)."""
        request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        opener = urllib.request.build_opener(_LimitedRedirectHandler(_MAX_REDIRECTS))

        try:
            response: HTTPResponse = opener.open(request, timeout=_TIMEOUT)
        except urllib.error.URLError as exc:
            raise RuntimeError(f"Failed to fetch URL '{url}': {exc}") from exc

        with response:
            raw_ct = response.headers.get("Content-Type", "text/html")
            ct = raw_ct.split(";")[0].strip().lower()
            if ct not in _ALLOWED_CONTENT_TYPES:
                raise ValueError(
                    f"Unsupported Content-Type '{ct}' for URL '{url}'. "
                    f"Accepted: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
                )

            body = response.read(_MAX_BYTES + 1)
        if len(body) > _MAX_BYTES:
            raise ValueError(
                f"Response body exceeds {_MAX_BYTES // (1024 * 1024)} MB limit for URL '{url}'."
            )
        return body, ct

    @staticmethod
    def _to_plain_text(body: bytes, content_type: str) -> str:
        text = body.decode("utf-8", errors="replace")
        if content_type == "text/plain":
            return text

        soup = BeautifulSoup(text, "html.parser")
        for tag in soup.find_all(["script", "style", "nav", "footer", "head"]):
            tag.decompose()
        return _h2t.handle(str(soup)).strip()


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects.

    Every redirect target goes through the same scheme and SSRF checks as
    the initial URL.
    """

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise RuntimeError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        WebFetcher._validate_scheme(newurl)
        WebFetcher._check_ssrf(newurl)
        return super().redirect_request(req, fp, code, msg, headers, newurl)
