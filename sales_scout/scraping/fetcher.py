"""HTTP page fetcher for tracked product pages."""

from typing import Optional

import httpx
from loguru import logger

from ..exceptions import FetchError


class PageFetcher:
    """Retrieves raw page markup with static browser-like headers.

    A single attempt per call: no retry, no backoff. Every failure
    (transport error, timeout, redirect loop, non-2xx status) surfaces
    as ``FetchError`` so callers can treat it as "no observation this cycle".
    """

    DEFAULT_USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )

    def __init__(self, config: Optional[dict] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize page fetcher.

        Args:
            config: Scraping configuration dictionary
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        config = config or {}
        self.config = config
        self.timeout = float(config.get("timeout", 20.0))
        self.max_redirects = int(config.get("max_redirects", 5))
        self.transport = transport

    def _get_headers(self) -> dict:
        """Fixed headers impersonating a desktop browser"""
        return {
            "User-Agent": self.config.get("user_agent", self.DEFAULT_USER_AGENT),
            "Accept": self.config.get(
                "accept", "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
            ),
            "Accept-Language": self.config.get("accept_language", "en-US,en;q=0.9"),
            "Accept-Encoding": self.config.get("accept_encoding", "gzip, deflate"),
            "Connection": "keep-alive",
        }

    def get_http_client(self) -> httpx.AsyncClient:
        """Get configured HTTP client"""
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers=self._get_headers(),
            follow_redirects=True,
            max_redirects=self.max_redirects,
            transport=self.transport,
        )

    @staticmethod
    def validate_url(url: str) -> httpx.URL:
        """Parse an absolute http(s) URL or raise FetchError."""
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise FetchError(str(url), f"invalid URL ({e})") from e

        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise FetchError(str(url), "URL must be an absolute http(s) URL")

        return parsed

    async def fetch(self, url: str) -> str:
        """Fetch page markup.

        Args:
            url: Absolute page URL

        Returns:
            Decoded response body

        Raises:
            FetchError: on invalid URL, transport failure, timeout or non-2xx status
        """
        self.validate_url(url)
        logger.debug(f"Fetching {url}")

        try:
            async with self.get_http_client() as client:
                response = await client.get(url)
                response.raise_for_status()
                markup = response.text
        except httpx.TimeoutException as e:
            raise FetchError(url, f"timed out after {self.timeout:.0f}s") from e
        except httpx.TooManyRedirects as e:
            raise FetchError(url, f"more than {self.max_redirects} redirects") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise FetchError(url, f"HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e

        logger.debug(f"Fetched {url}: {response.status_code}, {len(markup)} chars")
        return markup
