"""
Place page resolver.
Follows a shareable place link to its canonical page and fetches the raw document.
"""

import asyncio
from typing import Optional, Union

import httpx

from ..clock import utc_now
from ..errors import FetchFailure
from ..models import HoursConfig, PlaceReference, RawDocument
from ..utils import get_logger
from ..utils.patterns import is_short_link


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Worth retrying: the server may answer differently later
TRANSIENT_STATUS_CODES = {408, 425, 429}

# HEAD not supported; fall back to GET for redirect discovery
HEAD_UNSUPPORTED_STATUS_CODES = {405, 501}


class PageResolver:
    """
    Resolves place links with a browser-like HTTP client.

    A HEAD request follows the redirect chain to the canonical URL, then a GET
    fetches the page body. Every failure is raised as FetchFailure.
    """

    def __init__(self, config: HoursConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.transport = transport
        self.logger = get_logger()

    @property
    def headers(self) -> dict:
        return {
            "User-Agent": self.config.user_agent or DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": self.config.accept_language,
        }

    async def resolve(self, place: Union[PlaceReference, str]) -> RawDocument:
        """
        Fetch the canonical page for a place link, with retries.

        Transient failures are retried with exponential backoff; permanent
        ones (bad link, 4xx) are raised straight away.

        Raises:
            FetchFailure: the page could not be fetched
        """
        if isinstance(place, PlaceReference):
            place_link, name = place.place_link, place.display_name
        else:
            place_link, name = place.strip(), place.strip()

        attempts = max(1, self.config.retry_attempts)

        for attempt in range(attempts):
            try:
                self.logger.debug(f"Resolving {place_link} (attempt {attempt + 1})")
                document = await self._fetch(place_link)

            except FetchFailure as e:
                if e.permanent:
                    self.logger.warning(f"Permanent fetch failure for {name}: {e.reason}")
                    raise
                if attempt == attempts - 1:
                    self.logger.warning(f"Giving up on {name} after {attempts} attempt(s): {e.reason}")
                    raise

                self.logger.warning(f"Fetch failed for {name} (attempt {attempt + 1}): {e.reason}")
                await asyncio.sleep(self.config.retry_backoff_sec * (2 ** attempt))  # Exponential backoff
                continue

            self.logger.debug(
                f"Fetched {name}: {len(document.body)} chars from {document.canonical_url}"
            )

            if self.config.debug_mode and self.config.debug_save_html:
                self.logger.save_debug_html(document.body, name, "place")

            return document

        raise FetchFailure(place_link, "no fetch attempted")

    async def _fetch(self, place_link: str) -> RawDocument:
        """One HEAD + GET round."""
        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout_sec,
                headers=self.headers,
                follow_redirects=True,
                transport=self.transport
            ) as client:
                canonical_url = await self._discover_canonical(client, place_link)

                response = await client.get(canonical_url)
                self._check_status(place_link, response)
                self._check_redirected(place_link, str(response.url))

                return RawDocument(
                    place_link=place_link,
                    canonical_url=str(response.url),
                    body=response.text,
                    status_code=response.status_code,
                    fetched_at=utc_now()
                )

        except httpx.TimeoutException:
            raise FetchFailure(place_link, "request timed out")
        except httpx.TooManyRedirects:
            raise FetchFailure(place_link, "redirect loop", permanent=True)
        except httpx.HTTPError as e:
            raise FetchFailure(place_link, f"{type(e).__name__}: {e}")

    async def _discover_canonical(self, client: httpx.AsyncClient, place_link: str) -> str:
        """Follow redirects with HEAD; returns the final URL."""
        response = await client.head(place_link)

        if response.status_code in HEAD_UNSUPPORTED_STATUS_CODES:
            self.logger.debug(f"HEAD not supported for {place_link}, resolving with GET")
            return place_link

        self._check_status(place_link, response)

        canonical_url = str(response.url)
        self._check_redirected(place_link, canonical_url)

        if canonical_url != place_link:
            self.logger.debug(f"Resolved {place_link} -> {canonical_url}")
        return canonical_url

    @staticmethod
    def _check_status(place_link: str, response: httpx.Response):
        if response.is_success:
            return

        status = response.status_code
        permanent = status < 500 and status not in TRANSIENT_STATUS_CODES
        raise FetchFailure(
            place_link,
            response.reason_phrase or "unexpected status",
            status_code=status,
            permanent=permanent
        )

    @staticmethod
    def _check_redirected(place_link: str, final_url: str):
        """A share link that lands on itself never reached a place page."""
        if is_short_link(place_link) and is_short_link(final_url):
            raise FetchFailure(place_link, "short link did not redirect", permanent=True)
