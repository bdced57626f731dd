"""
Simple HTTP transport - plain GET plus markup parsing.

Cheap and fast, but only sees server-rendered markup. Pages that build
their numbers in JavaScript usually need the headless variant.
"""

import logging
from typing import Optional

import aiohttp

from ..base import BaseSentimentSource
from ..config import DEFAULT_USER_AGENT
from ..exceptions import FetchError


logger = logging.getLogger(__name__)


class HttpSentimentSource(BaseSentimentSource):
    """Base for fetchers that scrape a page with a single HTTP GET."""

    DEFAULT_TIMEOUT = 15.0

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        super().__init__(timeout)
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept-Language": "en-US,en;q=0.9",
                },
            )
        return self._session

    async def _get_html(self, url: str) -> str:
        """GET a page and return its body text."""
        session = await self._get_session()
        try:
            async with session.get(url) as response:
                if response.status != 200:
                    text = await response.text()
                    raise FetchError(
                        f"{self.metadata.display_name} returned HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        url=str(response.url),
                        details={"response": text[:500]},
                    )
                return await response.text()
        except aiohttp.ClientError as e:
            raise FetchError(
                f"Network error: {e}",
                source_name=self.name,
                url=url,
            ) from e

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
