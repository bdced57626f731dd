"""
Dukascopy SWFX Sentiment Index.

URL: https://www.dukascopy.com/swiss/english/marketwatch/sentiment/

One page lists every instrument; the symbol's row is located by its
first cell.
"""

import logging
from typing import Any, Optional

from ..exceptions import SymbolNotFoundError
from ..models import FetchStrategy, SentimentReading, SourceMetadata
from ..parsing import (
    complement,
    make_soup,
    parse_percentage,
    parse_ratio_table,
    scan_text_near_symbol,
)
from .headless import HeadlessSentimentSource
from .http import HttpSentimentSource


logger = logging.getLogger(__name__)


SOURCE_NAME = "Dukascopy"
SENTIMENT_URL = "https://www.dukascopy.com/swiss/english/marketwatch/sentiment/"
TABLE_SELECTOR = ".swfx-sentiment-table"


def parse_swfx_table(
    html: str,
    symbol: str,
    text: Optional[str] = None,
) -> Optional[tuple[float, float]]:
    """
    (long, short) for symbol from the rendered SWFX table.

    Uses the dedicated long/short cells when present; a missing side is
    the complement of the other. Falls back to the first percentage near
    the symbol in page text. None if the symbol is not on the page.
    """
    soup = make_soup(html)
    for row in soup.select(f"{TABLE_SELECTOR} tr"):
        first = row.find("td")
        if first is None or symbol not in first.get_text(" ", strip=True):
            continue
        long_cell = row.select_one("td.long-percentage")
        short_cell = row.select_one("td.short-percentage")
        long_pct = parse_percentage(long_cell.get_text()) if long_cell else None
        short_pct = parse_percentage(short_cell.get_text()) if short_cell else None
        if long_pct is not None or short_pct is not None:
            if long_pct is None:
                long_pct = complement(short_pct)
            if short_pct is None:
                short_pct = complement(long_pct)
            return long_pct, short_pct

    page_text = text if text is not None else soup.get_text(" ", strip=True)
    nearby = scan_text_near_symbol(page_text, symbol)
    if nearby is not None:
        return nearby, complement(nearby)
    return None


class DukascopyHeadlessSource(HeadlessSentimentSource):
    """Dukascopy SWFX sentiment via a rendered page."""

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=SOURCE_NAME,
            display_name="Dukascopy SWFX",
            strategy=FetchStrategy.HEADLESS,
            base_url=SENTIMENT_URL,
            timeout_seconds=self.timeout,
            tags=["forex", "swfx"],
        )

    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        return await self._load_page(SENTIMENT_URL, wait_selector=TABLE_SELECTOR)

    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        parsed = parse_swfx_table(raw_data.get("html", ""), symbol, raw_data.get("text"))
        if parsed is None:
            raise SymbolNotFoundError(symbol, source_name=self.name)
        long_pct, short_pct = parsed
        return self._build_reading(symbol, long_pct, short_pct)


class DukascopySource(HttpSentimentSource):
    """Dukascopy SWFX sentiment via a plain GET."""

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=SOURCE_NAME,
            display_name="Dukascopy SWFX",
            strategy=FetchStrategy.SIMPLE_HTTP,
            base_url=SENTIMENT_URL,
            timeout_seconds=self.timeout,
            tags=["forex", "swfx"],
        )

    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        return {"html": await self._get_html(SENTIMENT_URL)}

    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        long_pct = parse_ratio_table(raw_data.get("html", ""), symbol)
        if long_pct is None:
            raise SymbolNotFoundError(symbol, source_name=self.name)
        return self._build_reading(symbol, long_pct)
