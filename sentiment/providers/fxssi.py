"""
FXSSI Current Ratio (aggregated across several brokers).

URL: https://fxssi.com/tools/current-ratio
"""

import logging
from typing import Any, Optional

from ..exceptions import SymbolNotFoundError
from ..models import FetchStrategy, SentimentReading, SourceMetadata
from ..parsing import (
    find_symbol_row_cells,
    first_percentage_in_cells,
    make_soup,
    parse_ratio_table,
    scan_text_near_symbol,
)
from .headless import HeadlessSentimentSource
from .http import HttpSentimentSource


logger = logging.getLogger(__name__)


SOURCE_NAME = "FXSSI"
RATIO_URL = "https://fxssi.com/tools/current-ratio"
TABLE_SELECTOR = ".sentiment-table"


def parse_current_ratio(
    html: str,
    symbol: str,
    text: Optional[str] = None,
) -> Optional[float]:
    """
    Long percentage for symbol from the rendered ratio page.

    Table row first (header cells count as the symbol cell), then the
    first percentage near the symbol in page text.
    """
    soup = make_soup(html)
    cells = find_symbol_row_cells(soup, symbol, f"{TABLE_SELECTOR} tr, table tr")
    if cells is not None:
        value = first_percentage_in_cells(cells)
        if value is not None:
            return value

    page_text = text if text is not None else soup.get_text(" ", strip=True)
    return scan_text_near_symbol(page_text, symbol)


class FxssiHeadlessSource(HeadlessSentimentSource):
    """FXSSI current ratio via a rendered page."""

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=SOURCE_NAME,
            display_name="FXSSI Current Ratio",
            strategy=FetchStrategy.HEADLESS,
            base_url=RATIO_URL,
            timeout_seconds=self.timeout,
            tags=["forex", "aggregator"],
        )

    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        return await self._load_page(RATIO_URL, wait_selector=TABLE_SELECTOR)

    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        long_pct = parse_current_ratio(raw_data.get("html", ""), symbol, raw_data.get("text"))
        if long_pct is None:
            raise SymbolNotFoundError(symbol, source_name=self.name)
        return self._build_reading(symbol, long_pct)


class FxssiSource(HttpSentimentSource):
    """FXSSI current ratio via a plain GET."""

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=SOURCE_NAME,
            display_name="FXSSI Current Ratio",
            strategy=FetchStrategy.SIMPLE_HTTP,
            base_url=RATIO_URL,
            timeout_seconds=self.timeout,
            tags=["forex", "aggregator"],
        )

    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        return {"html": await self._get_html(RATIO_URL)}

    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        long_pct = parse_ratio_table(raw_data.get("html", ""), symbol)
        if long_pct is None:
            raise SymbolNotFoundError(symbol, source_name=self.name)
        return self._build_reading(symbol, long_pct)
