"""
MyFxBook Community Outlook.

URL: https://www.myfxbook.com/community/outlook/<SYMBOL>

The only source that also reports open position counts and volume.
The rendered page carries them in .outlookSymbolPage; the raw HTML only
has them inside inline scripts.
"""

import logging
import re
from typing import Any, Optional

from ..exceptions import ParseError
from ..models import FetchStrategy, SentimentReading, SourceMetadata
from ..parsing import (
    complement,
    make_soup,
    parse_float,
    parse_int,
    parse_labelled_percentages,
    parse_percentage,
)
from .headless import HeadlessSentimentSource
from .http import HttpSentimentSource


logger = logging.getLogger(__name__)


SOURCE_NAME = "MyFxBook"
OUTLOOK_URL = "https://www.myfxbook.com/community/outlook/{symbol}"
OUTLOOK_SELECTOR = ".outlookSymbolPage"

SCRIPT_LONG_PATTERN = re.compile(r"long[\"\s:]+(\d+\.?\d*)", re.IGNORECASE)
SCRIPT_SHORT_PATTERN = re.compile(r"short[\"\s:]+(\d+\.?\d*)", re.IGNORECASE)


def _select_text(soup: Any, selector: str) -> Optional[str]:
    element = soup.select_one(selector)
    return element.get_text(" ", strip=True) if element is not None else None


def parse_outlook_page(html: str, text: Optional[str] = None) -> dict[str, Any]:
    """
    Parse a rendered outlook page.

    Falls back to 'Long ... NN%' / 'Short ... NN%' in the page text when
    the outlook block is missing. Zero is treated as not found.
    """
    soup = make_soup(html)

    long_pct = parse_percentage(_select_text(soup, f"{OUTLOOK_SELECTOR} .long .percentage"))
    short_pct = parse_percentage(_select_text(soup, f"{OUTLOOK_SELECTOR} .short .percentage"))
    long_positions = parse_int(_select_text(soup, f"{OUTLOOK_SELECTOR} .long .positions"))
    short_positions = parse_int(_select_text(soup, f"{OUTLOOK_SELECTOR} .short .positions"))
    volume = parse_float(_select_text(soup, f"{OUTLOOK_SELECTOR} .volume"))

    if not long_pct or not short_pct:
        text_long, text_short = parse_labelled_percentages(
            text if text is not None else soup.get_text(" ", strip=True)
        )
        long_pct = text_long or long_pct
        short_pct = text_short or short_pct
        if long_pct and not short_pct:
            short_pct = complement(long_pct)

    return {
        "long_percentage": long_pct or None,
        "short_percentage": short_pct or None,
        "long_positions": long_positions or None,
        "short_positions": short_positions or None,
        "volume": volume or None,
    }


def parse_outlook_scripts(html: str) -> dict[str, Any]:
    """
    Pull long/short figures out of inline scripts in the raw page.

    Both sides must be present in the same script block.
    """
    soup = make_soup(html)
    for script in soup.find_all("script"):
        content = script.string or script.get_text() or ""
        lowered = content.lower()
        if "outlook" not in lowered and "sentiment" not in lowered:
            continue
        long_match = SCRIPT_LONG_PATTERN.search(content)
        short_match = SCRIPT_SHORT_PATTERN.search(content)
        if long_match and short_match:
            return {
                "long_percentage": float(long_match.group(1)),
                "short_percentage": float(short_match.group(1)),
            }
    return {"long_percentage": None, "short_percentage": None}


class MyFxBookHeadlessSource(HeadlessSentimentSource):
    """MyFxBook outlook via a rendered page."""

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=SOURCE_NAME,
            display_name="MyFxBook Community Outlook",
            strategy=FetchStrategy.HEADLESS,
            base_url="https://www.myfxbook.com/community/outlook",
            timeout_seconds=self.timeout,
            reports_positions=True,
            tags=["forex", "retail", "positions"],
        )

    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        return await self._load_page(
            OUTLOOK_URL.format(symbol=symbol),
            wait_selector=OUTLOOK_SELECTOR,
        )

    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        parsed = parse_outlook_page(raw_data.get("html", ""), raw_data.get("text"))
        if not parsed["long_percentage"] and not parsed["short_percentage"]:
            raise ParseError(
                f"No percentages parsed for {symbol}",
                source_name=self.name,
                raw_data=raw_data.get("text"),
            )
        return self._build_reading(
            symbol,
            parsed["long_percentage"],
            parsed["short_percentage"],
            long_positions=parsed["long_positions"],
            short_positions=parsed["short_positions"],
            volume=parsed["volume"],
        )


class MyFxBookSource(HttpSentimentSource):
    """MyFxBook outlook via a plain GET of the page."""

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=SOURCE_NAME,
            display_name="MyFxBook Community Outlook",
            strategy=FetchStrategy.SIMPLE_HTTP,
            base_url="https://www.myfxbook.com/community/outlook",
            timeout_seconds=self.timeout,
            reports_positions=True,
            tags=["forex", "retail"],
        )

    async def _fetch_raw(self, symbol: str) -> dict[str, Any]:
        html = await self._get_html(OUTLOOK_URL.format(symbol=symbol))
        return {"html": html}

    def _normalize(self, raw_data: dict[str, Any], symbol: str) -> SentimentReading:
        parsed = parse_outlook_scripts(raw_data.get("html", ""))
        if parsed["long_percentage"] is None or parsed["short_percentage"] is None:
            raise ParseError(
                f"Could not extract outlook data for {symbol}",
                source_name=self.name,
                raw_data=raw_data.get("html"),
            )
        return self._build_reading(
            symbol,
            parsed["long_percentage"],
            parsed["short_percentage"],
        )
