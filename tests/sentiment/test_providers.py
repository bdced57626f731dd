"""
Tests for broker page parsing and fetcher normalization.

============================================================
PURPOSE
============================================================
Exercise every page shape the fetchers understand using inline
HTML, without network or browser access.

============================================================
"""

import pytest
from unittest.mock import AsyncMock

from sentiment.exceptions import ParseError, SymbolNotFoundError
from sentiment.models import FetchFailure, FetchStrategy, FetchSuccess
from sentiment.parsing import (
    complement,
    parse_float,
    parse_int,
    parse_labelled_percentages,
    parse_percentage,
    parse_ratio_table,
    scan_text_near_symbol,
)
from sentiment.providers import (
    DukascopyHeadlessSource,
    DukascopySource,
    FxssiHeadlessSource,
    FxssiSource,
    MyFxBookHeadlessSource,
    MyFxBookSource,
)
from sentiment.providers.dukascopy import parse_swfx_table
from sentiment.providers.fxssi import parse_current_ratio
from sentiment.providers.myfxbook import parse_outlook_page, parse_outlook_scripts


# ============================================================
# FIXTURES
# ============================================================

OUTLOOK_PAGE = """
<html><body>
<div class="outlookSymbolPage">
  <div class="long">
    <span class="percentage">62.5%</span>
    <span class="positions">14,210 positions</span>
  </div>
  <div class="short">
    <span class="percentage">37.5%</span>
    <span class="positions">8,526 positions</span>
  </div>
  <div class="volume">1,234.56 lots</div>
</div>
</body></html>
"""

OUTLOOK_SCRIPT_PAGE = """
<html><head>
<script>var tracking = {long: 1};</script>
<script>
  var outlookData = {"symbol": "EURUSD", "long": 41.0, "short": 59.0};
</script>
</head><body></body></html>
"""

SWFX_PAGE = """
<table class="swfx-sentiment-table">
  <tr><th>Instrument</th><th>Long</th><th>Short</th></tr>
  <tr><td>EUR/USD EURUSD</td><td class="long-percentage">48.2%</td><td class="short-percentage">51.8%</td></tr>
  <tr><td>XAUUSD</td><td class="long-percentage">71.4%</td><td class="short-percentage"></td></tr>
</table>
"""

RATIO_PAGE = """
<table class="sentiment-table">
  <tr><th>GBPUSD</th><td>Avg</td><td>36%</td><td>64%</td></tr>
  <tr><th>XAUUSD</th><td>Avg</td><td>58.5%</td><td>41.5%</td></tr>
</table>
"""


# ============================================================
# PARSING HELPERS
# ============================================================

class TestParsingHelpers:

    def test_parse_percentage(self):
        assert parse_percentage("Long 62.5% of traders") == 62.5
        assert parse_percentage("no numbers") is None
        assert parse_percentage("150%") is None
        assert parse_percentage(None) is None

    def test_parse_int_and_float(self):
        assert parse_int("14,210 positions") == 14210
        assert parse_int("") is None
        assert parse_float("1,234.56 lots") == 1234.56
        assert parse_float("1.2.3") is None

    def test_complement_is_clamped(self):
        assert complement(62.5) == 37.5
        assert complement(120.0) == 0.0

    def test_labelled_percentages(self):
        long_pct, short_pct = parse_labelled_percentages("Short 30% ... Long 70%")

        assert long_pct == 70.0
        assert short_pct == 30.0

    def test_scan_text_near_symbol(self):
        text = "Header 99% " + "x" * 300 + " XAUUSD buyers 57%"

        assert scan_text_near_symbol(text, "XAUUSD") == 57.0
        assert scan_text_near_symbol(text, "EURUSD") is None

    def test_parse_ratio_table(self):
        assert parse_ratio_table(RATIO_PAGE, "XAUUSD") == 58.5
        assert parse_ratio_table(RATIO_PAGE, "USDJPY") is None


# ============================================================
# MYFXBOOK
# ============================================================

class TestMyFxBook:

    def test_outlook_page(self):
        parsed = parse_outlook_page(OUTLOOK_PAGE)

        assert parsed["long_percentage"] == 62.5
        assert parsed["short_percentage"] == 37.5
        assert parsed["long_positions"] == 14210
        assert parsed["short_positions"] == 8526
        assert parsed["volume"] == 1234.56

    def test_outlook_page_text_fallback(self):
        parsed = parse_outlook_page("<div>nothing</div>", text="Long traders 55% Short 45%")

        assert parsed["long_percentage"] == 55.0
        assert parsed["short_percentage"] == 45.0
        assert parsed["long_positions"] is None

    def test_outlook_scripts(self):
        parsed = parse_outlook_scripts(OUTLOOK_SCRIPT_PAGE)

        assert parsed == {"long_percentage": 41.0, "short_percentage": 59.0}

    def test_outlook_scripts_missing(self):
        parsed = parse_outlook_scripts("<html><script>var x = 1;</script></html>")

        assert parsed["long_percentage"] is None

    def test_headless_normalize_keeps_positions(self):
        source = MyFxBookHeadlessSource()

        reading = source._normalize({"html": OUTLOOK_PAGE, "text": ""}, "XAUUSD")

        assert reading.source == "MyFxBook"
        assert reading.strategy is FetchStrategy.HEADLESS
        assert reading.long_positions == 14210
        assert reading.volume == 1234.56

    def test_simple_normalize_raises_parse_error(self):
        with pytest.raises(ParseError):
            MyFxBookSource()._normalize({"html": "<html></html>"}, "XAUUSD")

    @pytest.mark.asyncio
    async def test_fetch_uses_outlook_url(self):
        source = MyFxBookSource()
        source._get_html = AsyncMock(return_value=OUTLOOK_SCRIPT_PAGE)

        result = await source.fetch("EURUSD")

        assert isinstance(result, FetchSuccess)
        assert result.reading.long_percentage == 41.0
        source._get_html.assert_awaited_once_with(
            "https://www.myfxbook.com/community/outlook/EURUSD"
        )


# ============================================================
# DUKASCOPY
# ============================================================

class TestDukascopy:

    def test_swfx_table_both_sides(self):
        assert parse_swfx_table(SWFX_PAGE, "EURUSD") == (48.2, 51.8)

    def test_swfx_table_missing_side_is_complement(self):
        long_pct, short_pct = parse_swfx_table(SWFX_PAGE, "XAUUSD")

        assert long_pct == 71.4
        assert short_pct == pytest.approx(28.6)

    def test_swfx_unknown_symbol(self):
        assert parse_swfx_table(SWFX_PAGE, "USDJPY", text="") is None

    def test_headless_symbol_not_found(self):
        with pytest.raises(SymbolNotFoundError):
            DukascopyHeadlessSource()._normalize({"html": SWFX_PAGE, "text": ""}, "USDJPY")

    @pytest.mark.asyncio
    async def test_simple_fetch_reports_missing_symbol_as_failure(self):
        source = DukascopySource()
        source._get_html = AsyncMock(return_value="<table></table>")

        result = await source.fetch("XAUUSD")

        assert isinstance(result, FetchFailure)
        assert isinstance(result.error, SymbolNotFoundError)


# ============================================================
# FXSSI
# ============================================================

class TestFxssi:

    def test_current_ratio_table(self):
        assert parse_current_ratio(RATIO_PAGE, "GBPUSD") == 36.0

    def test_current_ratio_text_fallback(self):
        assert parse_current_ratio("<p></p>", "XAUUSD", text="XAUUSD 61% buyers") == 61.0

    def test_headless_normalize(self):
        reading = FxssiHeadlessSource()._normalize(
            {"html": RATIO_PAGE, "text": ""}, "XAUUSD"
        )

        assert reading.long_percentage == 58.5
        assert reading.short_percentage == 41.5
        assert reading.strategy is FetchStrategy.HEADLESS

    def test_simple_normalize(self):
        reading = FxssiSource()._normalize({"html": RATIO_PAGE}, "GBPUSD")

        assert reading.long_percentage == 36.0
        assert reading.short_percentage == 64.0
        assert reading.strategy is FetchStrategy.SIMPLE_HTTP
