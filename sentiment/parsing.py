"""
Parsing helpers shared by broker fetchers.

Pure functions over HTML or page text. Both the simple HTTP and the
headless fetchers end up here, so page-shape handling is testable
without network access.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup


PERCENT_PATTERN = re.compile(r"(\d{1,3}(?:\.\d+)?)%")
SNIPPET_RADIUS = 200


def parse_percentage(text: Optional[str]) -> Optional[float]:
    """First 'NN.N%' value in text, or None."""
    if not text:
        return None
    match = PERCENT_PATTERN.search(text)
    if not match:
        return None
    value = float(match.group(1))
    if value > 100.0:
        return None
    return value


def parse_int(text: Optional[str]) -> Optional[int]:
    """Digits of text as an int ('12,345 positions' -> 12345)."""
    if not text:
        return None
    digits = re.sub(r"[^0-9]", "", text)
    return int(digits) if digits else None


def parse_float(text: Optional[str]) -> Optional[float]:
    """Numeric part of text as a float ('1,234.5 lots' -> 1234.5)."""
    if not text:
        return None
    cleaned = re.sub(r"[^0-9.]", "", text)
    if not cleaned or cleaned.count(".") > 1:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def complement(percentage: float) -> float:
    """100 - percentage, clamped to [0, 100]."""
    return max(0.0, min(100.0, 100.0 - percentage))


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def find_symbol_row_cells(
    soup: BeautifulSoup,
    symbol: str,
    row_selector: str = "table tr",
) -> Optional[list]:
    """
    Cells of the first table row whose leading cell mentions symbol.

    Returns the row's <td> elements, or None if no row matches.
    """
    for row in soup.select(row_selector):
        first = row.find(["td", "th"])
        if first is None:
            continue
        if symbol in first.get_text(" ", strip=True):
            return row.find_all("td")
    return None


def first_percentage_in_cells(cells: list) -> Optional[float]:
    for cell in cells:
        value = parse_percentage(cell.get_text(" ", strip=True))
        if value is not None:
            return value
    return None


def scan_text_near_symbol(
    text: Optional[str],
    symbol: str,
    radius: int = SNIPPET_RADIUS,
) -> Optional[float]:
    """
    First percentage within radius characters of the symbol in page text.

    Last-resort extraction when table markup is missing.
    """
    if not text:
        return None
    idx = text.find(symbol)
    if idx == -1:
        return None
    snippet = text[max(0, idx - radius):min(len(text), idx + radius)]
    return parse_percentage(snippet)


def parse_labelled_percentages(text: Optional[str]) -> tuple[Optional[float], Optional[float]]:
    """'Long ... 62%' / 'Short ... 38%' from free text."""
    if not text:
        return None, None
    long_match = re.search(r"long[^0-9]*(\d{1,3}(?:\.\d+)?)%", text, re.IGNORECASE)
    short_match = re.search(r"short[^0-9]*(\d{1,3}(?:\.\d+)?)%", text, re.IGNORECASE)
    long_pct = float(long_match.group(1)) if long_match else None
    short_pct = float(short_match.group(1)) if short_match else None
    return long_pct, short_pct


def parse_ratio_table(
    html: str,
    symbol: str,
    row_selector: str = "table tr, .sentiment-table tr",
) -> Optional[float]:
    """First percentage in the symbol's table row, taken as the long side."""
    cells = find_symbol_row_cells(make_soup(html), symbol, row_selector)
    if cells is None:
        return None
    return first_percentage_in_cells(cells)
