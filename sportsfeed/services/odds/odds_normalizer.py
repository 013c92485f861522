"""
Odds normalization for game cards.

Upstream odds feeds deliver one event's markets in one of two shapes:

Shape A (keyed markets, as stored on games):
{
    "markets": {
        "moneyline": {"draftkings": [{"name": "A", "price": -150}, ...]},
        "spread":    {"fanduel":    [{"name": "A", "price": -110, "point": -3.5}, ...]},
        "total":     {...}
    }
}

Shape B (The Odds API bookmaker list):
{
    "bookmakers": [
        {
            "key": "draftkings",
            "markets": [
                {"key": "h2h", "outcomes": [{"name": "A", "price": -150}, ...]}
            ]
        }
    ]
}

``normalize_markets`` always returns shape A's inner mapping with every
canonical market present for both display books. It is pure and total:
missing or malformed pieces become empty lists.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from sportsfeed.models.records import Market, Sportsbook

# The Odds API market keys -> canonical market keys
ODDS_API_MARKET_MAP = {
    "h2h": Market.MONEYLINE.value,
    "spreads": Market.SPREAD.value,
    "totals": Market.TOTAL.value,
}

CANONICAL_MARKETS = [m.value for m in Market]
DISPLAY_BOOKS = [b.value for b in Sportsbook]

QuoteList = List[Dict[str, Any]]
NormalizedMarkets = Dict[str, Dict[str, QuoteList]]


# ==================== PAYLOAD VARIANTS ====================

@dataclass(frozen=True)
class KeyedMarkets:
    """Shape A: markets -> book -> quotes."""
    markets: Dict[str, Any]


@dataclass(frozen=True)
class BookmakerList:
    """Shape B: list of bookmakers, each with a list of markets."""
    bookmakers: List[Any]


@dataclass(frozen=True)
class NoMarkets:
    """Neither shape present."""


OddsPayload = Union[KeyedMarkets, BookmakerList, NoMarkets]


def detect_payload(raw: Any) -> OddsPayload:
    """
    Tag a raw event payload with its shape.

    Any ``markets`` mapping takes precedence over ``bookmakers``, even an
    empty one.
    """
    if not isinstance(raw, dict):
        return NoMarkets()
    markets = raw.get("markets")
    if isinstance(markets, dict):
        return KeyedMarkets(markets=markets)
    bookmakers = raw.get("bookmakers")
    if isinstance(bookmakers, list) and bookmakers:
        return BookmakerList(bookmakers=bookmakers)
    return NoMarkets()


# ==================== NORMALIZATION ====================

def _copy_quotes(value: Any) -> QuoteList:
    """Shallow-copy a quote list, dropping anything that is not a dict."""
    if not isinstance(value, list):
        return []
    return [dict(quote) for quote in value if isinstance(quote, dict)]


def _empty_markets() -> NormalizedMarkets:
    return {market: {book: [] for book in DISPLAY_BOOKS} for market in CANONICAL_MARKETS}


def _from_keyed(payload: KeyedMarkets) -> NormalizedMarkets:
    result = _empty_markets()
    for market_key, books in payload.markets.items():
        if not isinstance(books, dict):
            continue
        target = result.setdefault(str(market_key), {book: [] for book in DISPLAY_BOOKS})
        for book_key, quotes in books.items():
            target[str(book_key)] = _copy_quotes(quotes)
    return result


def _from_bookmakers(payload: BookmakerList) -> NormalizedMarkets:
    result = _empty_markets()
    for bookmaker in payload.bookmakers:
        if not isinstance(bookmaker, dict) or not isinstance(bookmaker.get("key"), str):
            continue
        book_key = bookmaker["key"]
        markets = bookmaker.get("markets")
        if not isinstance(markets, list):
            continue
        for market in markets:
            if not isinstance(market, dict):
                continue
            key = market.get("key")
            canonical = ODDS_API_MARKET_MAP.get(key) if isinstance(key, str) else None
            if canonical is None:
                continue
            # first occurrence of a market per book wins
            if result[canonical].get(book_key):
                continue
            result[canonical][book_key] = _copy_quotes(market.get("outcomes"))
    return result


def normalize_markets(raw: Any) -> NormalizedMarkets:
    """
    Canonicalize one event's odds into ``market -> book -> quotes``.

    Example:
        >>> raw = {"bookmakers": [{"key": "draftkings", "markets": [
        ...     {"key": "h2h", "outcomes": [{"name": "A", "price": -150}]}]}]}
        >>> normalize_markets(raw)["moneyline"]["draftkings"]
        [{'name': 'A', 'price': -150}]
    """
    payload = detect_payload(raw)
    if isinstance(payload, KeyedMarkets):
        return _from_keyed(payload)
    if isinstance(payload, BookmakerList):
        return _from_bookmakers(payload)
    if isinstance(payload, NoMarkets):
        return _empty_markets()
    raise TypeError(f"Unhandled odds payload variant: {type(payload).__name__}")


def get_quotes(markets: NormalizedMarkets, market: str, book: str) -> QuoteList:
    """Quotes for one market at one book ([] when absent)."""
    return markets.get(market, {}).get(book, [])
