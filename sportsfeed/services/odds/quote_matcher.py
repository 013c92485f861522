"""
Quote lookup and display formatting for game cards.

Quote arrays are not always name-tagged, but they are reliably ordered
away-then-home (and Over-then-Under for totals), so lookups fall back to
position when name matching fails.
"""
from typing import Any, Dict, List, Optional, Sequence

from sportsfeed.models.records import OddsQuote
from sportsfeed.services.odds.odds_normalizer import (
    DISPLAY_BOOKS,
    NormalizedMarkets,
    get_quotes,
    normalize_markets,
)

AWAY_INDEX = 0
HOME_INDEX = 1
TOTAL_SIDE_INDEX = {"Over": 0, "Under": 1}


def _at(quotes: Sequence[Any], index: int) -> Optional[Dict[str, Any]]:
    if index < len(quotes) and isinstance(quotes[index], dict):
        return quotes[index]
    return None


def find_quote(
    quotes: Optional[Sequence[Dict[str, Any]]],
    team_name: Optional[str],
    away_team: Optional[str] = None,
    home_team: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Find the quote for a team.

    1. exact match on ``quote["name"] == team_name``
    2. otherwise, if team_name is the away team, quotes[0]; if the home
       team, quotes[1]

    Returns None when neither rule applies. Inputs are never mutated.

    Examples:
        >>> find_quote([{"price": -150}, {"price": 130}], "Lions", "Lions", "Bears")
        {'price': -150}
        >>> find_quote([{"price": -150}, {"price": 130}], "Bears", "Lions", "Bears")
        {'price': 130}
    """
    if not quotes:
        return None

    for quote in quotes:
        if isinstance(quote, dict) and team_name is not None and quote.get("name") == team_name:
            return quote

    if team_name is None:
        return None
    if away_team is not None and team_name == away_team:
        return _at(quotes, AWAY_INDEX)
    if home_team is not None and team_name == home_team:
        return _at(quotes, HOME_INDEX)
    return None


def find_total_side(quotes: Optional[Sequence[Dict[str, Any]]], side: str) -> Optional[Dict[str, Any]]:
    """Find the Over or Under quote, falling back to position (Over first)."""
    if not quotes:
        return None
    for quote in quotes:
        if isinstance(quote, dict) and quote.get("name") == side:
            return quote
    index = TOTAL_SIDE_INDEX.get(side)
    return _at(quotes, index) if index is not None else None


def format_odds(price: Any) -> str:
    """
    Format an American price for display.

    Examples:
        >>> format_odds(150)
        '+150'
        >>> format_odds(-150)
        '-150'
        >>> format_odds(None)
        '-'
    """
    if price is None or isinstance(price, bool):
        return "-"
    try:
        number = float(price)
    except (TypeError, ValueError):
        return "-"
    if number != number or number == 0:  # NaN or zero
        return "-"
    text = str(int(number)) if number.is_integer() else str(number)
    return f"+{text}" if number > 0 else text


def format_point(point: Any, signed: bool = True) -> str:
    """Format a spread/total line ('-' when missing)."""
    if point is None or isinstance(point, bool):
        return "-"
    try:
        number = float(point)
    except (TypeError, ValueError):
        return "-"
    text = str(int(number)) if number.is_integer() else str(number)
    return f"+{text}" if signed and number > 0 else text


def to_quote(raw: Optional[Dict[str, Any]]) -> OddsQuote:
    """Coerce a raw quote dict into an OddsQuote (missing fields -> None)."""
    if not raw:
        return OddsQuote()
    name = raw.get("name")
    price = raw.get("price")
    point = raw.get("point")
    try:
        price = int(price) if price is not None and not isinstance(price, bool) else None
    except (TypeError, ValueError):
        price = None
    try:
        point = float(point) if point is not None and not isinstance(point, bool) else None
    except (TypeError, ValueError):
        point = None
    return OddsQuote(name=name if isinstance(name, str) else None, price=price, point=point)


def _line(raw: Optional[Dict[str, Any]], signed_point: bool = True) -> Dict[str, Any]:
    quote = to_quote(raw)
    line = quote.to_dict()
    line["display"] = format_odds(quote.price)
    if quote.point is not None:
        line["point_display"] = format_point(quote.point, signed=signed_point)
    return line


def build_book_lines(
    markets: NormalizedMarkets,
    book: str,
    away_team: str,
    home_team: str,
) -> Dict[str, Dict[str, Any]]:
    """Moneyline, spread and total display lines for one book."""
    moneyline = get_quotes(markets, "moneyline", book)
    spread = get_quotes(markets, "spread", book)
    total = get_quotes(markets, "total", book)
    return {
        "moneyline": {
            "away": _line(find_quote(moneyline, away_team, away_team, home_team)),
            "home": _line(find_quote(moneyline, home_team, away_team, home_team)),
        },
        "spread": {
            "away": _line(find_quote(spread, away_team, away_team, home_team)),
            "home": _line(find_quote(spread, home_team, away_team, home_team)),
        },
        "total": {
            "over": _line(find_total_side(total, "Over"), signed_point=False),
            "under": _line(find_total_side(total, "Under"), signed_point=False),
        },
    }


def build_game_lines(
    raw_event: Dict[str, Any],
    away_team: str,
    home_team: str,
    books: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Normalize an event's odds and resolve per-book display lines.

    Returns:
        {"markets": <normalized markets>, "books": {book: <lines>}}
    """
    markets = normalize_markets(raw_event)
    return {
        "markets": markets,
        "books": {
            book: build_book_lines(markets, book, away_team, home_team)
            for book in (books or DISPLAY_BOOKS)
        },
    }
