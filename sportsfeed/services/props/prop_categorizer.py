"""
Prop categorization and confidence filtering for the props board.

Props arrive from several feeds with inconsistent field names. This module:
- maps each raw prop onto a Prop record (sport, book, player, market, odds...)
- assigns a category by keyword match on the market text
- keeps only props whose confidence clears the display threshold

Confidence may be expressed on a 0-1 or a 0-100 scale; values above 1 are
taken as percentages.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sportsfeed.core.config import settings
from sportsfeed.core.logging import get_logger
from sportsfeed.models.records import Prop
from sportsfeed.utils.classifier import Rule, classify, keyword_rule

logger = get_logger(__name__)

DEFAULT_CATEGORY = "All Props"
DEFAULT_CONFIDENCE_THRESHOLD = 55.0

# Ordered: first category whose keywords match the market wins
PROP_CATEGORIES: List[Rule] = [
    # Offensive
    keyword_rule("Passing", ["passing", "pass", "completion", "attempt"]),
    keyword_rule("Rushing", ["rushing", "rush", "carries", "attempt"]),
    keyword_rule("Receiving", ["receiving", "reception", "catch", "target"]),
    # Scoring
    keyword_rule("Anytime TD Scorer", ["touchdown", "td scorer", "anytime td", "score"]),
    keyword_rule("Multiple TDs", ["multiple td", "2+ td", "two touchdown"]),
    # Combined
    keyword_rule("Scrimmage Yards", ["scrimmage", "total yards", "rush + rec"]),
    # Special teams
    keyword_rule("Kicker Props", ["field goal", "fg made", "kicking points", "extra point"]),
    # Defensive
    keyword_rule("Defensive - Sacks", ["sack"]),
    keyword_rule("Defensive - Tackles", ["tackle", "assist", "solo tackle"]),
    keyword_rule("Defensive - Turnovers", ["interception", "int", "forced fumble", "fumble recovery"]),
    keyword_rule("Defensive - TDs", ["defensive touchdown", "pick six", "fumble return"]),
    keyword_rule("Defensive - Other", ["safety", "defensive"]),
]

# (canonical sport, substrings of the upper-cased value, exact aliases)
SPORT_RULES = [
    ("NFL", ["NFL"], ["FOOTBALL"]),
    ("CFB", ["CFB"], ["COLLEGE FOOTBALL"]),
    ("NBA", ["NBA"], ["BASKETBALL"]),
    ("MLB", ["MLB"], ["BASEBALL"]),
    ("UFC", ["UFC"], ["MMA"]),
    ("GOLF", ["GOLF"], ["PGA"]),
]
DEFAULT_SPORT = "NFL"

# Field aliases, checked in order
MARKET_FIELDS = ("market", "prop_type", "Market", "bet_type")
PLAYER_FIELDS = ("player", "name", "player_name", "Player")
SPORT_FIELDS = ("sport", "league", "Sport", "SPORT")
BOOK_FIELDS = ("book", "bookmaker", "sportsbook")
ODDS_FIELDS = ("odds", "dk_odds", "fd_odds", "price", "american_odds")
CONFIDENCE_FIELDS = ("confidence", "confidence_score")
EDGE_FIELDS = ("edge", "Edge", "ev", "expected_value")
TEAM_FIELDS = ("team", "Team")
GAME_FIELDS = ("game", "matchup", "Game")
LINE_FIELDS = ("line", "point")


def _first(raw: Dict[str, Any], fields: Sequence[str]) -> Any:
    """First present, non-empty alias value (0 counts as present)."""
    for name in fields:
        value = raw.get(name)
        if value is None or value == "" or value is False:
            continue
        return value
    return None


def _first_truthy(raw: Dict[str, Any], fields: Sequence[str]) -> Any:
    """First alias with a truthy value; a 0 confidence or odds falls through to the next alias."""
    for name in fields:
        value = raw.get(name)
        if value:
            return value
    return None


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# ==================== CATEGORY ====================

def categorize_prop(market: Optional[str], rules: Sequence[Rule] = PROP_CATEGORIES) -> str:
    """
    Category for a prop market string.

    Examples:
        >>> categorize_prop("Player Passing Yards")
        'Passing'
        >>> categorize_prop("Longest Punt")
        'All Props'
    """
    return classify(rules, market, default=DEFAULT_CATEGORY)


# ==================== CONFIDENCE ====================

def normalize_confidence(value: Any) -> float:
    """Put a confidence value on the 0-100 scale (non-numeric -> 0)."""
    confidence = _to_float(value, default=0.0)
    return confidence if confidence > 1 else confidence * 100


def passes_confidence(prop: Any, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> bool:
    """
    True when the prop's confidence is at least ``threshold`` (0-100 scale).

    Accepts a Prop or a raw dict (``confidence`` / ``confidence_score``).
    """
    if isinstance(prop, Prop):
        raw_confidence = prop.confidence
    elif isinstance(prop, dict):
        raw_confidence = _first_truthy(prop, CONFIDENCE_FIELDS)
    else:
        return False
    return normalize_confidence(raw_confidence) >= threshold


def filter_by_confidence(props: Optional[Iterable[Any]], threshold: Optional[float] = None) -> List[Any]:
    """Keep props at or above the threshold (default: PROP_CONFIDENCE_THRESHOLD)."""
    if props is None:
        return []
    if threshold is None:
        threshold = settings.PROP_CONFIDENCE_THRESHOLD
    return [prop for prop in props if passes_confidence(prop, threshold)]


# ==================== FIELD NORMALIZATION ====================

def normalize_sport(sport: Any) -> str:
    """
    Canonical sport code.

    Examples:
        >>> normalize_sport("americanfootball_nfl")
        'NFL'
        >>> normalize_sport("mma")
        'UFC'
    """
    if not sport:
        return DEFAULT_SPORT
    upper = str(sport).upper().strip()
    for canonical, substrings, aliases in SPORT_RULES:
        if any(s in upper for s in substrings) or upper in aliases:
            return canonical
    return upper


def normalize_book(book: Any) -> Optional[str]:
    """Display name for DraftKings/FanDuel; other books pass through."""
    if not book:
        return None
    lower = str(book).lower().strip()
    if "draft" in lower or lower == "dk":
        return "DraftKings"
    if "fan" in lower or lower == "fd":
        return "FanDuel"
    return str(book)


def extract_odds(raw: Dict[str, Any]) -> Optional[float]:
    """First non-zero odds alias as a number, or None."""
    return _to_float(_first_truthy(raw, ODDS_FIELDS), default=None)


def normalize_prop(raw: Dict[str, Any]) -> Prop:
    """Map one raw prop from any feed onto a Prop record."""
    market = _first(raw, MARKET_FIELDS) or "Unknown Market"
    market = str(market)
    return Prop(
        sport=normalize_sport(_first(raw, SPORT_FIELDS)),
        book=normalize_book(_first(raw, BOOK_FIELDS)),
        player=str(_first(raw, PLAYER_FIELDS) or "Unknown"),
        team=str(_first(raw, TEAM_FIELDS) or ""),
        game=str(_first(raw, GAME_FIELDS) or ""),
        market=market,
        category=categorize_prop(market),
        odds=extract_odds(raw),
        line=_to_float(_first(raw, LINE_FIELDS), default=None),
        confidence=_to_float(_first_truthy(raw, CONFIDENCE_FIELDS), default=0.0),
        edge=_to_float(_first(raw, EDGE_FIELDS), default=0.0),
    )


def normalize_props(raws: Optional[Iterable[Any]]) -> List[Prop]:
    """
    Normalize a batch of raw props.

    Non-dict entries and props without odds are dropped.
    """
    if raws is None:
        return []
    props = []
    dropped = 0
    for raw in raws:
        if not isinstance(raw, dict):
            dropped += 1
            continue
        prop = normalize_prop(raw)
        if prop.odds is None:
            dropped += 1
            continue
        props.append(prop)
    if dropped:
        logger.debug(f"Dropped {dropped} props without usable odds")
    return props
