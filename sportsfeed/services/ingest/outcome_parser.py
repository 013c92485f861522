"""
Outcome parser for ESPN MMA summary payloads.

The summary payload carries the authoritative result as free text in
``notes[].headline`` (e.g. "R2 TKO (Punches) 2:14"), the winner as a boolean
flag on each competitor, and per-fighter statistics as display strings
("18 of 27").

Method detection is a rule table evaluated per note. TKO is listed before
KO because "TKO" contains "KO"; "Technical Knockout" is a TKO for the same
reason.

Across notes, method/round/time are three independent passes. Which
matching note wins is explicit (NotePrecedence):

- LAST_MATCH (default): each matching note overwrites the previous one;
  later notes are assumed to be the more final ones.
- FIRST_MATCH: the first note that yields a value is kept.
"""
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from sportsfeed.core.logging import get_logger
from sportsfeed.models.records import (
    DEFAULT_FIGHT_ORDER,
    DEFAULT_ROUND_FINISHED,
    DEFAULT_TIME_FINISHED,
    Method,
    Outcome,
    ParsedFight,
    Participant,
    ParticipantStat,
)
from sportsfeed.utils.classifier import Rule, classify, keyword_rule

logger = get_logger(__name__)


class NotePrecedence(str, Enum):
    LAST_MATCH = "last_match"
    FIRST_MATCH = "first_match"


# Ordered: first rule that matches a note decides that note's method
METHOD_RULES: List[Rule] = [
    keyword_rule(Method.TKO, ["TKO", "Technical Knockout"], case_sensitive=True),
    keyword_rule(Method.KO, ["KO", "Knockout"], case_sensitive=True),
    keyword_rule(Method.SUBMISSION, ["Submission"], case_sensitive=True),
    keyword_rule(Method.DECISION, ["Decision"], case_sensitive=True),
]

ROUND_PATTERN = re.compile(r"R(?:ound\s*)?(\d+)", re.IGNORECASE)
TIME_PATTERN = re.compile(r"(\d+):(\d+)")
LEADING_INT_PATTERN = re.compile(r"\s*([+-]?\d+)")

# (substring of lowercased stat name, field prefix or field, kind)
# kind: "pair" -> "X of Y" into <prefix>_landed/<prefix>_attempted
#       "count" -> whole value as an integer
#       "clock" -> "m:ss" as seconds
STAT_RULES = [
    ("significant strikes", "significant_strikes", "pair"),
    ("total strikes", "total_strikes", "pair"),
    ("takedowns", "takedowns", "pair"),
    ("submission", "submission_attempts", "count"),
    ("knockdown", "knockdowns", "count"),
    ("control", "control_time_seconds", "clock"),
]


# ==================== TEXT HELPERS ====================

def parse_int(value: Any) -> int:
    """
    Parse the leading integer of a display value; 0 when there is none.

    Examples:
        >>> parse_int("18")
        18
        >>> parse_int(" 27 ")
        27
        >>> parse_int("--")
        0
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return 0
    match = LEADING_INT_PATTERN.match(value)
    return int(match.group(1)) if match else 0


def parse_landed_of_attempted(value: Any) -> tuple[int, int]:
    """Split an "X of Y" display value into (landed, attempted)."""
    if not isinstance(value, str):
        return 0, 0
    parts = value.split(" of ")
    landed = parse_int(parts[0])
    attempted = parse_int(parts[1]) if len(parts) > 1 else 0
    return landed, attempted


def parse_clock_seconds(value: Any) -> int:
    """Convert "m:ss" into seconds; 0 when the value is not a clock."""
    if not isinstance(value, str):
        return 0
    match = TIME_PATTERN.search(value)
    if not match:
        return 0
    return int(match.group(1)) * 60 + int(match.group(2))


def _method_of(text: str) -> Optional[Method]:
    return classify(METHOD_RULES, text, default=None)


def _round_of(text: str) -> Optional[int]:
    match = ROUND_PATTERN.search(text)
    return int(match.group(1)) if match else None


def _time_of(text: str) -> Optional[str]:
    match = TIME_PATTERN.search(text)
    return f"{match.group(1)}:{match.group(2)}" if match else None


def _scan(headlines: Sequence[str], extract: Callable[[str], Any], default: Any,
          precedence: NotePrecedence) -> Any:
    """Run one extraction pass over the note headlines."""
    result = default
    for text in headlines:
        value = extract(text)
        if value is None:
            continue
        if precedence == NotePrecedence.FIRST_MATCH:
            return value
        result = value
    return result


def _headlines(notes: Any) -> List[str]:
    if not isinstance(notes, list):
        return []
    headlines = []
    for note in notes:
        if isinstance(note, dict) and isinstance(note.get('headline'), str):
            headlines.append(note['headline'])
        else:
            headlines.append("")
    return headlines


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _competitor_id(competitor: Dict[str, Any]) -> str:
    athlete = _dict(competitor.get('athlete'))
    raw_id = athlete.get('id') or competitor.get('id')
    return str(raw_id) if raw_id is not None else ""


# ==================== PUBLIC API ====================

def parse_method_round_time(
    notes: Any,
    precedence: NotePrecedence = NotePrecedence.LAST_MATCH,
) -> tuple[Method, int, str]:
    """
    Extract (method, round_finished, time_finished) from a notes array.

    Example:
        >>> parse_method_round_time([{"headline": "R2 TKO"}, {"headline": "2:14"}])
        (<Method.TKO: 'TKO'>, 2, '2:14')
    """
    headlines = _headlines(notes)
    method = _scan(headlines, _method_of, Method.DECISION, precedence)
    round_finished = _scan(headlines, _round_of, DEFAULT_ROUND_FINISHED, precedence)
    time_finished = _scan(headlines, _time_of, DEFAULT_TIME_FINISHED, precedence)
    return method, round_finished, time_finished


def determine_winner(competitors: Sequence[Dict[str, Any]]) -> Optional[str]:
    """Winner id from the competitors' ``winner`` flags; None for draw/no contest."""
    for competitor in competitors[:2]:
        if _dict(competitor).get('winner') is True:
            return _competitor_id(competitor)
    return None


def parse_participant(competitor: Dict[str, Any]) -> Participant:
    """Build a Participant from a summary competitor entry."""
    athlete = _dict(competitor.get('athlete'))
    flag = _dict(athlete.get('flag'))
    display_name = athlete.get('displayName') or competitor.get('displayName') or "Unknown"
    nickname = athlete.get('nickname')
    country = flag.get('alt')
    return Participant(
        id=_competitor_id(competitor),
        display_name=display_name,
        nickname=nickname if isinstance(nickname, str) else "",
        country=country if isinstance(country, str) else "",
    )


def parse_competitor_stats(event_id: str, competitor: Dict[str, Any]) -> ParticipantStat:
    """
    Build a ParticipantStat from a boxscore competitor.

    Each statistics entry is matched against STAT_RULES by substring of its
    lowercased name; unparseable values leave the counter at 0.
    """
    stat = ParticipantStat(event_id=event_id, participant_id=_competitor_id(competitor))
    entries = competitor.get('statistics')
    if not isinstance(entries, list):
        return stat

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get('name')
        name = name.lower() if isinstance(name, str) else ""
        value = entry.get('displayValue')
        if value is None:
            value = "0"

        for needle, target, kind in STAT_RULES:
            if needle not in name:
                continue
            try:
                if kind == "pair":
                    landed, attempted = parse_landed_of_attempted(value)
                    setattr(stat, f"{target}_landed", landed)
                    setattr(stat, f"{target}_attempted", attempted)
                elif kind == "count":
                    setattr(stat, target, parse_int(value))
                else:
                    setattr(stat, target, parse_clock_seconds(value))
            except (TypeError, ValueError) as e:
                logger.debug(f"Skipping stat {name!r} for {stat.participant_id}: {e}",
                             extra={"event_id": event_id})
            break

    return stat


def parse_outcome(
    event_id: str,
    detail: Dict[str, Any],
    event_name: Optional[str] = None,
    precedence: NotePrecedence = NotePrecedence.LAST_MATCH,
) -> Optional[ParsedFight]:
    """
    Parse a summary payload into participants, outcome and stats.

    Args:
        event_id: Upstream event id (also the fight id)
        detail: Raw summary payload
        event_name: Scoreboard name, used when the summary has no ``name``
        precedence: Which matching note wins for method/round/time

    Returns:
        ParsedFight, or None when there are not two competitors
    """
    competitions = detail.get('competitions')
    if not isinstance(competitions, list) or not competitions:
        return None
    competition = _dict(competitions[0])
    competitors = [c for c in competition.get('competitors') or [] if isinstance(c, dict)]
    if len(competitors) < 2:
        return None

    first, second = competitors[0], competitors[1]
    participants = [parse_participant(first), parse_participant(second)]

    method, round_finished, time_finished = parse_method_round_time(detail.get('notes'), precedence)

    name = detail.get('name') if isinstance(detail.get('name'), str) else (event_name or "")

    competition_notes = _headlines(competition.get('notes'))
    weight_class = competition_notes[0] if competition_notes else ""

    outcome = Outcome(
        event_id=str(event_id),
        participant_a_id=participants[0].id,
        participant_b_id=participants[1].id,
        winner_id=determine_winner([first, second]),
        method=method,
        round_finished=round_finished,
        time_finished=time_finished,
        is_title_fight="title" in name.lower(),
        order=DEFAULT_FIGHT_ORDER,
        weight_class=weight_class,
    )

    stats = []
    boxscore = _dict(detail.get('boxscore'))
    box_competitors = boxscore.get('competitors')
    if isinstance(box_competitors, list):
        for competitor in box_competitors:
            if isinstance(competitor, dict):
                stats.append(parse_competitor_stats(str(event_id), competitor))

    return ParsedFight(participants=participants, outcome=outcome, stats=stats)
