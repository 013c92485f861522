"""
Canonical record types produced by the ingestion pipeline and the
odds/props normalization layer.

Every field carries an explicit default so that a missing upstream value
resolves to a documented constant instead of an ad-hoc fallback chain:

    Participant.display_name  -> "Unknown"
    Participant.nickname      -> ""
    Participant.country       -> ""
    Event.name/venue/...      -> ""
    Outcome.method            -> Method.DECISION
    Outcome.round_finished    -> 3
    Outcome.time_finished     -> "5:00"
    ParticipantStat.*         -> 0

``to_row()`` renders each record with the column names used by the
persistence tables.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_ROUND_FINISHED = 3
DEFAULT_TIME_FINISHED = "5:00"
DEFAULT_FIGHT_ORDER = 1


class Method(str, Enum):
    """How a head-to-head bout finished."""
    KO = "KO"
    TKO = "TKO"
    SUBMISSION = "Submission"
    DECISION = "Decision"


class Market(str, Enum):
    """Canonical market keys."""
    MONEYLINE = "moneyline"
    SPREAD = "spread"
    TOTAL = "total"


class Sportsbook(str, Enum):
    """Sportsbooks shown on every game card."""
    DRAFTKINGS = "draftkings"
    FANDUEL = "fanduel"


@dataclass
class Participant:
    """A fighter/athlete as first seen inside an event payload."""
    id: str
    display_name: str = "Unknown"
    nickname: str = ""
    country: str = ""

    def to_row(self) -> Dict[str, Any]:
        return {
            "fighter_id": self.id,
            "name": self.display_name,
            "nickname": self.nickname,
            "country": self.country,
        }


@dataclass
class Event:
    """A fight card or game, keyed by the upstream event id."""
    id: str
    name: str = ""
    date: str = ""
    venue: str = ""
    city: str = ""
    country: str = ""

    def to_row(self) -> Dict[str, Any]:
        return {
            "event_id": self.id,
            "event_name": self.name,
            "event_date": self.date,
            "venue": self.venue,
            "city": self.city,
            "country": self.country,
        }


@dataclass
class Outcome:
    """
    Result of a head-to-head event.

    Raises:
        ValueError: if winner_id is set to something other than one of
            the two participant ids
    """
    event_id: str
    participant_a_id: str
    participant_b_id: str
    winner_id: Optional[str] = None
    method: Method = Method.DECISION
    round_finished: int = DEFAULT_ROUND_FINISHED
    time_finished: str = DEFAULT_TIME_FINISHED
    is_title_fight: bool = False
    order: int = DEFAULT_FIGHT_ORDER
    weight_class: str = ""

    def __post_init__(self):
        if self.winner_id is not None and self.winner_id not in (
            self.participant_a_id,
            self.participant_b_id,
        ):
            raise ValueError(
                f"winner_id {self.winner_id!r} is not a participant of event {self.event_id}"
            )

    def to_row(self) -> Dict[str, Any]:
        return {
            "fight_id": self.event_id,
            "event_id": self.event_id,
            "fighter1_id": self.participant_a_id,
            "fighter2_id": self.participant_b_id,
            "winner_id": self.winner_id,
            "weight_class": self.weight_class,
            "method": self.method.value,
            "round_finished": self.round_finished,
            "time_finished": self.time_finished,
            "is_title_fight": self.is_title_fight,
            "fight_order": self.order,
        }


@dataclass
class ParticipantStat:
    """Per-participant counters for one event."""
    event_id: str
    participant_id: str
    significant_strikes_landed: int = 0
    significant_strikes_attempted: int = 0
    total_strikes_landed: int = 0
    total_strikes_attempted: int = 0
    takedowns_landed: int = 0
    takedowns_attempted: int = 0
    submission_attempts: int = 0
    knockdowns: int = 0
    control_time_seconds: int = 0

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["fight_id"] = row.pop("event_id")
        row["fighter_id"] = row.pop("participant_id")
        return row


@dataclass
class ParsedFight:
    """Everything the outcome parser extracts from one detail payload."""
    participants: List[Participant]
    outcome: Outcome
    stats: List[ParticipantStat] = field(default_factory=list)


@dataclass
class OddsQuote:
    """One side of a market at one sportsbook."""
    name: Optional[str] = None
    price: Optional[int] = None
    point: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "price": self.price}
        if self.point is not None:
            data["point"] = self.point
        return data


@dataclass
class Prop:
    """A player or team prop as displayed on the props board."""
    sport: str
    book: Optional[str]
    player: str
    market: str
    category: str
    odds: Optional[float] = None
    team: str = ""
    game: str = ""
    line: Optional[float] = None
    confidence: float = 0.0
    edge: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
