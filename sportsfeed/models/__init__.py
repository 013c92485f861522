"""
Models for sportsfeed.

- records: canonical dataclasses produced by parsing/normalization
- tables: SQLAlchemy tables for the local result store
"""
from sportsfeed.models.records import (
    Method,
    Market,
    Sportsbook,
    Participant,
    Event,
    Outcome,
    ParticipantStat,
    ParsedFight,
    OddsQuote,
    Prop,
)
from sportsfeed.models.tables import (
    Base,
    Fighter,
    FightEvent,
    Fight,
    FightStats,
)

__all__ = [
    "Method",
    "Market",
    "Sportsbook",
    "Participant",
    "Event",
    "Outcome",
    "ParticipantStat",
    "ParsedFight",
    "OddsQuote",
    "Prop",
    "Base",
    "Fighter",
    "FightEvent",
    "Fight",
    "FightStats",
]
