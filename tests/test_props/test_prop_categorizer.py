"""Unit tests for prop categorization and confidence filtering.

Test Strategy:
1. Test category keywords and table order
2. Test confidence scale normalization and the 55 threshold
3. Test field alias handling for props from different feeds
"""
import pytest

from sportsfeed.models.records import Prop
from sportsfeed.services.props.prop_categorizer import (
    DEFAULT_CATEGORY,
    categorize_prop,
    extract_odds,
    filter_by_confidence,
    normalize_book,
    normalize_confidence,
    normalize_prop,
    normalize_props,
    normalize_sport,
    passes_confidence,
)


class TestCategorizeProp:

    @pytest.mark.parametrize("market, category", [
        ("Player Passing Yards", "Passing"),
        ("Pass Completions", "Passing"),
        ("Rush Yards", "Rushing"),
        ("Receptions", "Receiving"),
        ("Anytime Touchdown Scorer", "Anytime TD Scorer"),
        ("2+ TD", "Multiple TDs"),
        ("Rush + Rec Yards", "Rushing"),
        ("Field Goals Made", "Kicker Props"),
        ("Player Sacks", "Defensive - Sacks"),
        ("Solo Tackles", "Defensive - Tackles"),
        ("Interceptions", "Defensive - Turnovers"),
        ("Longest Punt", DEFAULT_CATEGORY),
        ("", DEFAULT_CATEGORY),
        (None, DEFAULT_CATEGORY),
    ])
    def test_categories(self, market, category):
        """Should return the first category whose keywords match."""
        assert categorize_prop(market) == category

    def test_case_insensitive(self):
        """Should ignore case."""
        assert categorize_prop("RECEIVING YARDS") == "Receiving"


class TestConfidence:

    # Scale
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("value, expected", [
        (0.6, 60.0),
        (60, 60.0),
        (0.4, 40.0),
        ("72", 72.0),
        (None, 0.0),
        ("high", 0.0),
    ])
    def test_normalize_confidence(self, value, expected):
        """Should put fractions and percentages on the same 0-100 scale."""
        assert normalize_confidence(value) == pytest.approx(expected)

    # Threshold
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("prop, passes", [
        ({"confidence": 0.6}, True),
        ({"confidence": 60}, True),
        ({"confidence": 55}, True),
        ({"confidence": 40}, False),
        ({"confidence": 0.4}, False),
        ({"confidence_score": 0.7}, True),
        ({"confidence": 0, "confidence_score": 0.8}, True),
        ({"confidence": 0, "confidence_score": 0}, False),
        ({}, False),
    ])
    def test_passes_confidence(self, prop, passes):
        """Should keep props at or above 55 on either scale."""
        assert passes_confidence(prop) is passes

    def test_prop_records(self):
        """Should accept Prop records as well as raw dicts."""
        prop = Prop(sport="NFL", book="DraftKings", player="A", market="Rush Yards",
                    category="Rushing", odds=-110, confidence=0.58)

        assert passes_confidence(prop) is True
        assert passes_confidence("not a prop") is False

    def test_filter_by_confidence(self):
        """Should drop low-confidence props and keep the order of the rest."""
        props = [{"id": 1, "confidence": 0.9}, {"id": 2, "confidence": 30}, {"id": 3, "confidence": 56}]

        assert [p["id"] for p in filter_by_confidence(props, threshold=55)] == [1, 3]
        assert filter_by_confidence(None) == []


class TestFieldNormalization:

    @pytest.mark.parametrize("raw, sport", [
        ("americanfootball_nfl", "NFL"),
        ("football", "NFL"),
        ("College Football", "CFB"),
        ("basketball_nba", "NBA"),
        ("baseball", "MLB"),
        ("mma", "UFC"),
        ("pga", "GOLF"),
        ("nhl", "NHL"),
        (None, "NFL"),
    ])
    def test_normalize_sport(self, raw, sport):
        """Should map feed-specific sport names onto canonical codes."""
        assert normalize_sport(raw) == sport

    @pytest.mark.parametrize("raw, book", [
        ("draftkings", "DraftKings"),
        ("DK", "DraftKings"),
        ("FanDuel Sportsbook", "FanDuel"),
        ("fd", "FanDuel"),
        ("BetMGM", "BetMGM"),
        ("", None),
    ])
    def test_normalize_book(self, raw, book):
        """Should canonicalize DraftKings/FanDuel and pass others through."""
        assert normalize_book(raw) == book

    def test_extract_odds_aliases(self):
        """Should take the first available odds alias."""
        assert extract_odds({"dk_odds": -115, "fd_odds": -120}) == -115
        assert extract_odds({"american_odds": "+140"}) == 140
        assert extract_odds({"price": "off"}) is None
        assert extract_odds({}) is None

    def test_zero_aliases_fall_through(self):
        """Should treat a 0 odds or confidence value like a missing one and use the next alias."""
        prop = normalize_prop({"odds": 0, "dk_odds": -115, "confidence": 0, "confidence_score": 0.8, "line": 0})

        assert prop.odds == -115
        assert prop.confidence == pytest.approx(0.8)
        assert prop.line == 0.0
        assert extract_odds({"odds": 0}) is None
        assert normalize_props([{"player": "A", "odds": 0}]) == []

    def test_normalize_prop_aliases(self):
        """Should read every field from its alternate names."""
        raw = {
            "Player": "Josh Allen",
            "prop_type": "Passing Yards",
            "league": "nfl",
            "sportsbook": "dk",
            "price": "-110",
            "line": "245.5",
            "confidence_score": 0.72,
            "ev": "3.1",
            "matchup": "BUF @ KC",
            "Team": "BUF",
        }

        prop = normalize_prop(raw)

        assert prop.player == "Josh Allen"
        assert prop.market == "Passing Yards"
        assert prop.category == "Passing"
        assert prop.sport == "NFL"
        assert prop.book == "DraftKings"
        assert prop.odds == -110
        assert prop.line == 245.5
        assert prop.confidence == pytest.approx(0.72)
        assert prop.edge == pytest.approx(3.1)
        assert prop.game == "BUF @ KC"
        assert prop.team == "BUF"

    def test_normalize_prop_defaults(self):
        """Should fall back to placeholder player and market names."""
        prop = normalize_prop({"odds": 120})

        assert prop.player == "Unknown"
        assert prop.market == "Unknown Market"
        assert prop.category == DEFAULT_CATEGORY
        assert prop.book is None
        assert prop.edge == 0.0

    def test_normalize_props_drops_unusable(self):
        """Should drop props without odds and entries that are not objects."""
        raws = [
            {"player": "A", "market": "Receptions", "odds": -105},
            {"player": "B", "market": "Receptions"},
            "garbage",
        ]

        props = normalize_props(raws)

        assert [p.player for p in props] == ["A"]
        assert normalize_props(None) == []
