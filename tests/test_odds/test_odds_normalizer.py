"""Unit tests for odds payload normalization.

Test Strategy:
1. Test shape detection (keyed markets vs bookmaker list vs neither)
2. Test bookmaker list -> canonical markets
3. Test keyed markets pass through as copies
4. Test malformed input degrades to empty lists
"""
import pytest

from sportsfeed.services.odds.odds_normalizer import (
    BookmakerList,
    KeyedMarkets,
    NoMarkets,
    detect_payload,
    get_quotes,
    normalize_markets,
)

EMPTY = {
    "moneyline": {"draftkings": [], "fanduel": []},
    "spread": {"draftkings": [], "fanduel": []},
    "total": {"draftkings": [], "fanduel": []},
}


class TestDetectPayload:

    def test_keyed_markets(self):
        """Should tag a markets mapping as keyed markets."""
        assert isinstance(detect_payload({"markets": {"moneyline": {}}}), KeyedMarkets)

    def test_bookmaker_list(self, bookmaker_list_event):
        """Should tag a non-empty bookmakers list."""
        assert isinstance(detect_payload(bookmaker_list_event), BookmakerList)

    def test_markets_take_precedence(self, bookmaker_list_event):
        """Should prefer markets when both fields are present."""
        bookmaker_list_event["markets"] = {"moneyline": {"draftkings": [{"name": "X", "price": 100}]}}

        assert isinstance(detect_payload(bookmaker_list_event), KeyedMarkets)

    def test_empty_markets_still_take_precedence(self, bookmaker_list_event):
        """Should pick an empty markets mapping over bookmakers and normalize to empty markets."""
        bookmaker_list_event["markets"] = {}

        assert isinstance(detect_payload(bookmaker_list_event), KeyedMarkets)
        assert normalize_markets(bookmaker_list_event) == EMPTY

    def test_empty_markets_alone(self):
        """Should normalize an empty markets mapping to empty markets."""
        assert isinstance(detect_payload({"markets": {}}), KeyedMarkets)
        assert normalize_markets({"markets": {}}) == EMPTY

    @pytest.mark.parametrize("raw", [None, "odds", {}, {"bookmakers": []}, {"markets": []}])
    def test_neither_shape(self, raw):
        """Should tag anything else as having no markets."""
        assert isinstance(detect_payload(raw), NoMarkets)


class TestNormalizeMarkets:

    # Bookmaker list
    # ─────────────────────────────────────────────────────────────

    def test_bookmaker_list_round_trip(self, bookmaker_list_event):
        """Should map h2h/spreads/totals onto canonical markets per book."""
        markets = normalize_markets(bookmaker_list_event)

        assert markets["moneyline"]["draftkings"] == [
            {"name": "Detroit Lions", "price": -150},
            {"name": "Chicago Bears", "price": 130},
        ]
        assert markets["spread"]["draftkings"][0]["point"] == -3.5
        assert markets["total"]["draftkings"][1] == {"name": "Under", "price": -115, "point": 47.5}
        assert markets["moneyline"]["fanduel"] == [{"price": -145}, {"price": 125}]
        assert markets["spread"]["fanduel"] == []
        assert markets["total"]["fanduel"] == []

    def test_first_market_per_book_wins(self):
        """Should keep the first occurrence of a market key for a book."""
        raw = {"bookmakers": [{"key": "draftkings", "markets": [
            {"key": "h2h", "outcomes": [{"name": "A", "price": -120}]},
            {"key": "h2h", "outcomes": [{"name": "A", "price": -999}]},
        ]}]}

        assert normalize_markets(raw)["moneyline"]["draftkings"] == [{"name": "A", "price": -120}]

    def test_unknown_market_keys_and_books(self):
        """Should ignore unknown market keys and keep extra books."""
        raw = {"bookmakers": [
            {"key": "betmgm", "markets": [{"key": "h2h", "outcomes": [{"name": "A", "price": 110}]}]},
            {"key": "draftkings", "markets": [{"key": "player_points", "outcomes": [{"name": "B"}]}]},
        ]}

        markets = normalize_markets(raw)

        assert markets["moneyline"]["betmgm"] == [{"name": "A", "price": 110}]
        assert markets["moneyline"]["draftkings"] == []
        assert set(markets) == {"moneyline", "spread", "total"}

    def test_malformed_bookmakers_are_skipped(self):
        """Should skip bookmakers and markets that are not well formed."""
        raw = {"bookmakers": [
            "draftkings",
            {"markets": []},
            {"key": "fanduel", "markets": "h2h"},
            {"key": "draftkings", "markets": [None, {"key": "totals", "outcomes": [1, {"name": "Over"}]}]},
        ]}

        markets = normalize_markets(raw)

        assert markets["total"]["draftkings"] == [{"name": "Over"}]
        assert markets["moneyline"]["fanduel"] == []

    # Keyed markets
    # ─────────────────────────────────────────────────────────────

    def test_keyed_markets_are_copied(self):
        """Should return equal quotes without sharing the input lists."""
        quotes = [{"name": "A", "price": -150}, {"name": "B", "price": 130}]
        raw = {"markets": {"moneyline": {"draftkings": quotes}}}

        markets = normalize_markets(raw)
        markets["moneyline"]["draftkings"][0]["price"] = 0

        assert quotes[0]["price"] == -150
        assert markets["moneyline"]["fanduel"] == []
        assert markets["spread"] == {"draftkings": [], "fanduel": []}

    # Neither
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("raw", [None, {}, {"id": "evt"}, {"markets": None, "bookmakers": None}])
    def test_neither_shape_yields_empty_lists(self, raw):
        """Should return every canonical market with empty lists for both books."""
        assert normalize_markets(raw) == EMPTY


class TestGetQuotes:

    def test_missing_market_or_book(self, bookmaker_list_event):
        """Should return [] for unknown market or book."""
        markets = normalize_markets(bookmaker_list_event)

        assert get_quotes(markets, "moneyline", "caesars") == []
        assert get_quotes(markets, "props", "draftkings") == []
        assert len(get_quotes(markets, "moneyline", "draftkings")) == 2
