"""Shared pytest fixtures for sportsfeed tests."""
import sys
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from sportsfeed.models.tables import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def instant_gate():
    """DelayGate whose waits return immediately (calls are still recorded)."""
    from sportsfeed.services.core.rate_limiter import DelayGate

    gate = DelayGate()
    gate.wait = AsyncMock(return_value=None)
    return gate


@pytest.fixture
def scoreboard_event() -> Dict[str, Any]:
    """A completed event as listed on the ESPN scoreboard."""
    return {
        "id": "600041",
        "name": "UFC 300: Pereira vs. Hill",
        "date": "2024-04-13T22:00Z",
        "status": {"type": {"completed": True, "description": "Final"}},
        "competitions": [
            {
                "venue": {
                    "fullName": "T-Mobile Arena",
                    "address": {"city": "Las Vegas", "country": "USA"},
                }
            }
        ],
    }


@pytest.fixture
def scheduled_event() -> Dict[str, Any]:
    """An event that has not happened yet."""
    return {
        "id": "600099",
        "name": "UFC Fight Night: Allen vs. Curtis",
        "date": "2024-04-06T23:00Z",
        "status": {"type": {"completed": False, "description": "Scheduled"}},
        "competitions": [],
    }


@pytest.fixture
def event_detail() -> Dict[str, Any]:
    """ESPN summary payload for a finished title fight."""
    return {
        "name": "UFC 300: Pereira vs. Hill - Light Heavyweight Title",
        "notes": [
            {"headline": "R1 KO (Punches)"},
            {"headline": "3:14"},
        ],
        "competitions": [
            {
                "notes": [{"headline": "Light Heavyweight - Main Event"}],
                "competitors": [
                    {
                        "winner": True,
                        "athlete": {
                            "id": "4705658",
                            "displayName": "Alex Pereira",
                            "nickname": "Poatan",
                            "flag": {"alt": "Brazil"},
                        },
                    },
                    {
                        "winner": False,
                        "athlete": {
                            "id": "4046580",
                            "displayName": "Jamahal Hill",
                            "flag": {"alt": "USA"},
                        },
                    },
                ],
            }
        ],
        "boxscore": {
            "competitors": [
                {
                    "athlete": {"id": "4705658"},
                    "statistics": [
                        {"name": "Significant Strikes", "displayValue": "18 of 27"},
                        {"name": "Total Strikes", "displayValue": "20 of 30"},
                        {"name": "Takedowns", "displayValue": "0 of 0"},
                        {"name": "Submission Attempts", "displayValue": "0"},
                        {"name": "Knockdowns", "displayValue": "1"},
                        {"name": "Control Time", "displayValue": "0:12"},
                    ],
                },
                {
                    "athlete": {"id": "4046580"},
                    "statistics": [
                        {"name": "Significant Strikes", "displayValue": "--"},
                        {"name": "Takedowns", "displayValue": None},
                    ],
                },
            ]
        },
    }


@pytest.fixture
def bookmaker_list_event() -> Dict[str, Any]:
    """Odds in The Odds API bookmaker-list shape."""
    return {
        "id": "evt-1",
        "away_team": "Detroit Lions",
        "home_team": "Chicago Bears",
        "bookmakers": [
            {
                "key": "draftkings",
                "markets": [
                    {
                        "key": "h2h",
                        "outcomes": [
                            {"name": "Detroit Lions", "price": -150},
                            {"name": "Chicago Bears", "price": 130},
                        ],
                    },
                    {
                        "key": "spreads",
                        "outcomes": [
                            {"name": "Detroit Lions", "price": -110, "point": -3.5},
                            {"name": "Chicago Bears", "price": -110, "point": 3.5},
                        ],
                    },
                    {
                        "key": "totals",
                        "outcomes": [
                            {"name": "Over", "price": -105, "point": 47.5},
                            {"name": "Under", "price": -115, "point": 47.5},
                        ],
                    },
                ],
            },
            {
                "key": "fanduel",
                "markets": [
                    {
                        "key": "h2h",
                        "outcomes": [
                            {"price": -145},
                            {"price": 125},
                        ],
                    }
                ],
            },
        ],
    }
