"""
Odds routes: canonicalize one event's markets and resolve per-book lines.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from sportsfeed.core.logging import get_logger
from sportsfeed.services.odds.odds_normalizer import DISPLAY_BOOKS
from sportsfeed.services.odds.quote_matcher import build_game_lines

logger = get_logger(__name__)

router = APIRouter(prefix="/odds", tags=["odds"])


class NormalizeOddsRequest(BaseModel):
    """Raw event odds payload plus the two teams it is quoted for."""
    event: Dict[str, Any] = Field(default_factory=dict, description="Event with `markets` or `bookmakers`")
    away_team: str
    home_team: str
    books: Optional[List[str]] = Field(default=None, description="Books to build lines for")


@router.post("/normalize")
async def normalize_odds(request: NormalizeOddsRequest):
    """
    Normalize an event's odds.

    Accepts either payload shape and returns canonical
    ``market -> book -> quotes`` plus moneyline/spread/total display lines
    for each requested book (DraftKings and FanDuel by default).
    """
    books = request.books or DISPLAY_BOOKS
    lines = build_game_lines(request.event, request.away_team, request.home_team, books=books)
    logger.debug(
        f"Normalized odds for {request.away_team} @ {request.home_team}",
        extra={"books": books},
    )
    return {
        "away_team": request.away_team,
        "home_team": request.home_team,
        **lines,
    }
