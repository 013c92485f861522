"""
Props routes: normalize, categorize and confidence-filter raw props.
"""
from collections import Counter
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from sportsfeed.core.config import settings
from sportsfeed.core.logging import get_logger
from sportsfeed.services.props.prop_categorizer import (
    DEFAULT_CATEGORY,
    filter_by_confidence,
    normalize_book,
    normalize_props,
    normalize_sport,
)

logger = get_logger(__name__)

ALL_BOOKS = "All Books"

router = APIRouter(prefix="/props", tags=["props"])


class PropsRequest(BaseModel):
    props: List[Dict[str, Any]] = Field(default_factory=list)


@router.post("")
async def categorize_props(
    request: PropsRequest,
    threshold: Optional[float] = Query(None, ge=0, le=100, description="Minimum confidence (0-100)"),
    category: Optional[str] = Query(None, description="Only return this category"),
    sport: Optional[str] = Query(None, description="Only return this sport (e.g. nfl, americanfootball_nfl)"),
    book: Optional[str] = Query(None, description="Only return this book (DraftKings, FanDuel, dk, fd)"),
):
    """
    Normalize raw props from any feed and keep the confident ones.

    Props without odds are dropped; the rest are filtered by confidence
    (default PROP_CONFIDENCE_THRESHOLD) and tagged with a category.

    ``sport`` narrows the props before categories are counted, so the
    counts describe that sport's board. ``book`` and ``category`` only
    narrow the returned list.
    """
    if threshold is None:
        threshold = settings.PROP_CONFIDENCE_THRESHOLD

    props = filter_by_confidence(normalize_props(request.props), threshold)
    if sport:
        wanted_sport = normalize_sport(sport)
        props = [prop for prop in props if prop.sport == wanted_sport]
    counts = Counter(prop.category for prop in props)

    if category and category != DEFAULT_CATEGORY:
        props = [prop for prop in props if prop.category == category]
    if book and book != ALL_BOOKS:
        wanted_book = normalize_book(book)
        props = [prop for prop in props if prop.book == wanted_book]

    logger.info(
        f"Returning {len(props)} of {len(request.props)} props",
        extra={"threshold": threshold, "category": category, "sport": sport, "book": book},
    )
    return {
        "threshold": threshold,
        "count": len(props),
        "categories": dict(counts),
        "props": [prop.to_dict() for prop in props],
    }
