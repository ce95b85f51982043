"""
Eligibility check and filter normalization for bulk recommendation requests.

Runs before any external call so rejected requests cost nothing upstream.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from cinemate.core.errors import InsufficientData, Unauthenticated
from cinemate.core.pipeline.models import FilterSpec
from cinemate.database import crud
from cinemate.database.models import User

logger = logging.getLogger(__name__)

MIN_RATINGS = 3
DEFAULT_COUNT = 10
MAX_COUNT = 50
DEFAULT_YEAR_SPAN = 2
# Announced titles can carry next year as their release year
MAX_YEARS_AHEAD = 1


@dataclass(frozen=True)
class GateResult:
    filters: FilterSpec
    rating_count: int


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _positive_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _clean_list(values: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    """Strip, drop blanks and de-duplicate (case-insensitively) preserving order."""
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    elif not isinstance(values, (list, tuple, set, frozenset)):
        return ()
    seen = set()
    cleaned = []
    for value in values:
        if not isinstance(value, str):
            continue
        text = value.strip()
        if text and text.casefold() not in seen:
            seen.add(text.casefold())
            cleaned.append(text)
    return tuple(cleaned)


def normalize_filters(
    raw: Optional[Mapping[str, Any]],
    default_languages: Iterable[str] = (),
    today: Optional[date] = None,
) -> FilterSpec:
    """
    Apply defaults to raw request filters.

    Args:
        raw: Filter values keyed by FilterSpec field name; missing keys are fine
        default_languages: Used when the request names no languages
        today: Reference date for the default year range

    Returns:
        FilterSpec with count in 1..MAX_COUNT and a complete year range ending
        no later than MAX_YEARS_AHEAD past today
    """
    raw = raw or {}
    today = today or date.today()

    count = _positive_int(raw.get("count")) or DEFAULT_COUNT
    count = min(count, MAX_COUNT)

    latest = today.year + MAX_YEARS_AHEAD
    year_to = min(_positive_int(raw.get("year_to")) or today.year, latest)
    year_from = min(_positive_int(raw.get("year_from")) or (year_to - DEFAULT_YEAR_SPAN), latest)
    if year_from > year_to:
        year_from, year_to = year_to, year_from

    languages = _clean_list(raw.get("languages")) or _clean_list(default_languages)

    return FilterSpec(
        count=count,
        year_from=year_from,
        year_to=year_to,
        genres=_clean_list(raw.get("genres")),
        languages=languages,
        min_imdb_rating=_positive_float(raw.get("min_imdb_rating")),
        min_box_office=_positive_float(raw.get("min_box_office")),
        max_budget=_positive_float(raw.get("max_budget")),
    )


def open_request(
    session: Session,
    user: Optional[User],
    raw_filters: Optional[Mapping[str, Any]],
    today: Optional[date] = None,
) -> GateResult:
    """
    Authorize a bulk recommendation request and normalize its filters.

    Raises:
        Unauthenticated: If there is no user
        InsufficientData: If the user has fewer than MIN_RATINGS ratings
    """
    if user is None:
        raise Unauthenticated()

    rating_count = crud.count_user_ratings(session, user.user_id)
    if rating_count < MIN_RATINGS:
        logger.info(
            "User %s has %d ratings, %d required", user.user_id, rating_count, MIN_RATINGS
        )
        raise InsufficientData(rating_count, MIN_RATINGS)

    filters = normalize_filters(raw_filters, crud.get_user_languages(user), today)
    logger.info("User %s has %d ratings, filters: %s", user.user_id, rating_count, filters)
    return GateResult(filters=filters, rating_count=rating_count)
