"""
Value types passed between the pipeline stages.
"""

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class FilterSpec:
    """Normalized constraints for one bulk recommendation request."""

    count: int = 10
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    genres: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()
    min_imdb_rating: Optional[float] = None
    min_box_office: Optional[float] = None  # millions USD
    max_budget: Optional[float] = None  # millions USD


@dataclass(frozen=True)
class RatedTitle:
    title: str
    year: Optional[int]
    score: float

    def label(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


@dataclass
class TasteProfile:
    """A user's ratings split into the buckets the prompts talk about."""

    loved: List[RatedTitle] = field(default_factory=list)
    enjoyed: List[RatedTitle] = field(default_factory=list)
    disliked: List[RatedTitle] = field(default_factory=list)


@dataclass(frozen=True)
class CandidateItem:
    """A title mentioned by the search model."""

    title: str
    year: Optional[int] = None
    attributes: str = ""


@dataclass
class CandidateSet:
    """Search model answer: the raw text plus whatever titles could be picked out."""

    raw_text: str
    items: List[CandidateItem] = field(default_factory=list)


_YEAR_PATTERN = re.compile(r"(1[89]\d{2}|20\d{2})")


class RankedRecommendation(BaseModel):
    """One entry of the generation model's JSON answer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)
    year: int
    reason: str = Field(min_length=1)
    match_percentage: int = Field(default=0, alias="matchPercentage")
    tmdb_id: Optional[int] = Field(default=None, alias="tmdbId")
    original_title: Optional[str] = Field(default=None, alias="originalTitle")
    overview: Optional[str] = None
    language: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    runtime: Optional[int] = None
    imdb_rating: Optional[float] = Field(default=None, alias="imdbRating")
    poster_path: Optional[str] = Field(default=None, alias="posterPath")

    @field_validator("title", "reason", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("year", mode="before")
    @classmethod
    def _parse_year(cls, value: Any) -> Any:
        # "2023-05-01" or "2023 (limited)" both mean 2023
        if isinstance(value, str):
            match = _YEAR_PATTERN.search(value)
            if match:
                return int(match.group(1))
        return value

    @field_validator("match_percentage", mode="before")
    @classmethod
    def _clamp_percentage(cls, value: Any) -> Any:
        if value is None:
            return 0
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        try:
            return max(0, min(100, round(float(value))))
        except (TypeError, ValueError):
            return value

    @field_validator("runtime", "tmdb_id", mode="before")
    @classmethod
    def _optional_int(cls, value: Any) -> Any:
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str) and not value.strip().isdigit():
            return None
        return value

    @field_validator("genres", mode="before")
    @classmethod
    def _genre_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [g.strip() for g in value.split(",") if g.strip()]
        return value


class RecommendationBatch(BaseModel):
    """Top-level JSON object the generation model must return."""

    recommendations: List[RankedRecommendation]


class ItemStatus(str, enum.Enum):
    STORED = "stored"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemOutcome:
    title: str
    year: Optional[int]
    status: ItemStatus
    movie_id: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class BatchSummary:
    """Result of one pipeline run, reduced from the per-item outcomes."""

    batch_id: str
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def stored(self) -> int:
        return self._count(ItemStatus.STORED)

    @property
    def skipped(self) -> int:
        return self._count(ItemStatus.DUPLICATE)

    @property
    def failed(self) -> int:
        return self._count(ItemStatus.FAILED)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "message": f"Generated {self.stored} personalized recommendations",
            "batchId": self.batch_id,
            "totalRequested": self.attempted,
            "successfullyStored": self.stored,
            "skipped": self.skipped,
            "failed": self.failed,
            "failedMovies": [
                f"{o.title} ({o.year})" for o in self.outcomes if o.status is ItemStatus.FAILED
            ],
        }
