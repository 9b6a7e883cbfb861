# src/app/domain/models.py
"""
Domain models for recipe generation and the recipe catalog.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from src.services.persist_models import RecipeRecord, StoredRecipe


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# Marker stored on drafts whose model output could not be parsed.
UNKNOWN_DIFFICULTY = "Unknown"

DEFAULT_DIFFICULTY = Difficulty.MEDIUM


class OutcomeKind(str, Enum):
    """How a generation attempt ended."""
    SUCCESS = "SUCCESS"
    DEGRADED = "DEGRADED"
    EXHAUSTED = "EXHAUSTED"


class PrepTimeRange(str, Enum):
    UNDER_15 = "under_15"
    FROM_15_TO_30 = "15_30"
    FROM_30_TO_60 = "30_60"
    OVER_60 = "over_60"

    @property
    def constraints(self) -> tuple[tuple[str, int], ...]:
        """(operator, minutes) pairs applied to the prep_time column."""
        return _PREP_TIME_CONSTRAINTS[self]


class ServingsRange(str, Enum):
    ONE_TO_TWO = "1_2"
    THREE_TO_FOUR = "3_4"
    FIVE_TO_SIX = "5_6"
    SEVEN_PLUS = "7_plus"

    @property
    def constraints(self) -> tuple[tuple[str, int], ...]:
        return _SERVINGS_CONSTRAINTS[self]


_PREP_TIME_CONSTRAINTS = {
    PrepTimeRange.UNDER_15: (("lt", 15),),
    PrepTimeRange.FROM_15_TO_30: (("gte", 15), ("lte", 30)),
    PrepTimeRange.FROM_30_TO_60: (("gte", 30), ("lte", 60)),
    PrepTimeRange.OVER_60: (("gt", 60),),
}

_SERVINGS_CONSTRAINTS = {
    ServingsRange.ONE_TO_TWO: (("gte", 1), ("lte", 2)),
    ServingsRange.THREE_TO_FOUR: (("gte", 3), ("lte", 4)),
    ServingsRange.FIVE_TO_SIX: (("gte", 5), ("lte", 6)),
    ServingsRange.SEVEN_PLUS: (("gte", 7),),
}


@dataclass
class GenerationRequest:
    """
    Transient input of one generation call.
    `authorization` is the raw Authorization header value, if any.
    """
    prompt: str
    cuisine: Optional[str] = None
    image_data: Optional[str] = None
    authorization: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any], authorization: Optional[str] = None) -> "GenerationRequest":
        def _text(key: str) -> Optional[str]:
            value = payload.get(key)
            return value if isinstance(value, str) and value else None

        return cls(
            prompt=_text("prompt") or "",
            cuisine=_text("cuisine"),
            image_data=_text("image_data"),
            authorization=authorization,
        )


@dataclass
class CompletionResult:
    """Raw assistant text returned by the model gateway."""
    text: str
    attempts: int


@dataclass
class GenerationOutcome:
    """
    Result of the generate step, before image ingestion and persistence.

    SUCCESS carries a well-formed record, DEGRADED a fallback draft,
    EXHAUSTED no record at all.
    """
    kind: OutcomeKind
    record: Optional["RecipeRecord"] = None
    raw_text: Optional[str] = None
    attempts: int = 0
    error_message: Optional[str] = None

    @property
    def is_exhausted(self) -> bool:
        return self.kind == OutcomeKind.EXHAUSTED

    @property
    def is_draft(self) -> bool:
        return self.kind == OutcomeKind.DEGRADED


@dataclass
class RecipeQuery:
    """Search and filter parameters for the catalog listing."""
    search: Optional[str] = None
    cuisine: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    prep_time: Optional[PrepTimeRange] = None
    servings: Optional[ServingsRange] = None
    page: int = 1
    limit: int = 12

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class RecipePage:
    recipes: list["StoredRecipe"]
    total_count: int
    page: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.total_count > self.page * self.limit
