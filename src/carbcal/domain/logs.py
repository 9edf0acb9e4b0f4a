"""Domain models for saved food logs."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date as Date
from datetime import datetime
from uuid import UUID

from pydantic import Field

from carbcal.domain.nutrition import (
    MAX_HEALTH_SCORE,
    MIN_HEALTH_SCORE,
    AnalysisResponse,
    DomainModel,
    Ingredient,
    NutritionTotal,
)


class FoodLog(DomainModel):
    """User-confirmed analysis stored in the log."""

    id: UUID | None = None
    image_path: str = ""
    dish_name: str = Field(min_length=1)
    date: datetime
    ingredients: tuple[Ingredient, ...]
    health_score: int = Field(ge=MIN_HEALTH_SCORE, le=MAX_HEALTH_SCORE)

    @property
    def total(self) -> NutritionTotal:
        """Macros summed across the logged ingredients."""
        return NutritionTotal.from_ingredients(self.ingredients, self.health_score)

    @classmethod
    def draft_from(  # noqa: PLR0913
        cls,
        response: AnalysisResponse,
        *,
        ingredients: Iterable[Ingredient] | None = None,
        dish_name: str | None = None,
        image_path: str = "",
        date: datetime | None = None,
    ) -> "FoodLog":
        """Build an unsaved log from an analysis, applying any user edits."""
        return cls(
            image_path=image_path,
            dish_name=response.dish_name if dish_name is None else dish_name,
            date=date or datetime.now().astimezone(),
            ingredients=tuple(
                response.ingredients if ingredients is None else ingredients
            ),
            health_score=response.total.health_score,
        )

    def local_day(self) -> Date:
        """Return the calendar day of the entry in local time."""
        return to_local_day(self.date)


@dataclass(frozen=True)
class DailySummary:
    """Macro totals for all logs on one day."""

    day: Date
    entries: int
    calories: float
    carbs: float
    protein: float
    fats: float


def to_local_day(value: Date | datetime) -> Date:
    """Map a date or datetime onto the local calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value
