"""Domain models for analysed dishes and their macros."""

from collections.abc import Iterable
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MIN_HEALTH_SCORE = 1
MAX_HEALTH_SCORE = 10


class DomainModel(BaseModel):
    """Immutable base model serialised with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )


class Ingredient(DomainModel):
    """Single ingredient with its macros."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1)
    calories: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    fats: float = Field(ge=0.0)


class NutritionTotal(DomainModel):
    """Totals for a dish with the model's health score."""

    calories: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    fats: float = Field(ge=0.0)
    health_score: int = Field(ge=MIN_HEALTH_SCORE, le=MAX_HEALTH_SCORE)

    @classmethod
    def from_ingredients(
        cls, ingredients: Iterable[Ingredient], health_score: int
    ) -> "NutritionTotal":
        """Sum ingredient macros; the health score is carried over as given."""
        calories = carbs = protein = fats = 0.0
        for ingredient in ingredients:
            calories += ingredient.calories
            carbs += ingredient.carbs
            protein += ingredient.protein
            fats += ingredient.fats
        return cls(
            calories=calories,
            carbs=carbs,
            protein=protein,
            fats=fats,
            health_score=health_score,
        )


class AnalysisResponse(DomainModel):
    """Validated result of one analysis run."""

    dish_name: str = Field(min_length=1)
    ingredients: tuple[Ingredient, ...]
    total: NutritionTotal
