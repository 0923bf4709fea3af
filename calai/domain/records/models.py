"""
Domain models for food records.

FoodRecord is the aggregate root; its ingredient lines are value-like
children without a reference back to the record. Removing a record removes
its lines with it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from calai.domain.analysis.models import AnalysisResult, IngredientEstimate


class IngredientLine(BaseModel):
    """
    Editable ingredient line item of a food record.

    Attributes:
        name: Ingredient name
        total_calories: Calories for the whole portion
        calories_per_gram: Calorie density
        total_grams: Portion weight

    Example:
        >>> line = IngredientLine(name="Rice", total_grams=150, calories_per_gram=1.3)
        >>> line.recompute_total()
        >>> line.display_text
        'Rice - 150g (195 cal, 1.3 cal/g)'
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    total_calories: float = 0.0
    calories_per_gram: float = 0.0
    total_grams: float = 0.0

    @classmethod
    def from_estimate(cls, estimate: IngredientEstimate) -> IngredientLine:
        return cls(
            name=estimate.name,
            total_calories=estimate.total_calories,
            calories_per_gram=estimate.calories_per_gram,
            total_grams=estimate.total_grams,
        )

    def recompute_total(self) -> None:
        """Set total calories from weight and density."""
        self.total_calories = self.calories_per_gram * self.total_grams

    @property
    def display_text(self) -> str:
        return (
            f"{self.name} - {int(self.total_grams)}g "
            f"({int(self.total_calories)} cal, {self.calories_per_gram:.1f} cal/g)"
        )


class FoodRecord(BaseModel):
    """
    A logged meal with its ingredient breakdown.

    ``calories`` holds the figure shown for the meal. While the record has
    ingredient lines it tracks their sum; with no lines it falls back to
    ``manual_calories``, the figure the user (or the model) entered. Line
    edits never touch ``manual_calories``.

    Attributes:
        id: Record identity
        timestamp: When the meal was logged (set on save if missing)
        image_data: Encoded photo, kept even when analysis fails
        food_name: Dish name
        calories: Displayed calorie total
        manual_calories: Entered calorie figure, defaults to ``calories``
        notes: Free-form user notes
        ingredients: Ordered ingredient lines

    Example:
        >>> record = FoodRecord()
        >>> record.apply_analysis(result)
        >>> record.food_name
        'Salad'
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    timestamp: Optional[datetime] = None
    image_data: Optional[bytes] = Field(default=None, repr=False)
    food_name: str = ""
    calories: float = 0.0
    manual_calories: Optional[float] = None
    notes: Optional[str] = None
    ingredients: List[IngredientLine] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamps are UTC timezone-aware."""
        if v is None:
            return None
        if v.tzinfo is None:
            # Naive datetime → assume UTC
            return v.replace(tzinfo=timezone.utc)
        return v

    def model_post_init(self, __context: Any) -> None:
        if self.manual_calories is None:
            self.manual_calories = self.calories

    @property
    def total_calories(self) -> float:
        """Sum of line totals, or the manual figure when there are no lines."""
        if self.ingredients:
            return sum(line.total_calories for line in self.ingredients)
        return self.manual_calories if self.manual_calories is not None else self.calories

    # ═══════════════════════════════════════════════════════════
    # ANALYSIS
    # ═══════════════════════════════════════════════════════════

    def apply_analysis(self, result: AnalysisResult) -> None:
        """
        Overwrite name, calories and ingredients from a model result.

        Prior ingredient lines are discarded; no merge.
        """
        self.food_name = result.food_name
        self.calories = result.calories
        self.manual_calories = result.calories
        self.ingredients = [IngredientLine.from_estimate(item) for item in result.ingredients]

    # ═══════════════════════════════════════════════════════════
    # MANUAL EDITS
    # ═══════════════════════════════════════════════════════════

    def update_calories(self) -> None:
        """Set ``calories`` to the line sum, or the manual figure without lines."""
        self.calories = self.total_calories

    def set_manual_calories(self, calories: float) -> None:
        self.manual_calories = calories
        self.update_calories()

    def add_ingredient(self, line: Optional[IngredientLine] = None) -> IngredientLine:
        """Append a line (blank by default) and return it."""
        if line is None:
            line = IngredientLine()
        self.ingredients.append(line)
        if line.total_calories:
            self.update_calories()
        return line

    def remove_ingredients(self, indices: Iterable[int]) -> None:
        """
        Remove the lines at the given positions.

        Raises:
            IndexError: If any index is out of range
        """
        offsets = sorted(set(indices), reverse=True)
        for offset in offsets:
            if not 0 <= offset < len(self.ingredients):
                raise IndexError(f"No ingredient at index {offset}")
        for offset in offsets:
            del self.ingredients[offset]
        self.update_calories()

    def edit_ingredient(
        self,
        index: int,
        *,
        name: Optional[str] = None,
        total_grams: Optional[float] = None,
        calories_per_gram: Optional[float] = None,
        total_calories: Optional[float] = None,
    ) -> IngredientLine:
        """
        Edit one line and refresh the record total.

        Changing grams or calories per gram recomputes the line total,
        unless an explicit ``total_calories`` is given in the same call.

        Raises:
            IndexError: If index is out of range
        """
        if not 0 <= index < len(self.ingredients):
            raise IndexError(f"No ingredient at index {index}")

        line = self.ingredients[index]
        if name is not None:
            line.name = name
        if total_grams is not None:
            line.total_grams = total_grams
        if calories_per_gram is not None:
            line.calories_per_gram = calories_per_gram

        if total_calories is not None:
            line.total_calories = total_calories
        elif total_grams is not None or calories_per_gram is not None:
            line.recompute_total()

        self.update_calories()
        return line
