"""Domain types for MealCart."""
from typing import NewType, Optional, List, Any
from datetime import date
from pydantic import BaseModel, ConfigDict, Field, field_validator

from mealcart.cart.weeks import parse_week_id


# Strong types for IDs
LineId = NewType('LineId', int)


def _not_blank(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} cannot be blank")
    return value


class IngredientRequest(BaseModel):
    """A request to put some amount of an ingredient on a week's list.

    ``recipe_id``/``recipe_name`` are set when the request comes from a recipe
    and left empty for manually typed ingredients.
    """
    name: str
    amount: float = Field(allow_inf_nan=False)
    unit: str
    week_id: str
    recipe_id: Optional[str] = None
    recipe_name: Optional[str] = None

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "Ingredient name")

    @field_validator('unit')
    @classmethod
    def unit_not_blank(cls, v: str) -> str:
        return _not_blank(v, "Unit")

    @field_validator('week_id')
    @classmethod
    def week_id_is_iso(cls, v: str) -> str:
        parse_week_id(v)
        return v

    @field_validator('recipe_id', 'recipe_name')
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class LineDraft(BaseModel):
    """Full payload of a cart line, as written to the store."""
    name: str
    amount: float
    unit: str
    week_id: str
    checked: bool = False
    recipe_ids: List[str] = Field(default_factory=list)
    recipe_names: List[str] = Field(default_factory=list)
    price: Optional[float] = None
    note: Optional[str] = None

    def add_provenance(self, recipe_id: Optional[str], recipe_name: Optional[str]) -> None:
        """Record a contributing recipe once, keeping ids and names aligned."""
        if not recipe_id or recipe_id in self.recipe_ids:
            return
        self.recipe_ids.append(recipe_id)
        self.recipe_names.append(recipe_name or recipe_id)


class CartLine(LineDraft):
    """A persisted cart line as loaded from the store."""
    model_config = ConfigDict(from_attributes=True)

    id: LineId
    version: int = 1


class LineUpdate(LineDraft):
    """Replacement payload for an existing line, planned against ``expected_version``."""
    line_id: LineId
    expected_version: int


class RejectedRequest(BaseModel):
    """An incoming request the engine dropped from a batch."""
    index: int
    payload: Any = None
    reason: str


class ReconciliationPlan(BaseModel):
    """Writes needed to fold a batch of requests into the cart."""
    inserts: List[LineDraft] = Field(default_factory=list)
    updates: List[LineUpdate] = Field(default_factory=list)
    rejected: List[RejectedRequest] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.inserts and not self.updates


class RecipeIngredient(BaseModel):
    """An ingredient line of a recipe."""
    name: str
    amount: float = Field(allow_inf_nan=False)
    unit: Optional[str] = None


class Recipe(BaseModel):
    """The parts of a recipe the cart producers need."""
    id: str
    title: str
    servings: Optional[int] = None
    ingredients: List[RecipeIngredient] = Field(default_factory=list)


class PlannedMeal(BaseModel):
    """A recipe scheduled on a day of the meal planner."""
    day: date
    recipe: Recipe
