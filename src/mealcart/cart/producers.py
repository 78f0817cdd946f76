"""Build ingredient request batches from recipes and meal plans."""
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from mealcart.config.settings import get_settings
from mealcart.domain.types import IngredientRequest, PlannedMeal, Recipe
from mealcart.utils.logger import get_logger
from .engine import RequestLike
from .weeks import week_days

logger = get_logger(__name__)


def _unit_or_default(unit: Optional[str]) -> str:
    if unit and unit.strip():
        return unit
    return get_settings().DEFAULT_UNIT


def _build(payload: Dict[str, Any]) -> RequestLike:
    # Bad recipe data stays in the batch as a raw mapping so that
    # reconciliation rejects that one entry instead of the whole batch.
    try:
        return IngredientRequest(**payload)
    except ValidationError as e:
        logger.warning(
            "Passing malformed ingredient on for rejection",
            recipe_id=payload.get("recipe_id"),
            ingredient=payload.get("name"),
            errors=e.error_count(),
        )
        return payload


def requests_from_recipe(
    recipe: Recipe,
    week_id: str,
    multiplier: float = 1.0,
    selected: Optional[Sequence[int]] = None,
) -> List[RequestLike]:
    """
    One request per ingredient of ``recipe``, scaled to the chosen servings.

    Args:
        recipe: Recipe whose ingredients are added.
        week_id: Week the ingredients are bought for.
        multiplier: Serving multiplier applied to every amount.
        selected: Indexes of the ingredients to include, in the order given.
            All ingredients when omitted.

    Returns:
        ``IngredientRequest`` models. An ingredient that does not make a valid
        request is returned as its raw mapping, which ``reconcile`` reports in
        ``plan.rejected``.
    """
    indexes = range(len(recipe.ingredients)) if selected is None else selected
    requests = []
    for index in indexes:
        ingredient = recipe.ingredients[index]
        requests.append(_build({
            "name": ingredient.name,
            "amount": round(ingredient.amount * multiplier, 2),
            "unit": _unit_or_default(ingredient.unit),
            "week_id": week_id,
            "recipe_id": recipe.id,
            "recipe_name": recipe.title,
        }))
    return requests


def requests_for_week(meals: Iterable[PlannedMeal], week_id: str) -> List[RequestLike]:
    """
    One request per ingredient of every meal planned in the given week.

    Meals are taken in day order. A recipe planned twice contributes twice;
    merging duplicates is left to reconciliation.
    """
    days = set(week_days(week_id))
    in_week = sorted((meal for meal in meals if meal.day in days), key=lambda meal: meal.day)
    requests = []
    for meal in in_week:
        requests.extend(requests_from_recipe(meal.recipe, week_id))
    return requests


def single_request(
    name: str,
    amount: float,
    unit: Optional[str],
    week_id: str,
    recipe: Optional[Recipe] = None,
) -> IngredientRequest:
    """Request for one ingredient typed in or picked from a detail screen."""
    return IngredientRequest(
        name=name,
        amount=amount,
        unit=_unit_or_default(unit),
        week_id=week_id,
        recipe_id=recipe.id if recipe else None,
        recipe_name=recipe.title if recipe else None,
    )
