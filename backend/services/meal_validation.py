import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Union

from errors import ValidationError
from services.messages import message_text

logger = logging.getLogger("meal-orders")


@dataclass
class Meal:
    id: str
    name: str
    description: str = ""
    image: str = ""
    ingredients: List[Any] = field(default_factory=list)
    allergens: List[Any] = field(default_factory=list)
    chefNote: str = ""


@dataclass
class NestedMealSelection:
    """Cart entry that carries the meal under a ``meal`` key."""

    meal: Dict[str, Any]


@dataclass
class FlatMealSelection:
    meal: Dict[str, Any]


MealSelection = Union[NestedMealSelection, FlatMealSelection]


def classify_selection(entry: Any, position: int) -> MealSelection:
    if not isinstance(entry, dict):
        raise ValidationError(message_text("meal_not_object", position=position))
    nested = entry.get("meal")
    if isinstance(nested, dict):
        return NestedMealSelection(meal=nested)
    return FlatMealSelection(meal=entry)


def _list_or_empty(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def decode_meal_selection(entry: Any, position: int) -> Meal:
    record = classify_selection(entry, position).meal
    raw_id = record.get("id")
    if not isinstance(raw_id, str) or not raw_id.strip():
        label = record.get("name") or message_text("meal_position_label", position=position)
        raise ValidationError(message_text("meal_invalid_id", label=label))
    return Meal(
        id=raw_id.strip(),
        name=record.get("name") or message_text("meal_default_name", number=position + 1),
        description=record.get("description") or "",
        image=record.get("image") or "",
        ingredients=_list_or_empty(record.get("ingredients")),
        allergens=_list_or_empty(record.get("allergens")),
        chefNote=record.get("chefNote") or "",
    )


def prepare_meals_for_database(meals: Any) -> List[Dict[str, Any]]:
    """Normalise a cart's meal selections into the shape stored on ``orders.meals``.

    Each entry is either a nested selection (``{"meal": {...}}``) or the meal
    record itself. Fails on the first entry without a usable id, so callers
    never see a partial list.
    """
    if not isinstance(meals, list):
        logger.error("meals is not a list: %r", type(meals).__name__)
        raise ValidationError(message_text("no_meals"))

    validated: List[Meal] = []
    for position, entry in enumerate(meals):
        try:
            validated.append(decode_meal_selection(entry, position))
        except ValidationError:
            logger.error("Rejected meal selection at position %s", position)
            raise

    logger.debug("Validated %s meals ids=%s", len(validated), [meal.id for meal in validated])
    return [asdict(meal) for meal in validated]
