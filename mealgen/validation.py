"""
Response validation for generated recipes, meal plans and quick meals
Extracts JSON from raw provider text and checks structural rules per kind
"""

import json
import logging
from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Dict, List, Optional, Union

from .errors import ResponseParsingError, ResponseValidationError
from .models import GenerationKind

logger = logging.getLogger(__name__)

DEFAULT_MEAL_PLAN_DAYS = 7
MAX_INGREDIENTS = 50


@dataclass
class ValidationResult:
    """Outcome of a structural check"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def _matching_brace(text: str, start: int) -> Optional[int]:
    """Index of the brace closing the object opened at start, ignoring braces inside strings"""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index

    return None


def extract_json(text: str, provider: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the first JSON object embedded anywhere in text.

    Leading and trailing prose (or markdown fences) around the object are
    tolerated. Raises ResponseParsingError when no object parses.
    """
    if not text or not text.strip():
        raise ResponseParsingError("Empty response content", provider=provider)

    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is None:
            break
        try:
            parsed = json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)

    raise ResponseParsingError("No JSON object found in response", provider=provider)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class ResponseValidator:
    """Structural and domain checks for parsed provider content"""

    def __init__(self, meal_plan_days: int = DEFAULT_MEAL_PLAN_DAYS):
        self.meal_plan_days = meal_plan_days

    def validate(
        self,
        kind: Union[GenerationKind, str],
        parsed: Any,
        expected_days: Optional[int] = None,
    ) -> ValidationResult:
        kind = GenerationKind(kind)

        if not isinstance(parsed, dict):
            return ValidationResult(False, ["Response must be a JSON object"])

        if kind == GenerationKind.RECIPE:
            errors = self._recipe_errors(parsed)
        elif kind == GenerationKind.MEAL_PLAN:
            errors = self._meal_plan_errors(parsed, expected_days or self.meal_plan_days)
        else:
            errors = self._quick_meal_errors(parsed)

        return ValidationResult(is_valid=not errors, errors=errors)

    def parse_and_validate(
        self,
        kind: Union[GenerationKind, str],
        text: str,
        provider: Optional[str] = None,
        expected_days: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Extract and validate; raises ResponseParsingError or ResponseValidationError"""

        parsed = extract_json(text, provider=provider)
        result = self.validate(kind, parsed, expected_days=expected_days)
        if not result.is_valid:
            logger.warning(f"{GenerationKind(kind).value} response from {provider} failed validation: {result.errors}")
            raise ResponseValidationError(result.errors, provider=provider)
        return parsed

    def _recipe_errors(self, recipe: Dict[str, Any]) -> List[str]:
        errors = []

        title = recipe.get("title")
        if not isinstance(title, str) or len(title.strip()) < 3:
            errors.append("Recipe title is required and must be at least 3 characters")

        ingredients = recipe.get("ingredients")
        if not isinstance(ingredients, list) or not ingredients:
            errors.append("Recipe must have at least one ingredient")
        elif len(ingredients) > MAX_INGREDIENTS:
            errors.append(f"Recipe cannot have more than {MAX_INGREDIENTS} ingredients")
        else:
            for position, ingredient in enumerate(ingredients, start=1):
                errors.extend(self._ingredient_errors(position, ingredient))

        instructions = recipe.get("instructions")
        if not isinstance(instructions, list) or not instructions:
            errors.append("Recipe must have at least one instruction")
        else:
            for position, step in enumerate(instructions, start=1):
                text = step.get("instruction") if isinstance(step, dict) else step
                if not _non_empty_str(text):
                    errors.append(f"Instruction {position} must have text")

        servings = recipe.get("servings")
        if not _is_number(servings) or not 1 <= servings <= 20:
            errors.append("Recipe servings must be between 1 and 20")

        calories = recipe.get("calories")
        if calories is not None and (not _is_number(calories) or not 0 <= calories <= 5000):
            errors.append("Recipe calories must be between 0 and 5000")

        return errors

    def _ingredient_errors(self, position: int, ingredient: Any) -> List[str]:
        if not isinstance(ingredient, dict):
            return [f"Ingredient {position} must be an object with name, amount and unit"]

        errors = []
        if not _non_empty_str(ingredient.get("name")):
            errors.append(f"Ingredient {position} is missing a name")

        amount = ingredient.get("amount")
        if not ((_is_number(amount) and amount >= 0) or _non_empty_str(amount)):
            errors.append(f"Ingredient {position} is missing an amount")

        if not _non_empty_str(ingredient.get("unit")):
            errors.append(f"Ingredient {position} is missing a unit")

        return errors

    def _meal_plan_errors(self, plan: Dict[str, Any], expected_days: int) -> List[str]:
        days = plan.get("days")
        if not isinstance(days, list):
            return ["Meal plan must contain a days array"]

        errors = []
        if len(days) != expected_days:
            errors.append(f"Meal plan must contain exactly {expected_days} days, got {len(days)}")

        for position, day in enumerate(days, start=1):
            meals = day.get("meals") if isinstance(day, dict) else None
            if not isinstance(meals, list) or not meals:
                errors.append(f"Day {position} must have at least one meal")

        return errors

    def _quick_meal_errors(self, payload: Dict[str, Any]) -> List[str]:
        if "suggestions" not in payload:
            # single-suggestion shape
            errors = []
            if not _non_empty_str(payload.get("title")):
                errors.append("Quick meal must have a title")
            if not isinstance(payload.get("ingredients"), list) or not payload["ingredients"]:
                errors.append("Quick meal must have at least one ingredient")
            if not isinstance(payload.get("quickInstructions"), list) or not payload["quickInstructions"]:
                errors.append("Quick meal must have at least one instruction")
            return errors

        suggestions = payload["suggestions"]
        if not isinstance(suggestions, list) or not suggestions:
            return ["Quick meal response must contain at least one suggestion"]

        errors = []
        for position, suggestion in enumerate(suggestions, start=1):
            if not isinstance(suggestion, dict):
                errors.append(f"Suggestion {position} must be an object")
                continue
            if not (_non_empty_str(suggestion.get("title")) or _non_empty_str(suggestion.get("name"))):
                errors.append(f"Suggestion {position} must have a title")
            if not isinstance(suggestion.get("ingredients"), list) or not suggestion["ingredients"]:
                errors.append(f"Suggestion {position} must have ingredients")

        return errors
