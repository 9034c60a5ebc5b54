"""
Response extraction and validation tests
"""

import copy
import json

import pytest

from mealgen.errors import ErrorKind, ResponseParsingError, ResponseValidationError
from mealgen.validation import ResponseValidator, extract_json

from conftest import QUICK_MEALS, VALID_RECIPE, meal_plan_payload


class TestExtractJson:
    """First JSON object in free text"""

    def test_tolerates_surrounding_prose(self):
        text = "Here is your recipe:\n```json\n" + json.dumps(VALID_RECIPE) + "\n```\nEnjoy!"
        assert extract_json(text)["title"] == VALID_RECIPE["title"]

    def test_braces_inside_strings(self):
        text = 'Sure! {"title": "Curly {brace} pasta", "note": "use \\"}\\" sparingly"} done'
        assert extract_json(text)["title"] == "Curly {brace} pasta"

    def test_skips_unparseable_leading_braces(self):
        text = 'Use {servings} servings. {"title": "Soup"}'
        assert extract_json(text) == {"title": "Soup"}

    def test_no_object_is_parsing_error(self):
        with pytest.raises(ResponseParsingError) as exc:
            extract_json("I cannot help with that.", provider="deepseek")
        assert exc.value.kind == ErrorKind.PARSING_ERROR
        assert exc.value.provider == "deepseek"

    def test_empty_text_is_parsing_error(self):
        with pytest.raises(ResponseParsingError):
            extract_json("   ")


class TestRecipeValidation:
    """Recipe structural rules"""

    def setup_method(self):
        self.validator = ResponseValidator()

    def test_accepts_minimal_recipe(self):
        recipe = {
            "title": "Toast",
            "servings": 1,
            "ingredients": [{"name": "Bread", "amount": 1, "unit": "slice"}],
            "instructions": ["Toast the bread"],
        }
        result = self.validator.validate("recipe", recipe)
        assert result.is_valid, result.errors

    def test_rejects_missing_ingredients(self):
        recipe = copy.deepcopy(VALID_RECIPE)
        del recipe["ingredients"]
        assert not self.validator.validate("recipe", recipe).is_valid

    @pytest.mark.parametrize("servings", [0, 25, "2", True, None])
    def test_rejects_servings_out_of_range(self, servings):
        recipe = copy.deepcopy(VALID_RECIPE)
        recipe["servings"] = servings
        assert not self.validator.validate("recipe", recipe).is_valid

    def test_rejects_short_title(self):
        recipe = copy.deepcopy(VALID_RECIPE)
        recipe["title"] = "Pb"
        assert not self.validator.validate("recipe", recipe).is_valid

    def test_rejects_ingredient_without_unit(self):
        recipe = copy.deepcopy(VALID_RECIPE)
        recipe["ingredients"][0] = {"name": "Chickpeas", "amount": 400}
        result = self.validator.validate("recipe", recipe)
        assert not result.is_valid
        assert any("unit" in error for error in result.errors)

    def test_rejects_empty_instructions(self):
        recipe = copy.deepcopy(VALID_RECIPE)
        recipe["instructions"] = []
        assert not self.validator.validate("recipe", recipe).is_valid

    def test_rejects_implausible_calories(self):
        recipe = copy.deepcopy(VALID_RECIPE)
        recipe["calories"] = 9000
        assert not self.validator.validate("recipe", recipe).is_valid


class TestMealPlanValidation:
    """Meal plan day count and meals"""

    def setup_method(self):
        self.validator = ResponseValidator()

    def test_accepts_seven_days_by_default(self):
        assert self.validator.validate("mealplan", meal_plan_payload(7)).is_valid

    def test_rejects_wrong_day_count(self):
        assert not self.validator.validate("mealplan", meal_plan_payload(6)).is_valid

    def test_expected_days_override(self):
        assert self.validator.validate("mealplan", meal_plan_payload(3), expected_days=3).is_valid

    def test_rejects_day_without_meals(self):
        plan = meal_plan_payload(7)
        plan["days"][2]["meals"] = []
        result = self.validator.validate("mealplan", plan)
        assert not result.is_valid
        assert any("Day 3" in error for error in result.errors)


class TestQuickMealValidation:
    """Quick meal suggestions"""

    def setup_method(self):
        self.validator = ResponseValidator()

    def test_accepts_suggestion_list(self):
        assert self.validator.validate("quickmeal", QUICK_MEALS).is_valid

    def test_accepts_single_suggestion(self):
        single = {"title": "Wrap", "ingredients": ["tortilla"], "quickInstructions": ["Roll it"]}
        assert self.validator.validate("quickmeal", single).is_valid

    def test_rejects_empty_suggestions(self):
        assert not self.validator.validate("quickmeal", {"suggestions": []}).is_valid


class TestParseAndValidate:
    """Combined extraction and validation"""

    def test_invalid_content_raises_validation_error(self):
        validator = ResponseValidator()
        text = json.dumps({"title": "Nothing", "servings": 2})
        with pytest.raises(ResponseValidationError) as exc:
            validator.parse_and_validate("recipe", text, provider="gemini")

        assert exc.value.kind == ErrorKind.VALIDATION_ERROR
        assert exc.value.retryable is False
        assert exc.value.errors
