"""
Meal generation service
Builds templated prompts from user preferences and returns parsed, validated content
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import Field

from .errors import GenerationError
from .fallback import fallback_payload
from .models import AIRequest, AIResponse, CamelModel, GenerationKind
from .orchestrator import RequestOrchestrator
from .prompts import render_template
from .quota import ActionType
from .validation import ResponseValidator, extract_json

logger = logging.getLogger(__name__)


def _joined(values: List[str], default: str = "none") -> str:
    return ", ".join(values) if values else default


class RecipeRequest(CamelModel):
    """Recipe generation request model"""
    user_id: Optional[str] = None
    meal_type: str = "dinner"
    cuisine_type: str = "any"
    servings: int = Field(default=2, ge=1, le=20)
    max_cooking_time: int = Field(default=60, ge=5, le=480)
    difficulty: str = "medium"
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    custom_prompt: Optional[str] = Field(default=None, max_length=1000)


class MealPlanRequest(CamelModel):
    """Weekly meal planning request model"""
    user_id: Optional[str] = None
    days: int = Field(default=7, ge=1, le=14)
    daily_calories: int = Field(default=2000, ge=800, le=6000)
    daily_protein: Optional[int] = Field(default=None, ge=0, le=400)
    meals_per_day: int = Field(default=3, ge=1, le=6)
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    cuisine_preferences: List[str] = Field(default_factory=list)
    budget: Optional[str] = None


class QuickMealRequest(CamelModel):
    """Quick meal suggestion request model"""
    user_id: Optional[str] = None
    servings: int = Field(default=2, ge=1, le=20)
    prep_time: int = Field(default=20, ge=5, le=120)
    diet: str = "any"
    cuisine: str = "any"
    mood: Optional[str] = None
    budget: Optional[str] = None


class SubstitutionRequest(CamelModel):
    """Ingredient substitution request model"""
    user_id: Optional[str] = None
    original_ingredient: str = Field(..., min_length=1, max_length=200)
    recipe_context: str = ""
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    reason: str = "dietary preferences"


@dataclass
class GenerationResult:
    """Parsed content plus the response it came from"""
    data: Dict[str, Any]
    response: AIResponse
    degraded: bool = False


class MealPlanningService:
    """Recipe, meal plan, quick meal and substitution generation over one orchestrator"""

    def __init__(self, orchestrator: RequestOrchestrator, validator: Optional[ResponseValidator] = None):
        self.orchestrator = orchestrator
        self.validator = validator or orchestrator.validator

    async def generate_recipe(self, request: RecipeRequest) -> GenerationResult:
        prompt = render_template("recipe-generation", {
            "mealType": request.meal_type,
            "cuisineType": request.cuisine_type,
            "servings": str(request.servings),
            "maxCookingTime": str(request.max_cooking_time),
            "difficulty": request.difficulty,
            "dietaryRestrictions": _joined(request.dietary_restrictions),
            "allergies": _joined(request.allergies),
            "customPrompt": request.custom_prompt or "",
        })

        response = await self.orchestrator.generate(
            AIRequest(prompt=prompt, user_id=request.user_id, temperature=0.7, max_tokens=2000),
            kind=GenerationKind.RECIPE,
            action=ActionType.RECIPE.value,
        )
        return self._structured_result(GenerationKind.RECIPE, response)

    async def generate_meal_plan(self, request: MealPlanRequest) -> GenerationResult:
        prompt = render_template("weekly-meal-plan", {
            "days": str(request.days),
            "dailyCalories": str(request.daily_calories),
            "dailyProtein": str(request.daily_protein) if request.daily_protein is not None else "balanced",
            "mealsPerDay": str(request.meals_per_day),
            "dietaryRestrictions": _joined(request.dietary_restrictions),
            "allergies": _joined(request.allergies),
            "cuisinePreferences": _joined(request.cuisine_preferences, default="any"),
            "budget": request.budget or "moderate",
        })

        response = await self.orchestrator.generate(
            AIRequest(prompt=prompt, user_id=request.user_id, temperature=0.8, max_tokens=4000),
            kind=GenerationKind.MEAL_PLAN,
            action=ActionType.MEAL_PLAN.value,
            expected_days=request.days,
        )
        return self._structured_result(GenerationKind.MEAL_PLAN, response, expected_days=request.days)

    async def suggest_quick_meals(self, request: QuickMealRequest) -> GenerationResult:
        prompt = render_template("quick-meal-suggestion", {
            "servings": str(request.servings),
            "prepTime": str(request.prep_time),
            "diet": request.diet,
            "cuisine": request.cuisine,
            "mood": request.mood or "anything",
            "budget": request.budget or "moderate",
        })

        response = await self.orchestrator.generate(
            AIRequest(prompt=prompt, user_id=request.user_id, temperature=0.9, max_tokens=1500),
            kind=GenerationKind.QUICK_MEAL,
            action=ActionType.QUICK_MEAL.value,
        )
        return self._structured_result(GenerationKind.QUICK_MEAL, response)

    async def suggest_substitutions(self, request: SubstitutionRequest) -> GenerationResult:
        prompt = render_template("ingredient-substitution", {
            "originalIngredient": request.original_ingredient,
            "recipeContext": request.recipe_context or "general cooking",
            "dietaryRestrictions": _joined(request.dietary_restrictions),
            "allergies": _joined(request.allergies),
            "reason": request.reason,
        })

        response = await self.orchestrator.generate(
            AIRequest(prompt=prompt, user_id=request.user_id, temperature=0.6, max_tokens=1000),
            action=ActionType.SUBSTITUTION.value,
        )

        if not response.is_fallback:
            try:
                return GenerationResult(data=extract_json(response.content, provider=response.provider), response=response)
            except GenerationError as e:
                logger.warning(f"Unreadable substitution response from {response.provider}: {e.message}")

        return GenerationResult(
            data={
                "originalIngredient": request.original_ingredient,
                "substitutions": [],
                "tips": ["Substitution suggestions are temporarily unavailable. Please try again later."],
                "warnings": [],
            },
            response=response,
            degraded=True,
        )

    def _structured_result(
        self,
        kind: GenerationKind,
        response: AIResponse,
        expected_days: Optional[int] = None,
    ) -> GenerationResult:
        """
        Parse content that the orchestrator already validated. A cached response
        stored for an unvalidated raw prompt can still fail here, in which case
        the canned content for the kind is served instead.
        """
        try:
            data = self.validator.parse_and_validate(
                kind,
                response.content,
                provider=response.provider,
                expected_days=expected_days,
            )
        except GenerationError as e:
            logger.warning(f"Serving canned {kind.value} content: {e.message}")
            return GenerationResult(data=fallback_payload(kind, expected_days), response=response, degraded=True)

        return GenerationResult(data=data, response=response, degraded=response.is_fallback)
