"""
Static fallback content served when every provider failed
Each kind has canned content that passes its own validation rules
"""

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Union

from .models import FALLBACK_PROVIDER, AIResponse, GenerationKind, TokenUsage

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "I apologize, but I'm currently unable to process your request. Please try again later."

FALLBACK_RECIPE: Dict[str, Any] = {
    "title": "Simple Pasta with Garlic",
    "description": "A quick and easy pasta dish",
    "cuisineType": "italian",
    "mealType": ["lunch", "dinner"],
    "difficultyLevel": "easy",
    "prepTimeMinutes": 5,
    "cookTimeMinutes": 15,
    "servings": 2,
    "calories": 400,
    "nutrition": {"protein": 12, "carbs": 60, "fat": 15, "fiber": 3, "sugar": 3, "sodium": 400},
    "ingredients": [
        {"name": "Pasta", "amount": 200, "unit": "grams", "notes": "Any type"},
        {"name": "Garlic", "amount": 2, "unit": "cloves", "notes": "Minced"},
        {"name": "Olive oil", "amount": 2, "unit": "tablespoons", "notes": "Extra virgin"},
    ],
    "instructions": [
        {"step": 1, "instruction": "Cook pasta according to package directions", "durationMinutes": 10},
        {"step": 2, "instruction": "Heat olive oil and saute garlic", "durationMinutes": 2},
        {"step": 3, "instruction": "Toss pasta with garlic oil", "durationMinutes": 1},
    ],
    "equipment": ["pot", "pan", "colander"],
    "dietaryTags": ["vegetarian"],
    "allergenInfo": ["gluten"],
    "spiceLevel": "mild",
    "tips": ["Don't burn the garlic"],
    "variations": ["Add vegetables", "Use different pasta shapes"],
}

FALLBACK_QUICK_MEAL: Dict[str, Any] = {
    "suggestions": [
        {
            "title": "Chickpea and Spinach Skillet",
            "description": "Pantry chickpeas warmed with garlic and greens",
            "totalTime": 15,
            "difficulty": "easy",
            "ingredients": ["1 can chickpeas", "2 cups spinach", "2 cloves garlic", "1 tbsp olive oil"],
            "quickInstructions": [
                "Warm olive oil and garlic in a skillet",
                "Add drained chickpeas and cook for 5 minutes",
                "Stir in spinach until wilted and season to taste",
            ],
            "calories": 380,
            "nutrition": {"protein": 15, "carbs": 45, "fat": 14},
            "tags": ["quick", "vegan"],
        }
    ],
    "tips": ["Keep canned legumes on hand for fast meals"],
    "mealPrepIdeas": ["Cook a batch of grains at the start of the week"],
}

# rotated by day so a plan has variety without randomness
MEAL_TEMPLATES: Dict[str, List[Dict[str, Any]]] = {
    "breakfast": [
        {"title": "Overnight Oats with Berries", "calories": 380, "prepTimeMinutes": 5},
        {"title": "Veggie Scramble on Toast", "calories": 420, "prepTimeMinutes": 15},
        {"title": "Greek Yogurt Parfait", "calories": 350, "prepTimeMinutes": 5},
    ],
    "lunch": [
        {"title": "Quinoa Salad with Roasted Vegetables", "calories": 520, "prepTimeMinutes": 25},
        {"title": "Lentil Soup with Crusty Bread", "calories": 480, "prepTimeMinutes": 30},
        {"title": "Hummus and Veggie Wrap", "calories": 450, "prepTimeMinutes": 10},
    ],
    "dinner": [
        {"title": "Simple Pasta with Garlic", "calories": 600, "prepTimeMinutes": 20},
        {"title": "Sheet Pan Chicken and Potatoes", "calories": 650, "prepTimeMinutes": 40},
        {"title": "Vegetable Stir-Fry with Rice", "calories": 580, "prepTimeMinutes": 25},
        {"title": "Baked Salmon with Greens", "calories": 620, "prepTimeMinutes": 30},
    ],
}

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def fallback_meal_plan(days: int = 7) -> Dict[str, Any]:
    """Template-built plan with one entry per day and three meals each"""

    plan_days = []
    for day in range(1, days + 1):
        meals = []
        for meal_type, options in MEAL_TEMPLATES.items():
            template = options[(day - 1) % len(options)]
            meals.append({"mealType": meal_type, **template})
        plan_days.append({
            "day": day,
            "dayName": DAY_NAMES[(day - 1) % len(DAY_NAMES)],
            "meals": meals,
            "dailyTotals": {"calories": sum(meal["calories"] for meal in meals)},
        })

    average = round(sum(d["dailyTotals"]["calories"] for d in plan_days) / days) if days else 0
    return {
        "title": "Basic Weekly Meal Plan",
        "description": "A simple and balanced meal plan",
        "planType": "weekly",
        "overview": {
            "averageCalories": average,
            "prepStrategy": "Template-based meal planning",
        },
        "days": plan_days,
        "shoppingList": [],
        "notes": ["This is a fallback meal plan. Please try again for a personalized plan."],
    }


def fallback_payload(
    kind: Optional[Union[GenerationKind, str]] = None,
    expected_days: Optional[int] = None,
) -> Optional[Dict[str, Any]]:
    """Canned structured content for a kind, or None when no kind applies"""

    if kind is None:
        return None

    kind = GenerationKind(kind)
    if kind == GenerationKind.RECIPE:
        return copy.deepcopy(FALLBACK_RECIPE)
    if kind == GenerationKind.MEAL_PLAN:
        return fallback_meal_plan(expected_days or 7)
    return copy.deepcopy(FALLBACK_QUICK_MEAL)


def fallback_response(
    request_id: str,
    kind: Optional[Union[GenerationKind, str]] = None,
    expected_days: Optional[int] = None,
) -> AIResponse:
    """Degraded-but-present response: provider and model "fallback", zero cost"""

    payload = fallback_payload(kind, expected_days)
    content = APOLOGY_TEXT if payload is None else json.dumps(payload)

    logger.info(f"Serving fallback content for {request_id} (kind={kind})")
    return AIResponse(
        content=content,
        provider=FALLBACK_PROVIDER,
        model=FALLBACK_PROVIDER,
        usage=TokenUsage(),
        cost=0.0,
        request_id=request_id,
    )
