"""
Prompt templates for recipe, meal plan and quick-meal generation
Templates are rendered by exact {name} token replacement
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from .errors import TemplateError

_TOKEN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class PromptTemplate:
    """A named prompt with declared variables"""
    id: str
    template: str
    variables: List[str] = field(default_factory=list)
    name: str = ""
    description: str = ""
    category: str = "recipe"
    version: str = "1.0"


def unresolved_variables(template: PromptTemplate, rendered: str) -> List[str]:
    """Declared variables whose {token} is still present after rendering"""
    present = set(_TOKEN.findall(rendered))
    return [name for name in template.variables if name in present]


def render(template: PromptTemplate, variables: Mapping[str, str], strict: bool = False) -> str:
    """
    Substitute each provided variable for its {name} token in one pass.

    Inserted values are never rescanned, so a value that itself looks like a
    token stays literal. Missing variables are left verbatim unless strict is
    set, in which case a TemplateError names them. JSON braces in the template
    are untouched since only exact tokens for provided keys are replaced.
    """
    for key, value in variables.items():
        if not isinstance(value, str):
            raise TemplateError(f"Variable '{key}' must be a string, got {type(value).__name__}")

    if strict:
        missing = [name for name in unresolved_variables(template, template.template) if name not in variables]
        if missing:
            raise TemplateError(
                f"Template '{template.id}' has unresolved variables: {', '.join(missing)}"
            )

    def substitute(match):
        name = match.group(1)
        return variables[name] if name in variables else match.group(0)

    return _TOKEN.sub(substitute, template.template)


RECIPE_JSON_SHAPE = """{
  "title": "Recipe name",
  "description": "Short description",
  "cuisineType": "cuisine",
  "mealType": ["dinner"],
  "difficultyLevel": "easy",
  "prepTimeMinutes": 10,
  "cookTimeMinutes": 20,
  "servings": 2,
  "calories": 450,
  "nutrition": {"protein": 20, "carbs": 50, "fat": 15, "fiber": 6, "sugar": 5, "sodium": 400},
  "ingredients": [{"name": "ingredient", "amount": 1, "unit": "cup", "notes": "optional"}],
  "instructions": [{"step": 1, "instruction": "What to do in this step", "durationMinutes": 5}],
  "equipment": ["pan"],
  "dietaryTags": ["vegetarian"],
  "allergenInfo": ["gluten"],
  "spiceLevel": "mild",
  "tips": ["tip"],
  "variations": ["variation"]
}"""


PROMPT_TEMPLATES: Dict[str, PromptTemplate] = {
    t.id: t for t in [
        PromptTemplate(
            id="recipe-generation",
            name="Recipe Generation",
            description="Generate a detailed recipe from user preferences",
            category="recipe",
            template=(
                "You are a home-cooking assistant. Create one recipe for these requirements:\n\n"
                "Meal Type: {mealType}\n"
                "Cuisine: {cuisineType}\n"
                "Servings: {servings}\n"
                "Max Cooking Time: {maxCookingTime} minutes\n"
                "Difficulty: {difficulty}\n"
                "Dietary Restrictions: {dietaryRestrictions}\n"
                "Allergies to Avoid: {allergies}\n\n"
                "{customPrompt}\n\n"
                "Respond with JSON only, in this format:\n"
                + RECIPE_JSON_SHAPE +
                "\n\nNutrition values must be realistic and every step practical."
            ),
            variables=[
                "mealType", "cuisineType", "servings", "maxCookingTime",
                "difficulty", "dietaryRestrictions", "allergies", "customPrompt",
            ],
        ),
        PromptTemplate(
            id="meal-plan-generation",
            name="Meal Plan Generation",
            description="Generate a meal plan between two dates",
            category="meal-plan",
            template=(
                "Plan meals for a user with this profile:\n"
                "- Activity Level: {activityLevel}\n"
                "- Primary Goal: {primaryGoal}\n"
                "- Daily Calories: {dailyCalories}\n"
                "- Macro Targets: {macroTargets}\n\n"
                "Plan from {startDate} to {endDate} with {mealsPerDay} meals per day.\n"
                "Cooking time preference: {cookingTimePreference}. Difficulty: {difficultyPreference}.\n"
                "Dietary restrictions: {dietaryRestrictions}. Cuisines: {cuisinePreferences}.\n"
                "Allergies: {allergies}. Disliked foods: {dislikedFoods}.\n"
                "Custom requests: {customRequests}\n\n"
                "Respond with JSON only:\n"
                "{\n"
                '  "title": "Plan name",\n'
                '  "planType": "weekly",\n'
                '  "averageDailyCalories": 2000,\n'
                '  "days": [{"date": "YYYY-MM-DD", "dayName": "Monday", "meals": [{"mealType": "breakfast", "recipe": {}}],\n'
                '            "dailyTotals": {"calories": 2000, "protein": 120, "carbs": 200, "fat": 70}}],\n'
                '  "shoppingList": [{"name": "item", "quantity": 1, "unit": "unit", "category": "produce"}],\n'
                '  "notes": ["note"]\n'
                "}"
            ),
            variables=[
                "activityLevel", "primaryGoal", "dailyCalories", "macroTargets",
                "startDate", "endDate", "mealsPerDay", "cookingTimePreference",
                "difficultyPreference", "dietaryRestrictions", "cuisinePreferences",
                "allergies", "dislikedFoods", "customRequests",
            ],
        ),
        PromptTemplate(
            id="weekly-meal-plan",
            name="Weekly Meal Plan",
            description="Generate a fixed-length weekly plan with an overview",
            category="meal-plan",
            template=(
                "You are a registered dietitian. Build a {days}-day meal plan.\n\n"
                "Daily calories: {dailyCalories}\n"
                "Daily protein (g): {dailyProtein}\n"
                "Meals per day: {mealsPerDay}\n"
                "Dietary restrictions: {dietaryRestrictions}\n"
                "Allergies: {allergies}\n"
                "Cuisines: {cuisinePreferences}\n"
                "Budget: {budget}\n\n"
                "Return exactly {days} entries in \"days\". Respond with JSON only:\n"
                "{\n"
                '  "title": "Plan name",\n'
                '  "overview": {"averageCalories": 2000, "prepStrategy": "Batch cook on Sunday"},\n'
                '  "days": [{"day": 1, "dayName": "Monday",\n'
                '            "meals": [{"mealType": "breakfast", "title": "Meal name", "calories": 400,\n'
                '                       "ingredients": ["item"], "prepTimeMinutes": 10}]}],\n'
                '  "shoppingList": [{"name": "item", "quantity": 1, "unit": "unit", "category": "produce"}]\n'
                "}"
            ),
            variables=[
                "days", "dailyCalories", "dailyProtein", "mealsPerDay",
                "dietaryRestrictions", "allergies", "cuisinePreferences", "budget",
            ],
        ),
        PromptTemplate(
            id="nutrition-analysis",
            name="Nutrition Analysis",
            description="Analyze nutrition content of a meal or recipe",
            category="nutrition",
            template=(
                "Analyze the nutrition of this meal:\n\n"
                "Recipe/Meal: {recipeContent}\n"
                "Serving Size: {servingSize}\n\n"
                "Respond with JSON only:\n"
                "{\n"
                '  "calories": 500,\n'
                '  "macronutrients": {"protein": {"grams": 30}, "carbohydrates": {"grams": 50}, "fat": {"grams": 20}},\n'
                '  "micronutrients": {"fiber": 8, "sugar": 6, "sodium": 500},\n'
                '  "healthScore": 7,\n'
                '  "recommendations": ["recommendation"]\n'
                "}"
            ),
            variables=["recipeContent", "servingSize"],
        ),
        PromptTemplate(
            id="ingredient-substitution",
            name="Ingredient Substitution",
            description="Suggest ingredient substitutions",
            category="substitution",
            template=(
                "Suggest substitutes for an ingredient.\n\n"
                "Original Ingredient: {originalIngredient}\n"
                "Recipe Context: {recipeContext}\n"
                "Dietary Restrictions: {dietaryRestrictions}\n"
                "Allergies: {allergies}\n"
                "Reason: {reason}\n\n"
                "Respond with JSON only:\n"
                "{\n"
                '  "originalIngredient": "name",\n'
                '  "substitutions": [{"substitute": "name", "ratio": "1:1", "notes": "", "impact": "minimal"}],\n'
                '  "bestSubstitute": "name",\n'
                '  "tips": ["tip"],\n'
                '  "warnings": ["warning"]\n'
                "}"
            ),
            variables=["originalIngredient", "recipeContext", "dietaryRestrictions", "allergies", "reason"],
        ),
        PromptTemplate(
            id="quick-meal-suggestion",
            name="Quick Meal Suggestion",
            description="Suggest quick meals from the user's current preferences",
            category="recipe",
            template=(
                "Suggest quick meals for these preferences:\n\n"
                "Servings: {servings}\n"
                "Time Available: {prepTime} minutes\n"
                "Diet: {diet}\n"
                "Cuisine: {cuisine}\n"
                "Mood: {mood}\n"
                "Budget: {budget}\n\n"
                "Respond with JSON only:\n"
                "{\n"
                '  "suggestions": [{"title": "Meal name", "description": "Short description",\n'
                '                   "totalTime": 20, "difficulty": "easy", "ingredients": ["1 cup rice"],\n'
                '                   "quickInstructions": ["Step one"], "calories": 450,\n'
                '                   "nutrition": {"protein": 20, "carbs": 50, "fat": 15}, "tags": ["quick"]}],\n'
                '  "tips": ["time-saving tip"],\n'
                '  "mealPrepIdeas": ["prep idea"]\n'
                "}"
            ),
            variables=["servings", "prepTime", "diet", "cuisine", "mood", "budget"],
        ),
    ]
}


def get_template(template_id: str) -> PromptTemplate:
    """Look up a template by id"""
    try:
        return PROMPT_TEMPLATES[template_id]
    except KeyError:
        raise TemplateError(f"Unknown prompt template: {template_id}") from None


def render_template(template_id: str, variables: Mapping[str, str], strict: bool = False) -> str:
    return render(get_template(template_id), variables, strict=strict)
