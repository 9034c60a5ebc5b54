"""
Generation routes
Raw prompts plus recipe, meal plan, quick meal and substitution generation
"""

from fastapi import APIRouter, Depends
import structlog

from mealgen.orchestrator import RequestOrchestrator
from mealgen.service import (
    GenerationResult,
    MealPlanningService,
    MealPlanRequest,
    QuickMealRequest,
    RecipeRequest,
    SubstitutionRequest,
)
from ..dependencies import get_meal_service, get_orchestrator
from ..models import GenerateRequest, GenerationEnvelope, ResponseMetadata

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1", tags=["Generation"])


def _envelope(result: GenerationResult) -> GenerationEnvelope:
    return GenerationEnvelope(
        success=True,
        data=result.data,
        metadata=ResponseMetadata.from_response(result.response, degraded=result.degraded),
    )


def _log_result(event: str, result: GenerationResult, user_id):
    logger.info(
        event,
        user_id=user_id,
        provider=result.response.provider,
        request_id=result.response.request_id,
        tokens=result.response.usage.total_tokens,
        degraded=result.degraded,
    )


@router.post("/generate", response_model=GenerationEnvelope)
async def generate(
    body: GenerateRequest,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
):
    """Generate text for a raw prompt, optionally validated as a recipe, meal plan or quick meal"""

    response = await orchestrator.generate(body.to_ai_request(), kind=body.kind)

    logger.info(
        "Prompt generated",
        user_id=body.user_id,
        provider=response.provider,
        request_id=response.request_id,
        tokens=response.usage.total_tokens,
    )
    return GenerationEnvelope(
        success=True,
        data=response.content,
        metadata=ResponseMetadata.from_response(response),
    )


@router.post("/recipes/generate", response_model=GenerationEnvelope)
async def generate_recipe(
    body: RecipeRequest,
    service: MealPlanningService = Depends(get_meal_service),
):
    result = await service.generate_recipe(body)
    _log_result("Recipe generated", result, body.user_id)
    return _envelope(result)


@router.post("/meal-plans/generate", response_model=GenerationEnvelope)
async def generate_meal_plan(
    body: MealPlanRequest,
    service: MealPlanningService = Depends(get_meal_service),
):
    result = await service.generate_meal_plan(body)
    _log_result("Meal plan generated", result, body.user_id)
    return _envelope(result)


@router.post("/quick-meals/generate", response_model=GenerationEnvelope)
async def generate_quick_meals(
    body: QuickMealRequest,
    service: MealPlanningService = Depends(get_meal_service),
):
    result = await service.suggest_quick_meals(body)
    _log_result("Quick meals generated", result, body.user_id)
    return _envelope(result)


@router.post("/substitutions/suggest", response_model=GenerationEnvelope)
async def suggest_substitutions(
    body: SubstitutionRequest,
    service: MealPlanningService = Depends(get_meal_service),
):
    result = await service.suggest_substitutions(body)
    _log_result("Substitutions suggested", result, body.user_id)
    return _envelope(result)
