"""
FastAPI dependencies resolving the shared orchestrator and service
"""

from fastapi import Request

from mealgen.orchestrator import RequestOrchestrator
from mealgen.service import MealPlanningService


def get_orchestrator(request: Request) -> RequestOrchestrator:
    return request.app.state.orchestrator


def get_meal_service(request: Request) -> MealPlanningService:
    return request.app.state.meal_service
