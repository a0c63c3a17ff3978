from fastapi import APIRouter

from mealplan.api.allergens import router as allergens_router
from mealplan.api.calories import router as calories_router
from mealplan.api.health import router as health_router
from mealplan.api.inventory import router as inventory_router
from mealplan.api.meal_plans import router as meal_plans_router
from mealplan.api.shopping import router as shopping_router

router = APIRouter(prefix="/api")
router.include_router(health_router)
router.include_router(meal_plans_router)
router.include_router(shopping_router)
router.include_router(inventory_router)
router.include_router(calories_router)
router.include_router(allergens_router)
