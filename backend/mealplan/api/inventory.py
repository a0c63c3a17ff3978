from fastapi import APIRouter, Depends

from mealplan.api.deps import current_user
from mealplan.schemas.inventory import (
    FridgePhotoRequest,
    FridgePhotoResponse,
    InventoryTextRequest,
    InventoryTextResponse,
)
from mealplan.services.llm.fridge_photo import analyze_fridge_photo
from mealplan.services.llm.inventory_text import parse_inventory_text
from mealplan.storage.models import UserProfile
from mealplan.utils.timing import time_span

router = APIRouter(prefix="/inventory")


@router.post("/photo", response_model=FridgePhotoResponse)
def analyze_photo(body: FridgePhotoRequest, user: UserProfile = Depends(current_user)) -> FridgePhotoResponse:
    with time_span("inventory.photo", user_id=user.id):
        ingredients = analyze_fridge_photo(body.image)
    return FridgePhotoResponse(ingredients=ingredients, count=len(ingredients))


@router.post("/parse-text", response_model=InventoryTextResponse)
def parse_text(body: InventoryTextRequest, user: UserProfile = Depends(current_user)) -> InventoryTextResponse:
    with time_span("inventory.parse_text", user_id=user.id, chars=len(body.text)):
        items = parse_inventory_text(body.text, body.category)
    return InventoryTextResponse(items=items)
