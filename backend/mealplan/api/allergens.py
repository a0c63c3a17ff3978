from fastapi import APIRouter

from mealplan.services.allergens import get_all_allergen_codes

router = APIRouter()


@router.get("/allergens")
def list_allergens():
    """Return allergen codes for the allergy picker."""
    return {"allergens": get_all_allergen_codes()}
