"""
Identify food items in a photo of a fridge, freezer or pantry.

Goes through the HTTP gateway rather than dspy so a 429 and a 402 reach the
caller as distinct errors.
"""

from typing import Any

from pydantic import ValidationError

from mealplan.config import settings
from mealplan.errors import ParseError, UpstreamOtherError
from mealplan.logging import get_logger
from mealplan.schemas.inventory import DetectedIngredient
from mealplan.services.llm.gateway_client import GenerationGatewayClient
from mealplan.services.llm.prompts import FRIDGE_PHOTO_PROMPT_VERSION, FRIDGE_PHOTO_SYSTEM_TEMPLATE
from mealplan.services.parsing.response_parser import extract_json

logger = get_logger(__name__)

_CATEGORIES = {"fridge", "freezer", "pantry"}
_CONFIDENCE = {"high", "medium", "low"}


def _image_url(image: str) -> str:
    return image if image.startswith("data:") else f"data:image/jpeg;base64,{image}"


def _normalize(entry: dict[str, Any]) -> dict[str, Any]:
    category = str(entry.get("category") or "").lower()
    confidence = str(entry.get("confidence") or "").lower()
    return {
        **entry,
        "category": category if category in _CATEGORIES else "fridge",
        "confidence": confidence if confidence in _CONFIDENCE else "medium",
    }


def analyze_fridge_photo(image: str, client: GenerationGatewayClient | None = None) -> list[DetectedIngredient]:
    client = client or GenerationGatewayClient()
    messages = [
        {"role": "system", "content": FRIDGE_PHOTO_SYSTEM_TEMPLATE},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Which food items do you see? Return JSON only."},
                {"type": "image_url", "image_url": {"url": _image_url(image)}},
            ],
        },
    ]
    content = client.chat(
        messages,
        prompt_name="fridge_photo",
        prompt_version=FRIDGE_PHOTO_PROMPT_VERSION,
        model=settings.llm_model_vision,
        temperature=settings.llm_temperature_extract,
        max_tokens=2000,
    )

    # An unreadable vision reply is an upstream failure for this operation
    try:
        data = extract_json(content)
    except ParseError as e:
        raise UpstreamOtherError("Could not analyse the image") from e
    entries = data.get("ingredients", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise UpstreamOtherError("Could not analyse the image")

    detected: list[DetectedIngredient] = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        try:
            detected.append(DetectedIngredient.model_validate(_normalize(entry)))
        except ValidationError as e:
            logger.info("fridge_photo.skip name=%s error=%s", entry.get("name"), e.errors()[0]["msg"])
    logger.info("fridge_photo.analyzed items=%s", len(detected))
    return detected
