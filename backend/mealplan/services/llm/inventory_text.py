"""Turn free text like "6 æg, 1 l mælk og et halvt kg smør" into inventory items."""

from datetime import date
from typing import Any

import dspy
from pydantic import ValidationError

from mealplan.errors import ParseError, UpstreamOtherError
from mealplan.logging import get_logger
from mealplan.schemas.inventory import InventoryCategory, ParsedInventoryItem
from mealplan.services.llm.dspy_client import run_with_logging
from mealplan.services.llm.prompts import INVENTORY_TEXT_PROMPT_VERSION, INVENTORY_TEXT_TEMPLATE
from mealplan.services.parsing.response_parser import extract_json

logger = get_logger(__name__)


class InventoryTextSignature(dspy.Signature):
    """Extract kitchen inventory items from informal text."""

    text: str = dspy.InputField()
    prompt_template: str = dspy.InputField()
    items_json: str = dspy.OutputField(desc="JSON list of {ingredient_name, quantity, unit, category, expires_at}")


class InventoryTextParser(dspy.Module):
    def __init__(self) -> None:
        super().__init__()
        self.predict = dspy.Predict(InventoryTextSignature)

    def forward(self, text: str, category: str, today: str) -> dspy.Prediction:
        template = INVENTORY_TEXT_TEMPLATE.format(category=category, today=today)
        return self.predict(text=text, prompt_template=template)


def _item_list(data: Any) -> list:
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ParseError(detail={"reason": "expected a list of inventory items"})
    return data


def parse_inventory_text(text: str, category: InventoryCategory = "fridge") -> list[ParsedInventoryItem]:
    try:
        prediction = run_with_logging(
            prompt_name="inventory_text",
            prompt_version=INVENTORY_TEXT_PROMPT_VERSION,
            fn=InventoryTextParser(),
            text=text,
            category=category,
            today=date.today().isoformat(),
        )
    except Exception as e:
        logger.error("inventory_text.failed error=%s", e)
        raise UpstreamOtherError("Could not read the inventory text right now") from e

    raw = str(getattr(prediction, "items_json", "") or "")
    items: list[ParsedInventoryItem] = []
    for index, entry in enumerate(_item_list(extract_json(raw))):
        if not isinstance(entry, dict) or not entry.get("ingredient_name"):
            logger.info("inventory_text.skip index=%s reason=no ingredient_name", index)
            continue
        try:
            # The caller picked the storage location; the model does not override it
            items.append(ParsedInventoryItem.model_validate({**entry, "category": category}))
        except ValidationError as e:
            raise ParseError(detail={"index": index, "errors": [err["msg"] for err in e.errors()]}) from e
    logger.info("inventory_text.parsed items=%s category=%s", len(items), category)
    return items
