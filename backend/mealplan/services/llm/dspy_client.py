import time
from typing import Any

import dspy

from mealplan.config import settings
from mealplan.logging import get_logger
from mealplan.storage import db
from mealplan.storage.repositories import log_llm_call
from mealplan.utils.timing import elapsed_ms, format_duration

logger = get_logger(__name__)


def _make_lm(model: str, temperature: float | None = None, max_tokens: int = 2048) -> dspy.LM:
    return dspy.LM(
        f"{settings.llm_provider}/{model}",
        api_key=settings.llm_api_key,
        api_base=settings.llm_base_url,
        temperature=settings.llm_temperature_extract if temperature is None else temperature,
        max_tokens=max_tokens,
        timeout=settings.llm_timeout_s,
    )


def configure_dspy() -> None:
    lm = _make_lm(settings.llm_model)
    dspy.settings.configure(lm=lm)
    logger.info("llm.configure provider=%s model=%s", settings.llm_provider, settings.llm_model)


def run_with_logging(
    prompt_name: str,
    prompt_version: str,
    fn: Any,
    *,
    model: str | None = None,
    **kwargs: Any,
) -> Any:
    """Run a dspy program, persist an LLMCallLog row and log timing."""
    model_name = model or settings.llm_model
    start = time.perf_counter()
    logger.info("[TIMING] llm.call.start name=%s version=%s model=%s", prompt_name, prompt_version, model_name)
    if model is not None:
        with dspy.context(lm=_make_lm(model)):
            result = fn(**kwargs)
    else:
        result = fn(**kwargs)
    latency_ms = elapsed_ms(start)
    with db.get_session() as session:
        log_llm_call(
            session=session,
            prompt_name=prompt_name,
            prompt_version=prompt_version,
            model=model_name,
            input_payload=str(kwargs)[:20000],
            output_payload=str(result),
            latency_ms=latency_ms,
        )
    logger.info(
        "[TIMING] llm.call.end name=%s latency_ms=%s (%s)",
        prompt_name,
        latency_ms,
        format_duration(latency_ms),
    )
    return result
