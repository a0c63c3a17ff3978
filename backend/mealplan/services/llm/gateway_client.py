"""
HTTP client for the OpenAI-compatible generation gateway.

Used where the caller must tell rate limiting (429) and exhausted credits
(402) apart from other failures: plan generation, fridge photos and meal
images. One request per call; no retries here.
"""

import json
import time
from typing import Any

import httpx
from sqlalchemy.exc import SQLAlchemyError

from mealplan.config import settings
from mealplan.errors import UpstreamOtherError, upstream_error_for_status
from mealplan.logging import get_logger
from mealplan.storage import db
from mealplan.storage.repositories import log_llm_call
from mealplan.utils.timing import elapsed_ms, format_duration

logger = get_logger(__name__)


class GenerationGatewayClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._base_url = (base_url or settings.llm_base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.llm_api_key
        self._timeout = timeout_s or settings.llm_timeout_s

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _post(self, path: str, payload: dict) -> dict:
        if not self._api_key:
            raise UpstreamOtherError("LLM_API_KEY is not configured")
        url = f"{self._base_url}{path}"
        try:
            resp = httpx.post(url, headers=self._headers(), json=payload, timeout=self._timeout)
        except httpx.HTTPError as e:
            logger.error("gateway.unreachable url=%s error=%s", url, e)
            raise UpstreamOtherError("Generation service is unreachable") from e
        if resp.status_code >= 400:
            logger.error("gateway.error url=%s status=%s body=%s", url, resp.status_code, resp.text[:500])
            raise upstream_error_for_status(resp.status_code, resp.text)
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamOtherError("Generation service returned a non-JSON body") from e

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        prompt_name: str,
        prompt_version: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = True,
    ) -> str:
        """Run one chat completion and return the assistant text."""
        model = model or settings.llm_model
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": settings.llm_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or settings.llm_max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        start = time.perf_counter()
        logger.info("[TIMING] llm.call.start name=%s version=%s model=%s", prompt_name, prompt_version, model)
        data = self._post("/chat/completions", payload)
        choices = data.get("choices") or []
        content = ((choices[0] if choices else {}).get("message") or {}).get("content")
        latency_ms = elapsed_ms(start)
        if not content:
            raise UpstreamOtherError("Generation service returned no content")
        self._record_call(prompt_name, prompt_version, model, messages, content, latency_ms)
        logger.info(
            "[TIMING] llm.call.end name=%s latency_ms=%s (%s) chars=%s",
            prompt_name,
            latency_ms,
            format_duration(latency_ms),
            len(content),
        )
        return content

    def generate_image(self, prompt: str, *, size: str = "1024x1024") -> str:
        """Return an image URL, or a data URL when the gateway answers with base64."""
        start = time.perf_counter()
        data = self._post(
            "/images/generations",
            {"model": settings.llm_model_image, "prompt": prompt, "size": size, "n": 1},
        )
        items = data.get("data") or []
        if not items:
            raise UpstreamOtherError("Image service returned no image")
        first = items[0]
        url = first.get("url") or (f"data:image/png;base64,{first['b64_json']}" if first.get("b64_json") else None)
        if not url:
            raise UpstreamOtherError("Image service returned no image")
        latency_ms = elapsed_ms(start)
        self._record_call("meal_image", "v1", settings.llm_model_image, prompt, url[:200], latency_ms)
        return url

    @staticmethod
    def _record_call(
        prompt_name: str,
        prompt_version: str,
        model: str,
        input_payload: Any,
        output_payload: str,
        latency_ms: int,
    ) -> None:
        try:
            with db.get_session() as session:
                log_llm_call(
                    session=session,
                    prompt_name=prompt_name,
                    prompt_version=prompt_version,
                    model=model,
                    input_payload=input_payload if isinstance(input_payload, str) else json.dumps(input_payload, ensure_ascii=False)[:20000],
                    output_payload=output_payload,
                    latency_ms=latency_ms,
                )
        except SQLAlchemyError as e:
            logger.warning("llm.call_log_failed name=%s error=%s", prompt_name, e)


gateway_client = GenerationGatewayClient()
