"""Tests for the generation gateway client and its error mapping."""

import httpx
import pytest
import respx
from httpx import Response
from sqlmodel import select

from mealplan.errors import UpstreamOtherError, UpstreamQuotaExhausted, UpstreamRateLimited
from mealplan.services.llm.gateway_client import GenerationGatewayClient
from mealplan.storage.models import LLMCallLog

BASE_URL = "https://gateway.test/v1"


def _client(api_key="sk-test"):
    return GenerationGatewayClient(base_url=BASE_URL, api_key=api_key, timeout_s=5)


def _chat(client):
    return client.chat([{"role": "user", "content": "hi"}], prompt_name="meal_plan", prompt_version="v5")


@respx.mock
def test_chat_returns_content_and_logs_call(patched_db, session):
    route = respx.post(f"{BASE_URL}/chat/completions").mock(
        return_value=Response(200, json={"choices": [{"message": {"content": '{"dinner": []}'}}]})
    )
    assert _chat(_client()) == '{"dinner": []}'
    sent = route.calls.last.request
    assert sent.headers["Authorization"] == "Bearer sk-test"
    logs = list(session.exec(select(LLMCallLog)))
    assert [log.prompt_name for log in logs] == ["meal_plan"]


@respx.mock
def test_429_is_rate_limited(patched_db):
    respx.post(f"{BASE_URL}/chat/completions").mock(return_value=Response(429, text="slow down"))
    with pytest.raises(UpstreamRateLimited) as exc_info:
        _chat(_client())
    assert exc_info.value.status_code == 429


@respx.mock
def test_402_is_quota_exhausted(patched_db):
    respx.post(f"{BASE_URL}/chat/completions").mock(return_value=Response(402, text="no credits"))
    with pytest.raises(UpstreamQuotaExhausted):
        _chat(_client())


@respx.mock
def test_other_status_is_upstream_error(patched_db):
    respx.post(f"{BASE_URL}/chat/completions").mock(return_value=Response(503, text="down"))
    with pytest.raises(UpstreamOtherError) as exc_info:
        _chat(_client())
    assert not isinstance(exc_info.value, (UpstreamRateLimited, UpstreamQuotaExhausted))


@respx.mock
def test_transport_failure_is_upstream_error(patched_db):
    respx.post(f"{BASE_URL}/chat/completions").mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(UpstreamOtherError):
        _chat(_client())


@respx.mock
def test_empty_content_is_upstream_error(patched_db):
    respx.post(f"{BASE_URL}/chat/completions").mock(return_value=Response(200, json={"choices": []}))
    with pytest.raises(UpstreamOtherError):
        _chat(_client())


def test_missing_api_key_fails_before_any_request():
    with pytest.raises(UpstreamOtherError):
        _chat(_client(api_key=""))


@respx.mock
def test_generate_image_accepts_base64(patched_db):
    respx.post(f"{BASE_URL}/images/generations").mock(
        return_value=Response(200, json={"data": [{"b64_json": "aGVq"}]})
    )
    assert _client().generate_image("a dish") == "data:image/png;base64,aGVq"
