import json

import httpx
import pytest

from app.openai_client import OPENAI_CHAT_COMPLETIONS_URL, OpenAIClient
from app.prompts import NOTE_SYSTEM, build_note_request


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


@pytest.mark.asyncio
async def test_generate_note_builds_request(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("OPENAI_MODEL_NOTE", raising=False)
    captured: dict[str, object] = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = dict(request.headers)
        captured["payload"] = json.loads(request.content.decode())
        return httpx.Response(200, json=_completion(json.dumps({"note": "Patient calme."})))

    transport = httpx.MockTransport(handler)
    client = OpenAIClient(api_key="test", transport=transport)

    result = await client.generate_note("- Position : Au lit.")

    assert result == "Patient calme."
    assert captured["url"] == OPENAI_CHAT_COMPLETIONS_URL
    assert captured["headers"]["authorization"] == "Bearer test"
    payload = captured["payload"]
    assert payload["model"] == "gpt-4o-mini"
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["messages"][0] == {"role": "system", "content": NOTE_SYSTEM}
    assert payload["messages"][1] == {
        "role": "user",
        "content": build_note_request("- Position : Au lit."),
    }


def test_note_request_embeds_clinical_data():
    assert build_note_request("abc").endswith("\nabc")


def test_client_requires_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        OpenAIClient(api_key=None)


def test_model_can_be_overridden():
    assert OpenAIClient(api_key="test", model="gpt-4o").model == "gpt-4o"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "",
        "Une note sans JSON",
        json.dumps({"text": "mauvaise clé"}),
        json.dumps({"note": "   "}),
        json.dumps(["note"]),
    ],
)
async def test_generate_note_rejects_unusable_content(content: str):
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion(content))

    client = OpenAIClient(api_key="test", transport=httpx.MockTransport(handler))

    with pytest.raises(RuntimeError):
        await client.generate_note("data")


@pytest.mark.asyncio
async def test_generate_note_retries_on_rate_limit(monkeypatch: pytest.MonkeyPatch):
    attempts: list[int] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            return httpx.Response(429, headers={"Retry-After": "0"})
        return httpx.Response(200, json=_completion(json.dumps({"note": "Recovered"})))

    async def fake_sleep(self, seconds: float) -> None:  # type: ignore[override]
        return None

    monkeypatch.setattr(OpenAIClient, "_sleep", fake_sleep, raising=False)

    transport = httpx.MockTransport(handler)
    client = OpenAIClient(api_key="test", transport=transport, backoff_base=0.0)

    result = await client.generate_note("Patient")

    assert result == "Recovered"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_generate_note_raises_friendly_error_on_exhausted_retries():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429)

    transport = httpx.MockTransport(handler)
    client = OpenAIClient(api_key="test", transport=transport, max_retries=0)

    with pytest.raises(RuntimeError) as excinfo:
        await client.generate_note("Patient")

    assert "rate limit" in str(excinfo.value).lower()


@pytest.mark.asyncio
async def test_generate_note_raises_on_invalid_api_key():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401)

    transport = httpx.MockTransport(handler)
    client = OpenAIClient(api_key="test", transport=transport, max_retries=0)

    with pytest.raises(RuntimeError) as excinfo:
        await client.generate_note("Patient")

    message = str(excinfo.value)
    assert "api key" in message.lower()
    assert "permissions" in message.lower()


@pytest.mark.asyncio
async def test_generate_note_raises_on_request_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    transport = httpx.MockTransport(handler)
    client = OpenAIClient(api_key="test", transport=transport, max_retries=0)

    with pytest.raises(RuntimeError) as excinfo:
        await client.generate_note("Patient")

    message = str(excinfo.value)
    assert "unable to reach openai api" in message.lower()
