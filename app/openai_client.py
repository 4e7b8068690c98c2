import asyncio
import json
import os
from typing import Optional

import httpx

from app.prompts import NOTE_SYSTEM, build_note_request

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
    ) -> None:
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise RuntimeError("Missing OPENAI_API_KEY")
        self.model = model or os.getenv("OPENAI_MODEL_NOTE", "gpt-4o-mini")
        self._transport = transport
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_base = backoff_base

    async def generate_note(self, clinical_data: str) -> str:
        """Ask the model for the narrative note and return its ``note`` field."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": NOTE_SYSTEM},
                {"role": "user", "content": build_note_request(clinical_data)},
            ],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }

        data = await self._request_with_retry(headers=headers, payload=payload)
        if not isinstance(data, dict):
            raise RuntimeError("Unexpected OpenAI response format")

        text = []
        for choice in data.get("choices", []):
            if not isinstance(choice, dict):
                continue
            message = choice.get("message")
            if isinstance(message, dict):
                content_piece = message.get("content")
                if content_piece:
                    text.append(str(content_piece))

        return self._extract_note("".join(text).strip())

    def _extract_note(self, content: str) -> str:
        if not content:
            raise RuntimeError("Empty response from LLM")
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise RuntimeError("LLM response is not valid JSON") from exc
        note = parsed.get("note") if isinstance(parsed, dict) else None
        if not isinstance(note, str) or not note.strip():
            raise RuntimeError("LLM response has no note")
        return note.strip()

    async def _request_with_retry(self, *, headers: dict[str, str], payload: dict):
        attempts = 0
        last_error: Exception | None = None
        while attempts <= self._max_retries:
            attempts += 1
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                try:
                    response = await client.post(
                        OPENAI_CHAT_COMPLETIONS_URL,
                        headers=headers,
                        json=payload,
                    )
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as exc:
                    last_error = exc
                    status_code = exc.response.status_code
                    if not self._should_retry(status_code) or attempts > self._max_retries:
                        raise RuntimeError(self._format_error(status_code)) from exc
                    retry_after = exc.response.headers.get("Retry-After")
                except httpx.RequestError as exc:
                    last_error = exc
                    if attempts > self._max_retries:
                        raise RuntimeError("Unable to reach OpenAI API") from exc
                    retry_after = None
            await self._sleep(self._retry_delay(retry_after, attempts))

        if last_error:
            raise RuntimeError("Failed to contact OpenAI API") from last_error
        raise RuntimeError("Failed to contact OpenAI API")

    def _should_retry(self, status_code: int) -> bool:
        return status_code == 429 or 500 <= status_code < 600

    def _retry_delay(self, retry_after: Optional[str], attempts: int) -> float:
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return self._backoff_base * (2 ** (attempts - 1))

    async def _sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def _format_error(self, status_code: int) -> str:
        if status_code == 429:
            return "OpenAI API rate limit exceeded. Please try again shortly."
        if status_code in (401, 403):
            return "OpenAI API rejected the request. Check the API key and its permissions."
        if 500 <= status_code < 600:
            return "OpenAI API is currently unavailable. Please retry later."
        return "Unexpected OpenAI API error."
