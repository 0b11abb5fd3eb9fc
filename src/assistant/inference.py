"""Client for an OpenAI-compatible chat completions endpoint (Groq by default)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class InferenceError(Exception):
    """Raised when the inference call fails or returns no usable answer."""


class InferenceClient:
    """Sends one chat-completions request per call and returns the answer text."""

    def __init__(
        self,
        api_key: str,
        model: str,
        url: str,
        timeout: float | None = 60.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._url = url
        self._timeout = timeout

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Return the first choice's message content, whitespace-trimmed.

        Raises:
            InferenceError: On transport errors, non-2xx responses, or a body
                without ``choices[0].message.content``.
        """
        body: dict[str, Any] = {"model": self._model, "messages": messages}
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._url, json=body, headers=headers, timeout=self._timeout,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise InferenceError(f"Inference request failed: {exc}") from exc
        except ValueError as exc:
            raise InferenceError("Inference response is not JSON") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise InferenceError("Inference response has no message content") from exc
        if not isinstance(content, str):
            raise InferenceError("Inference response content is not text")
        return content.strip()
