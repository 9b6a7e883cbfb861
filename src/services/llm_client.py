from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx

from src.app.domain.errors import ConfigurationError, UpstreamExhaustedError
from src.app.domain.models import CompletionResult
from src.services.prompt import build_chat_payload

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openrouter.ai/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.5

ResponseExtractor = Callable[[Any], Optional[str]]


def _from_chat_choices(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    return message.get("content") if isinstance(message, dict) else None


def _from_output_text(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    result = body.get("result")
    if isinstance(result, dict) and result.get("output_text"):
        return result.get("output_text")
    return body.get("output_text")


def _from_indexed_result(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    result = body.get("result")
    if isinstance(result, list) and result and isinstance(result[0], dict):
        return result[0].get("content")
    return None


def _from_bare_string(body: Any) -> Optional[str]:
    return body if isinstance(body, str) else None


def _from_text_field(body: Any) -> Optional[str]:
    return body.get("text") if isinstance(body, dict) else None


# Provider variants place the assistant text in different keys; first non-empty match wins.
RESPONSE_EXTRACTORS: tuple[ResponseExtractor, ...] = (
    _from_chat_choices,
    _from_output_text,
    _from_indexed_result,
    _from_bare_string,
    _from_text_field,
)


def extract_text(body: Any, extractors: Sequence[ResponseExtractor] = RESPONSE_EXTRACTORS) -> Optional[str]:
    for extractor in extractors:
        text = extractor(body)
        if isinstance(text, str) and text.strip():
            return text
    return None


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class ModelGatewayClient:
    """
    Client for an OpenAI-compatible chat completion endpoint.

    Each call makes up to `max_attempts` requests. A transport error, a
    non-2xx status or a response without usable text counts as a failed
    attempt and is followed by a linear backoff of `backoff_seconds * attempt`.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = DEFAULT_API_URL,
        model_name: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 1500,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url or DEFAULT_API_URL
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Any, **overrides: Any) -> "ModelGatewayClient":
        options = {
            "api_key": settings.AI_API_KEY,
            "api_url": settings.AI_API_URL,
            "model_name": settings.AI_MODEL,
            "temperature": settings.AI_TEMPERATURE,
            "max_tokens": settings.AI_MAX_TOKENS,
            "max_attempts": settings.AI_MAX_ATTEMPTS,
            "backoff_seconds": settings.AI_BACKOFF_SECONDS,
            "timeout_seconds": settings.AI_TIMEOUT_SECONDS,
        }
        options.update(overrides)
        return cls(**options)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def complete(self, system_prompt: str, user_message: str) -> CompletionResult:
        if not self.api_key:
            raise ConfigurationError("AI API key not configured")

        payload = build_chat_payload(
            self.model_name,
            system_prompt,
            user_message,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        last_error: Optional[str] = None

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    response = await client.post(self.api_url, json=payload, headers=self._headers())
                except httpx.HTTPError as exc:
                    last_error = str(exc) or exc.__class__.__name__
                    logger.warning("AI request attempt %d error: %s", attempt, last_error)
                else:
                    if response.is_success:
                        text = extract_text(_decode_body(response))
                        if text:
                            logger.info("AI response received on attempt %d", attempt)
                            return CompletionResult(text=text, attempts=attempt)
                        last_error = "AI returned no text content"
                        logger.warning("AI returned no text content on attempt %d", attempt)
                    else:
                        last_error = f"HTTP {response.status_code}: {response.text[:200]}"
                        logger.warning("AI API attempt %d failed: %s", attempt, last_error)

                if attempt < self.max_attempts:
                    await self._sleep(self.backoff_seconds * attempt)

        logger.error("AI API failed after %d attempts: %s", self.max_attempts, last_error)
        raise UpstreamExhaustedError(attempts=self.max_attempts, last_error=last_error)
