"""
LLM Client - OpenAI-compatible chat-completions backend.

Two call shapes:
- complete(): one request, one `{choices: [{message: {content}}]}` answer
- stream():   an open streaming response framed as `data: ...` events,
              consumed by code_analyzer.services.streaming

The backend is optional. `is_configured` tells callers whether to attempt
AI-assisted steps; complete() and stream() raise ServiceNotConfiguredError
when called without a key.
"""

import logging
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

import httpx

from code_analyzer.core.exceptions import ServiceNotConfiguredError, UpstreamError

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```[\w-]*\n?")


@dataclass
class LLMConfig:
    """Configuration for the completion backend."""
    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout_seconds: float = 60.0


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```json, ```mermaid, ```) from model output."""
    return _CODE_FENCE.sub("", text or "").strip()


def upstream_error_message(body: object, default: str = "API error") -> str:
    """Pull `error.message` out of an OpenAI-style error body."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return default


def completion_text(data: object) -> str:
    """
    Extract `choices[0].message.content` from a completion body.

    A null content reads as "". Anything else that is not shaped like
    `{choices: [{message: {content: str}}]}` raises UpstreamError.
    """
    choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(choices, list) or not choices:
        raise UpstreamError("AI service returned no completion choices")

    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        raise UpstreamError("AI service returned a malformed completion message")

    content = message.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise UpstreamError("AI service returned non-text completion content")
    return content


class LLMClient:
    """
    Thin async client for chat completions.

    Usage:
        llm = LLMClient(LLMConfig(api_key="sk-..."))
        text = await llm.generate("Summarize this", system_prompt="Be brief")
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or LLMConfig()
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _http(self) -> httpx.AsyncClient:
        if not self.is_configured:
            raise ServiceNotConfiguredError()
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.config.api_key}",
            },
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )

    def _payload(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        stream: bool
    ) -> dict:
        return {
            "model": self.config.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": stream,
        }

    async def complete(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 1000,
        temperature: float = 0.0
    ) -> str:
        """
        Run a non-streaming completion and return the message text.

        Raises:
            ServiceNotConfiguredError: no API key
            UpstreamError: non-2xx answer, network failure or malformed body
        """
        async with self._http() as client:
            try:
                response = await client.post(
                    "/chat/completions",
                    json=self._payload(messages, max_tokens, temperature, stream=False),
                )
            except httpx.HTTPError as e:
                raise UpstreamError(f"AI service request failed: {e}")

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            raise UpstreamError(
                upstream_error_message(body, "AI service error"),
                upstream_status=response.status_code
            )

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError("AI service returned a non-JSON completion")
        return completion_text(data)

    async def generate(self, prompt: str, system_prompt: Optional[str] = None, **kwargs) -> str:
        """Convenience wrapper: optional system prompt plus one user prompt."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return await self.complete(messages, **kwargs)

    @asynccontextmanager
    async def stream(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 4096,
        temperature: float = 0.7
    ) -> AsyncIterator[httpx.Response]:
        """
        Open a streaming completion.

        Yields the raw httpx response (status not checked) so the relay can
        frame errors itself. The connection is released on exit, including
        when the consumer stops early.
        """
        async with self._http() as client:
            async with client.stream(
                "POST",
                "/chat/completions",
                json=self._payload(messages, max_tokens, temperature, stream=True),
            ) as response:
                yield response
