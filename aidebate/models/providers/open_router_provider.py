import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from .base_model_provider import BaseModelProvider, ChunkCallback
from .exceptions import ProviderRateLimitError

if TYPE_CHECKING:
    from aidebate.config.settings import ModelConfig, SystemConfig

logger = logging.getLogger(__name__)


class OpenRouterProvider(BaseModelProvider):
    """Hosted models through the OpenRouter chat completions API."""

    name = "openrouter"
    streaming = True

    # Requests from every instance share one spacing window
    _min_interval: ClassVar[float] = 0.5
    _next_slot: ClassVar[float] = 0.0
    _slot_lock: ClassVar[asyncio.Lock | None] = None

    def __init__(self, system_config: "SystemConfig"):
        super().__init__(system_config)
        self._settings = system_config.openrouter
        self._api_key = self._settings.resolved_api_key()
        if not self._api_key:
            logger.warning("OpenRouter API key missing; set OPENROUTER_API_KEY or system.openrouter.api_key")

    @classmethod
    async def _wait_for_slot(cls) -> None:
        if cls._slot_lock is None:
            cls._slot_lock = asyncio.Lock()
        async with cls._slot_lock:
            delay = cls._next_slot - time.monotonic()
            if delay > 0:
                logger.debug(f"Spacing OpenRouter requests, waiting {delay:.2f}s")
                await asyncio.sleep(delay)
            cls._next_slot = time.monotonic() + cls._min_interval

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            raise RuntimeError("OpenRouter API key is not configured")
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._settings.site_url:
            headers["HTTP-Referer"] = self._settings.site_url
        if self._settings.app_name:
            headers["X-Title"] = self._settings.app_name
        return headers

    def _body(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], overrides: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "model": model_config.name,
            "messages": messages,
            "reasoning": {"exclude": True},
            **self.sampling_params(model_config, overrides),
        }

    @staticmethod
    def _check(response: httpx.Response) -> None:
        if response.status_code == 429:
            raise ProviderRateLimitError("openrouter", response.headers.get("retry-after"))
        response.raise_for_status()

    async def generate_response(
        self, model_config: "ModelConfig", messages: list[dict[str, str]], **overrides: Any
    ) -> str:
        headers = self._headers()
        await self._wait_for_slot()
        try:
            async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
                response = await client.post(
                    f"{self._settings.base_url}/chat/completions",
                    json=self._body(model_config, messages, overrides),
                    headers=headers,
                )
                self._check(response)
                data = response.json()
        except Exception as e:
            logger.error(f"OpenRouter generation failed for {model_config.name}: {e}")
            raise

        text = (data["choices"][0]["message"].get("content") or "").strip()
        if not text:
            logger.warning(f"OpenRouter model {model_config.name} returned an empty reply")
        return text

    @staticmethod
    async def _sse_payloads(response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
        """Decoded ``data:`` payloads of an SSE body, up to ``[DONE]``."""
        async for line in response.aiter_lines():
            if not line.startswith("data:"):
                continue  # blank separators and ": keep-alive" comments
            data = line[5:].strip()
            if data == "[DONE]":
                return
            try:
                yield json.loads(data)
            except json.JSONDecodeError:
                logger.debug(f"Ignoring malformed SSE payload: {data[:100]}")

    async def generate_response_stream(
        self,
        model_config: "ModelConfig",
        messages: list[dict[str, str]],
        chunk_callback: ChunkCallback,
        **overrides: Any,
    ) -> str:
        headers = self._headers()
        body = {**self._body(model_config, messages, overrides), "stream": True}
        await self._wait_for_slot()

        parts: list[str] = []
        try:
            async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
                async with client.stream(
                    "POST", f"{self._settings.base_url}/chat/completions", json=body, headers=headers
                ) as response:
                    self._check(response)
                    async for payload in self._sse_payloads(response):
                        if "error" in payload:
                            message = payload["error"].get("message", "unknown error")
                            raise RuntimeError(f"OpenRouter stream error: {message}")
                        choices = payload.get("choices") or [{}]
                        delta = (choices[0].get("delta") or {}).get("content")
                        if delta:
                            parts.append(delta)
                            await chunk_callback(delta, False)
                        if choices[0].get("finish_reason"):
                            break
        except Exception as e:
            logger.error(
                f"OpenRouter stream from {model_config.name} failed after {len(parts)} chunks: {e}"
            )
            raise

        await chunk_callback("", True)
        return "".join(parts)
