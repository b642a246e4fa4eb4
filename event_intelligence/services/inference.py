"""Thin async wrapper around OpenAI chat completions.

Every stage that talks to the inference service goes through
:class:`InferenceClient`, which applies the per-call timeout, the advisory
minimum spacing between calls, and JSON-mode parsing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from ..config import INFERENCE_MIN_INTERVAL_SECONDS, INFERENCE_TIMEOUT_SECONDS, OPENAI_MODEL, PipelineConfig
from ..utils.llm_parsing import extract_structured_json

logger = logging.getLogger(__name__)


class InferenceError(RuntimeError):
    """The inference service returned nothing usable."""


@dataclass(slots=True)
class Completion:
    text: str
    tokens_used: Optional[int] = None


class InferenceClient:
    """Prompt-in, text-out access to the inference service."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = OPENAI_MODEL,
        timeout: float = INFERENCE_TIMEOUT_SECONDS,
        min_call_interval: float = INFERENCE_MIN_INTERVAL_SECONDS,
    ) -> None:
        self._client = client
        self.model = model
        self.timeout = timeout
        self.min_call_interval = min_call_interval
        self._next_slot = 0.0

    @classmethod
    def from_config(cls, client: AsyncOpenAI, config: PipelineConfig) -> "InferenceClient":
        return cls(
            client,
            model=config.openai_model,
            timeout=config.inference_timeout,
            min_call_interval=config.min_call_interval,
        )

    async def _throttle(self) -> None:
        # Reserve the next start slot before sleeping so concurrent callers
        # spread out; this spaces calls but never limits how many are in flight.
        now = time.monotonic()
        wait = self._next_slot - now
        self._next_slot = max(now, self._next_slot) + self.min_call_interval
        if wait > 0:
            await asyncio.sleep(wait)

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.1,
        json_output: bool = False,
        model: Optional[str] = None,
    ) -> Completion:
        """Run one chat completion and return its text.

        Raises
        ------
        InferenceError
            When the response carries no content.
        asyncio.TimeoutError
            When the call exceeds ``timeout`` seconds.
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}

        await self._throttle()
        logger.debug("Requesting completion from %s (%d prompt chars)", kwargs["model"], len(prompt))
        resp = await asyncio.wait_for(
            self._client.chat.completions.create(**kwargs),
            timeout=self.timeout,
        )

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise InferenceError("No response from inference service")

        usage = getattr(resp, "usage", None)
        tokens = getattr(usage, "total_tokens", None) if usage is not None else None
        return Completion(text=content, tokens_used=tokens)

    async def complete_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        **kwargs: Any,
    ) -> tuple[Dict[str, Any], Optional[int]]:
        """Like :meth:`complete` in JSON mode, returning the parsed object.

        Raises ``ValueError`` when no JSON object can be recovered.
        """
        completion = await self.complete(prompt, system, json_output=True, **kwargs)
        return extract_structured_json(completion.text), completion.tokens_used

__all__ = ["InferenceClient", "InferenceError", "Completion"]
