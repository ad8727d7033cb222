"""
JSON-mode chat completions over OpenAI with a fixed-delay retry budget.
"""

import asyncio
import json
import re
from typing import Any, Callable, Optional

import httpx
import openai
from loguru import logger
from openai import AsyncOpenAI

from shared.config import Settings, get_settings
from shared.errors import MalformedResponseError, TransientCallError

_FENCE = re.compile(r"```(?:json)?")


def extract_json_text(text: str) -> str:
    """
    Strip markdown fences and keep the outermost JSON object or array.

    Models in JSON mode still occasionally wrap output in ```json blocks
    or add a sentence before the payload.
    """
    if not text:
        return ""
    cleaned = _FENCE.sub("", text).strip()

    starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i != -1]
    ends = [i for i in (cleaned.rfind("]"), cleaned.rfind("}")) if i != -1]
    if starts and ends:
        start, end = min(starts), max(ends)
        if end > start:
            return cleaned[start : end + 1]
    return cleaned


def parse_json(text: str) -> Any:
    """Parse model output as JSON, raising MalformedResponseError on failure."""
    payload = extract_json_text(text)
    if not payload:
        raise MalformedResponseError("Empty response from LLM")
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"JSON parse error: {e}") from e


class LLMClient:
    """Thin async wrapper around the OpenAI chat API returning parsed JSON."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        model: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        self.model = model or self.settings.openai_model_mini
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.require_openai_key(),
                base_url=self.settings.openai_base_url,
                timeout=httpx.Timeout(self.settings.llm_request_timeout),
                # Retries are owned by complete_json
                max_retries=0,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def _complete_once(
        self,
        system: str,
        prompt: str,
        temperature: float,
    ) -> Any:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                response_format={"type": "json_object"},
            )
        except (openai.APIError, httpx.HTTPError) as e:
            raise TransientCallError(f"LLM request failed: {e}") from e

        if not response.choices:
            raise MalformedResponseError("LLM response has no choices")
        return parse_json(response.choices[0].message.content or "")

    async def complete_json(
        self,
        system: str,
        prompt: str,
        temperature: float = 0.1,
        parse: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """
        Run one chat completion and return the parsed JSON body.

        `parse` is applied to the decoded body inside the retry loop, so a
        schema mismatch it reports as MalformedResponseError is retried too.

        Any transient or malformed failure is retried `llm_max_retries` times
        with a fixed `llm_retry_delay` between attempts; the last error is
        re-raised once the budget is spent. ConfigurationError is raised
        before the first attempt and never retried.
        """
        self.settings.require_openai_key()

        attempts = 1 + max(0, self.settings.llm_max_retries)
        for attempt in range(1, attempts + 1):
            try:
                data = await self._complete_once(system, prompt, temperature)
                return parse(data) if parse else data
            except (TransientCallError, MalformedResponseError) as e:
                if attempt == attempts:
                    logger.error(f"LLM call failed after {attempts} attempts: {e}")
                    raise
                logger.warning(
                    f"LLM attempt {attempt}/{attempts} failed ({e}), "
                    f"retrying in {self.settings.llm_retry_delay:.1f}s"
                )
                await asyncio.sleep(self.settings.llm_retry_delay)
