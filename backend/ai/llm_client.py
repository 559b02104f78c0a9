# backend/ai/llm_client.py
import json
import logging
import re
from typing import Any, Optional

import httpx

from core.config import settings

log = logging.getLogger(__name__)

OLLAMA_GENERATE_PATH = "/api/generate"
OPENAI_CHAT_PATH = "/chat/completions"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", flags=re.I)
_BLOB_RE = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


class LLMError(Exception):
    pass


class LLMUnavailable(LLMError):
    """Network failure, timeout, or non-2xx from the provider."""


class LLMMalformedOutput(LLMError):
    """The provider answered, but not with JSON."""


def parse_json_blob(raw: str) -> Any:
    """
    Parse model output as JSON. Tolerates markdown fences and chatter around
    a single JSON object/array.
    """
    text = _FENCE_RE.sub("", (raw or "").strip())
    if not text:
        raise LLMMalformedOutput("empty model output")
    try:
        return json.loads(text)
    except ValueError:
        pass
    m = _BLOB_RE.search(text)
    if m:
        try:
            return json.loads(m.group(1))
        except ValueError:
            log.debug("Failed to json.loads matched blob from model output")
    raise LLMMalformedOutput(f"model output is not JSON: {text[:200]!r}")


class LLMClient:
    """
    JSON-in/JSON-out wrapper around an OpenAI-compatible chat endpoint or a
    local Ollama server. Every call is bounded by `timeout` seconds.
    """

    def __init__(
        self,
        provider: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.provider = provider.lower()
        self.timeout = timeout if timeout is not None else settings.llm_timeout_seconds
        self._transport = transport

    def generate_json(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 1500,
    ) -> Any:
        if self.provider == "openai":
            raw = self._openai(prompt, system, temperature, max_tokens)
        elif self.provider == "ollama":
            raw = self._ollama(prompt, system, temperature)
        else:
            raise LLMUnavailable(f"unsupported AI provider: {self.provider}")
        return parse_json_blob(raw)

    # ---- providers ----
    def _post(self, url: str, payload: dict, headers: Optional[dict] = None) -> dict:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                r = client.post(url, json=payload, headers=headers)
                r.raise_for_status()
                return r.json()
        except httpx.TimeoutException as e:
            raise LLMUnavailable(f"request to {self.provider} timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMUnavailable(f"request to {self.provider} failed: {e}") from e
        except ValueError as e:
            raise LLMMalformedOutput(f"{self.provider} returned a non-JSON body") from e

    def _openai(self, prompt: str, system: Optional[str], temperature: float, max_tokens: int) -> str:
        if not settings.openai_api_key:
            raise LLMUnavailable("OPENAI_API_KEY is not set")
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        body = self._post(
            f"{settings.openai_base_url.rstrip('/')}{OPENAI_CHAT_PATH}",
            {
                "model": settings.openai_model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "response_format": {"type": "json_object"},
            },
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
        )
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMMalformedOutput("no message content in OpenAI response") from e
        if not content:
            raise LLMMalformedOutput("empty message content in OpenAI response")
        return content

    def _ollama(self, prompt: str, system: Optional[str], temperature: float) -> str:
        payload = {
            "model": settings.ollama_model,
            "prompt": prompt,
            "format": "json",
            "stream": False,
            "options": {"temperature": temperature},
        }
        if system:
            payload["system"] = system
        body = self._post(f"{settings.ollama_url.rstrip('/')}{OLLAMA_GENERATE_PATH}", payload)
        # Common pattern: {"model": "...", "response": "{ ... }", "done": true}
        resp = body.get("response") if isinstance(body, dict) else None
        if not isinstance(resp, str):
            raise LLMMalformedOutput("no 'response' string in Ollama body")
        return resp
