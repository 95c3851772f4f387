"""Ollama client used by the completion gateway for local models.

Colloquy sends each turn as one combined prompt, so a chat request carries a
single user message. The HTTP call is blocking urllib and runs in a worker
thread.
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any
from urllib import error, request

from colloquy.errors import CompletionError

DEFAULT_OLLAMA_BASE_URL = "http://127.0.0.1:11434"
_CHAT_ENDPOINT = "/api/chat"


class LocalLLMError(CompletionError):
    """Raised when Ollama is unreachable or answers without text."""


def build_chat_payload(prompt: str, model: str, temperature: float | None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "stream": False,
    }
    if temperature is not None:
        payload["options"] = {"temperature": temperature}
    return payload


def _read_assistant_text(raw: str) -> str:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LocalLLMError("Ollama returned non-JSON response.", cause=exc) from exc

    content = (parsed.get("message") or {}).get("content")
    if not content:
        raise LocalLLMError("Ollama response did not include assistant content.")
    return content


def _perform_ollama_request(payload: dict[str, Any], base_url: str, timeout: float) -> str:
    """POST ``payload`` to the chat endpoint and return the assistant text."""

    url = f"{base_url}{_CHAT_ENDPOINT}"
    req = request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )

    try:
        with request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8")
    except error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
        raise LocalLLMError(
            f"Ollama returned HTTP {exc.code} for {payload['model']}: {detail or exc.reason}",
            cause=exc,
        ) from exc
    except error.URLError as exc:
        raise LocalLLMError(f"Could not reach Ollama at {url}: {exc.reason}", cause=exc) from exc

    return _read_assistant_text(raw)


async def call_ollama_chat(
    *,
    user_prompt: str,
    llm_model: str,
    temperature: float | None = None,
    base_url: str | None = None,
    timeout: float = 120.0,
) -> str:
    """Send ``user_prompt`` to a local Ollama model and return its reply."""

    prompt = user_prompt.strip()
    if not prompt:
        raise LocalLLMError("Cannot call Ollama with an empty prompt.")

    resolved_base = (base_url or os.getenv("OLLAMA_BASE_URL") or DEFAULT_OLLAMA_BASE_URL).rstrip("/")
    payload = build_chat_payload(prompt, llm_model, temperature)
    return await asyncio.to_thread(_perform_ollama_request, payload, resolved_base, timeout)


__all__ = ["LocalLLMError", "DEFAULT_OLLAMA_BASE_URL", "build_chat_payload", "call_ollama_chat"]
