"""Completion gateway: the one place Colloquy talks to a language model.

The orchestrator only needs ``generate(prompt, temperature) -> Completion`` and
treats every failure as a ``CompletionError``. ``LLMCompletionGateway`` backs
that contract with Mirascope for hosted providers and the Ollama REST API for
local models, enforcing a per-call timeout so a hung provider turns into an
ordinary failure.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from mirascope import llm
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from colloquy.config import Config
from colloquy.errors import CompletionError
from colloquy.local_llm import call_ollama_chat
from colloquy.logging_utils import is_llm_debug, log_error


@dataclass(slots=True)
class Completion:
    """Text returned by a gateway."""

    text: str
    finish_reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class CompletionGateway(Protocol):
    """Anything that can turn a prompt into text at a given temperature."""

    async def generate(self, prompt: str, temperature: float) -> Completion:
        ...


class LLMCompletionGateway:
    """Gateway backed by Mirascope (hosted providers) or Ollama (local).

    Args:
        llm_provider: Provider name ("openai", "anthropic", "ollama", ...).
            Defaults to Config.LLM_PROVIDER.
        llm_model: Model identifier. Defaults to Config.LLM_MODEL.
        timeout: Seconds allowed per call. Defaults to Config.LLM_TIMEOUT_SECONDS.
        max_attempts: Total attempts per generate() call. The default of 1
            leaves retry policy to callers.
        base_url: Ollama base URL override.
    """

    def __init__(
        self,
        llm_provider: str | None = None,
        llm_model: str | None = None,
        *,
        timeout: float | None = None,
        max_attempts: int = 1,
        base_url: str | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.llm_provider = (llm_provider or Config.LLM_PROVIDER).lower()
        self.llm_model = llm_model or Config.LLM_MODEL
        self.timeout = timeout if timeout is not None else Config.LLM_TIMEOUT_SECONDS
        self.max_attempts = max_attempts
        self.base_url = base_url or Config.OLLAMA_BASE_URL

    @property
    def uses_local_llm(self) -> bool:
        return self.llm_provider == "ollama"

    async def generate(self, prompt: str, temperature: float) -> Completion:
        """Return a completion or raise CompletionError."""

        attempt_number = 0
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(CompletionError),
            stop=stop_after_attempt(self.max_attempts),
            reraise=True,
        ):
            with attempt:
                attempt_number += 1
                if attempt_number > 1:
                    log_error(
                        f"Completion retry {attempt_number}/{self.max_attempts} "
                        f"({self.llm_provider}/{self.llm_model})"
                    )
                return await self._generate_once(prompt, temperature)

        raise RuntimeError("Completion retry loop exited unexpectedly")

    async def _generate_once(self, prompt: str, temperature: float) -> Completion:
        if is_llm_debug():
            print(f"\n{'=' * 80}")
            print(f"[LLM PROMPT] {self.llm_provider}/{self.llm_model} (temperature={temperature})")
            print(f"{'-' * 80}")
            print(prompt)
            print(f"{'=' * 80}\n")

        try:
            if self.uses_local_llm:
                text = await asyncio.wait_for(
                    call_ollama_chat(
                        user_prompt=prompt,
                        llm_model=self.llm_model,
                        temperature=temperature,
                        base_url=self.base_url,
                        timeout=self.timeout,
                    ),
                    timeout=self.timeout,
                )
                completion = Completion(text=text)
            else:
                completion = await asyncio.wait_for(
                    self._invoke_remote(prompt, temperature),
                    timeout=self.timeout,
                )
        except asyncio.TimeoutError as exc:
            raise CompletionError(
                f"Completion timed out after {self.timeout:g}s "
                f"({self.llm_provider}/{self.llm_model})",
                cause=exc,
            ) from exc
        except CompletionError:
            raise
        except Exception as exc:
            # Provider SDKs raise their own hierarchies; callers only see one type.
            raise CompletionError(
                f"Completion failed ({self.llm_provider}/{self.llm_model}): {exc}",
                cause=exc,
            ) from exc

        if not completion.text or not completion.text.strip():
            raise CompletionError(
                f"Completion was empty ({self.llm_provider}/{self.llm_model})"
            )

        if is_llm_debug():
            print(f"[LLM RESPONSE] {completion.text}\n")

        return completion

    async def _invoke_remote(self, prompt: str, temperature: float) -> Completion:
        @llm.call(
            provider=self.llm_provider,
            model=self.llm_model,
            call_params={"temperature": temperature},
        )
        async def _invoke(prompt: str) -> str:
            return prompt

        response = await _invoke(prompt)
        finish_reasons = getattr(response, "finish_reasons", None) or []
        return Completion(
            text=str(response.content),
            finish_reason=finish_reasons[0] if finish_reasons else None,
        )


__all__ = ["Completion", "CompletionGateway", "LLMCompletionGateway"]
