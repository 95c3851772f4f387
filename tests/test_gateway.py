"""Unit tests for the completion gateway."""

import asyncio

import pytest

from colloquy.errors import CompletionError
from colloquy.gateway import Completion, CompletionGateway, LLMCompletionGateway
from colloquy.local_llm import LocalLLMError


class DummyResponse:
    def __init__(self, content: str, finish_reasons=None):
        self.content = content
        self.finish_reasons = finish_reasons


def _patch_llm_call(monkeypatch, fake_caller, recorded: dict | None = None):
    def fake_decorator(*, provider, model, call_params):
        if recorded is not None:
            recorded.update(provider=provider, model=model, call_params=call_params)

        def wrapper(fn):
            async def inner(prompt: str):
                return await fake_caller(prompt)

            return inner

        return wrapper

    monkeypatch.setattr("colloquy.gateway.llm.call", fake_decorator)


def test_llm_gateway_satisfies_protocol():
    gateway = LLMCompletionGateway("openai", "gpt-4o-mini")
    assert isinstance(gateway, CompletionGateway)


def test_llm_gateway_rejects_non_positive_attempts():
    with pytest.raises(ValueError):
        LLMCompletionGateway("openai", "gpt-4o-mini", max_attempts=0)


@pytest.mark.asyncio
async def test_remote_generate_passes_temperature(monkeypatch):
    recorded: dict = {}
    prompts: list[str] = []

    async def fake_caller(prompt: str):
        prompts.append(prompt)
        return DummyResponse("Greetings, friend.", finish_reasons=["stop"])

    _patch_llm_call(monkeypatch, fake_caller, recorded)

    gateway = LLMCompletionGateway("OpenAI", "gpt-4o-mini")
    completion = await gateway.generate("Say hello.", 0.8)

    assert completion == Completion(text="Greetings, friend.", finish_reason="stop")
    assert prompts == ["Say hello."]
    assert recorded == {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "call_params": {"temperature": 0.8},
    }


@pytest.mark.asyncio
async def test_provider_exception_becomes_completion_error(monkeypatch):
    failure = ConnectionError("connection reset")

    async def fake_caller(prompt: str):
        raise failure

    _patch_llm_call(monkeypatch, fake_caller)

    gateway = LLMCompletionGateway("anthropic", "claude-model")
    with pytest.raises(CompletionError) as excinfo:
        await gateway.generate("Hi", 0.8)

    assert excinfo.value.cause is failure


@pytest.mark.asyncio
async def test_timeout_becomes_completion_error(monkeypatch):
    async def fake_caller(prompt: str):
        await asyncio.sleep(5)
        return DummyResponse("too late")

    _patch_llm_call(monkeypatch, fake_caller)

    gateway = LLMCompletionGateway("openai", "gpt-4o-mini", timeout=0.01)
    with pytest.raises(CompletionError, match="timed out"):
        await gateway.generate("Hi", 0.8)


@pytest.mark.asyncio
async def test_empty_completion_is_an_error(monkeypatch):
    async def fake_caller(prompt: str):
        return DummyResponse("   ")

    _patch_llm_call(monkeypatch, fake_caller)

    gateway = LLMCompletionGateway("openai", "gpt-4o-mini")
    with pytest.raises(CompletionError, match="empty"):
        await gateway.generate("Hi", 0.8)


@pytest.mark.asyncio
async def test_retries_completion_errors_up_to_max_attempts(monkeypatch):
    attempts: list[str] = []

    async def fake_caller(prompt: str):
        attempts.append(prompt)
        if len(attempts) == 1:
            raise RuntimeError("rate limited")
        return DummyResponse("Second time lucky.")

    _patch_llm_call(monkeypatch, fake_caller)

    gateway = LLMCompletionGateway("openai", "gpt-4o-mini", max_attempts=2)
    completion = await gateway.generate("Hi", 0.8)

    assert completion.text == "Second time lucky."
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_default_gateway_does_not_retry(monkeypatch):
    attempts: list[str] = []

    async def fake_caller(prompt: str):
        attempts.append(prompt)
        raise RuntimeError("rate limited")

    _patch_llm_call(monkeypatch, fake_caller)

    gateway = LLMCompletionGateway("openai", "gpt-4o-mini")
    with pytest.raises(CompletionError):
        await gateway.generate("Hi", 0.8)

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_ollama_provider_uses_local_client(monkeypatch):
    captured: dict = {}

    async def fake_ollama(**kwargs):
        captured.update(kwargs)
        return "From the local model."

    monkeypatch.setattr("colloquy.gateway.call_ollama_chat", fake_ollama)

    gateway = LLMCompletionGateway(
        "ollama", "llama3.1", timeout=12, base_url="http://ollama:11434"
    )
    completion = await gateway.generate("Hi", 0.3)

    assert completion.text == "From the local model."
    assert captured["user_prompt"] == "Hi"
    assert captured["llm_model"] == "llama3.1"
    assert captured["temperature"] == 0.3
    assert captured["base_url"] == "http://ollama:11434"
    assert captured["timeout"] == 12


@pytest.mark.asyncio
async def test_local_errors_propagate_unchanged(monkeypatch):
    async def fake_ollama(**kwargs):
        raise LocalLLMError("Could not reach Ollama")

    monkeypatch.setattr("colloquy.gateway.call_ollama_chat", fake_ollama)

    gateway = LLMCompletionGateway("ollama", "llama3.1")
    with pytest.raises(LocalLLMError):
        await gateway.generate("Hi", 0.3)
