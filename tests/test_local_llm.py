import pytest

from colloquy.errors import CompletionError
from colloquy.local_llm import LocalLLMError, _read_assistant_text, call_ollama_chat


@pytest.mark.asyncio
async def test_call_ollama_chat_builds_payload(monkeypatch):
    captured: dict[str, object] = {}

    def fake_request(payload, base_url, timeout):
        captured["payload"] = payload
        captured["base_url"] = base_url
        captured["timeout"] = timeout
        return "Well met, traveller."

    monkeypatch.setattr("colloquy.local_llm._perform_ollama_request", fake_request)

    result = await call_ollama_chat(
        user_prompt="  You are Ada.\n\nGreet the traveller.  ",
        llm_model="llama3.1",
        temperature=0.8,
        base_url="http://localhost:11434/",
        timeout=30,
    )

    assert result == "Well met, traveller."
    assert captured["payload"] == {
        "model": "llama3.1",
        "messages": [{"role": "user", "content": "You are Ada.\n\nGreet the traveller."}],
        "stream": False,
        "options": {"temperature": 0.8},
    }
    assert captured["base_url"] == "http://localhost:11434"
    assert captured["timeout"] == 30


@pytest.mark.asyncio
async def test_call_ollama_chat_omits_temperature_and_reads_env_url(monkeypatch):
    captured: dict[str, object] = {}

    def fake_request(payload, base_url, timeout):
        captured["payload"] = payload
        captured["base_url"] = base_url
        return "ok"

    monkeypatch.setenv("OLLAMA_BASE_URL", "http://ollama.internal:11434/")
    monkeypatch.setattr("colloquy.local_llm._perform_ollama_request", fake_request)

    await call_ollama_chat(user_prompt="Hi", llm_model="llama3.1")

    assert "options" not in captured["payload"]
    assert captured["base_url"] == "http://ollama.internal:11434"


@pytest.mark.asyncio
async def test_call_ollama_chat_rejects_empty_prompt():
    with pytest.raises(LocalLLMError):
        await call_ollama_chat(user_prompt="   ", llm_model="llama3.1")


def test_assistant_text_parsing():
    assert _read_assistant_text('{"message": {"role": "assistant", "content": "Hello"}}') == "Hello"

    with pytest.raises(LocalLLMError, match="non-JSON"):
        _read_assistant_text("<html>")

    with pytest.raises(LocalLLMError, match="assistant content"):
        _read_assistant_text('{"message": {"content": ""}}')


def test_local_llm_error_is_a_completion_error():
    assert issubclass(LocalLLMError, CompletionError)
