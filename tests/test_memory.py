"""Unit tests for the shared conversation memory."""

from datetime import datetime, timezone

from colloquy.memory import SharedMemory
from colloquy.schemas import ConversationMessage


def _message(round_index: int, agent_id: str, content: str) -> ConversationMessage:
    return ConversationMessage(
        round=round_index,
        agent_id=agent_id,
        agent_name=agent_id.upper(),
        content=content,
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def test_recent_windows_are_oldest_first():
    memory = SharedMemory()
    for index, agent_id in enumerate(["a", "b", "a", "c"]):
        memory.record(_message(index, agent_id, f"msg {index}"))

    assert len(memory) == 4
    assert [m.content for m in memory.recent(2)] == ["msg 2", "msg 3"]
    assert memory.recent(0) == []
    assert memory.recent(10)[0].content == "msg 0"
    assert memory.recent_speakers(3) == ["b", "a", "c"]
    assert memory.render_recent(2) == "A: msg 2\n\nC: msg 3"


def test_history_is_exposed_as_tuple():
    memory = SharedMemory()
    memory.record(_message(0, "a", "hello"))

    history = memory.conversation_history
    assert isinstance(history, tuple)
    assert history[0].content == "hello"


def test_reset_clears_everything():
    memory = SharedMemory()
    memory.record(_message(0, "a", "hello"))
    memory.world_state["weather"] = "rain"
    memory.relationships["a"] = "b"
    memory.generated_content.append("quest")

    memory.reset()

    assert len(memory) == 0
    assert memory.world_state == {}
    assert memory.relationships == {}
    assert memory.generated_content == []
    assert memory.render_recent(3) == ""
