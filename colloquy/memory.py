"""
Shared conversation memory.

Holds the append-only transcript every agent sees when its prompt is built,
plus free-form slots reserved for richer world modelling.

Key responsibilities:
- Record turns in round order (single writer: the orchestrator's loop)
- Serve recent-history windows for prompts, routing and rolling context
- Reset everything between conversations without touching the registry
"""

from typing import Any, Dict, List, Tuple

from colloquy.schemas import ConversationMessage


class SharedMemory:
    """Append-only transcript plus reserved world-state slots.

    Only the orchestrator records messages. Readers get tuples, so an agent
    or caller holding a reference cannot rewrite history.
    """

    def __init__(self) -> None:
        self._history: List[ConversationMessage] = []
        # Reserved for extension; extraction does not read these yet.
        self.world_state: Dict[str, Any] = {}
        self.relationships: Dict[str, Any] = {}
        self.generated_content: List[Any] = []

    @property
    def conversation_history(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def record(self, message: ConversationMessage) -> None:
        """Append a turn.

        Runs that are not separated by ``reset()`` keep accumulating, so round
        numbers restart at 0 for each run while the history keeps growing.
        """
        self._history.append(message)

    def recent(self, limit: int) -> List[ConversationMessage]:
        """Return the last ``limit`` messages, oldest first."""
        if limit <= 0:
            return []
        return list(self._history[-limit:])

    def recent_speakers(self, limit: int) -> List[str]:
        """Agent ids of the last ``limit`` messages, oldest first."""
        return [message.agent_id for message in self.recent(limit)]

    def render_recent(self, limit: int) -> str:
        """Render the last ``limit`` messages as ``name: content`` blocks."""
        return "\n\n".join(message.as_line() for message in self.recent(limit))

    def reset(self) -> None:
        """Clear transcript and reserved slots."""
        self._history.clear()
        self.world_state.clear()
        self.relationships.clear()
        self.generated_content.clear()


__all__ = ["SharedMemory"]
