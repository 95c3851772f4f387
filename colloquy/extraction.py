"""Emergent content extraction from a finished transcript.

Deterministic and stateless: the same rounds always yield the same content.

Relationships come from adjacent turns. Every pair of consecutive messages
counts as one interaction for the (sorted) pair of speaker ids, including a
speaker following itself. Only pairs with at least two interactions are
reported.

Quest ideas and lore fragments are extension points. The default extractor
returns empty lists; subclass EmergentContentExtractor and override the hooks
to mine them from the transcript.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from colloquy.schemas import (
    AgentState,
    ConversationMessage,
    DialogueSnippet,
    EmergentContent,
    Relationship,
)

MIN_INTERACTIONS = 2
SNIPPETS_PER_AGENT = 2
_CONTEXT_PREVIEW_CHARS = 100


@dataclass
class Interaction:
    round: int
    context: str


@dataclass
class _PairRecord:
    agents: List[str]
    interactions: List[Interaction] = field(default_factory=list)


def pair_key(first_id: str, second_id: str) -> Tuple[str, str]:
    """Order-independent key for two agent ids."""
    low, high = sorted((first_id, second_id))
    return (low, high)


def _interaction_context(previous: ConversationMessage, current: ConversationMessage) -> str:
    return (
        f"{previous.content[:_CONTEXT_PREVIEW_CHARS]}... → "
        f"{current.content[:_CONTEXT_PREVIEW_CHARS]}..."
    )


class EmergentContentExtractor:
    """Turns a transcript into relationships, dialogue samples and placeholders."""

    min_interactions: int = MIN_INTERACTIONS
    snippets_per_agent: int = SNIPPETS_PER_AGENT

    def extract(
        self,
        rounds: Sequence[ConversationMessage],
        agents: Mapping[str, AgentState] | None = None,
    ) -> EmergentContent:
        agents = agents or {}
        return EmergentContent(
            relationships=self.extract_relationships(rounds),
            quest_ideas=self.extract_quest_ideas(rounds),
            lore_fragments=self.extract_lore_fragments(rounds),
            dialogue_snippets=self.extract_dialogue_snippets(rounds, agents),
        )

    def extract_relationships(self, rounds: Sequence[ConversationMessage]) -> List[Relationship]:
        pairs: Dict[Tuple[str, str], _PairRecord] = {}

        for index in range(1, len(rounds)):
            previous = rounds[index - 1]
            current = rounds[index]
            key = pair_key(previous.agent_id, current.agent_id)
            record = pairs.get(key)
            if record is None:
                # Names are fixed by the first interaction in speaking order
                record = _PairRecord(agents=[previous.agent_name, current.agent_name])
                pairs[key] = record
            record.interactions.append(
                Interaction(round=index, context=_interaction_context(previous, current))
            )

        relationships: List[Relationship] = []
        for record in pairs.values():
            count = len(record.interactions)
            if count < self.min_interactions:
                continue
            first, second = record.agents
            relationships.append(
                Relationship(
                    agents=[first, second],
                    interaction_count=count,
                    type="emergent",
                    description=f"{first} and {second} engaged in {count} interactions",
                )
            )
        return relationships

    def extract_dialogue_snippets(
        self,
        rounds: Sequence[ConversationMessage],
        agents: Mapping[str, AgentState],
    ) -> List[DialogueSnippet]:
        by_agent: Dict[str, List[ConversationMessage]] = {}
        for message in rounds:
            by_agent.setdefault(message.agent_id, []).append(message)

        snippets: List[DialogueSnippet] = []
        for agent_id, messages in by_agent.items():
            agent = agents.get(agent_id)
            name = agent.name if agent is not None else messages[0].agent_name
            snippets.append(
                DialogueSnippet(
                    agent=name,
                    samples=[m.content for m in messages[: self.snippets_per_agent]],
                )
            )
        return snippets

    def extract_quest_ideas(self, rounds: Sequence[ConversationMessage]) -> List[Any]:
        return []

    def extract_lore_fragments(self, rounds: Sequence[ConversationMessage]) -> List[Any]:
        return []


def extract_emergent_content(
    rounds: Sequence[ConversationMessage],
    agents: Mapping[str, AgentState] | None = None,
) -> EmergentContent:
    """Run the default extractor."""
    return EmergentContentExtractor().extract(rounds, agents)


__all__ = [
    "EmergentContentExtractor",
    "Interaction",
    "MIN_INTERACTIONS",
    "SNIPPETS_PER_AGENT",
    "extract_emergent_content",
    "pair_key",
]
