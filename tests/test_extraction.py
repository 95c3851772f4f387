"""Unit tests for emergent content extraction."""

from datetime import datetime, timezone

from colloquy.extraction import EmergentContentExtractor, extract_emergent_content, pair_key
from colloquy.schemas import AgentState, ConversationMessage

NAMES = {"a": "Ada", "b": "Bram", "c": "Cyra"}


def _rounds(*speakers: str) -> list[ConversationMessage]:
    return [
        ConversationMessage(
            round=index,
            agent_id=agent_id,
            agent_name=NAMES[agent_id],
            content=f"{NAMES[agent_id]} line {index}",
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        for index, agent_id in enumerate(speakers)
    ]


def test_pair_key_is_order_independent():
    assert pair_key("b", "a") == pair_key("a", "b") == ("a", "b")


def test_alternating_pair_counts_every_adjacency():
    content = extract_emergent_content(_rounds("a", "b", "a", "b"))

    assert len(content.relationships) == 1
    relationship = content.relationships[0]
    assert relationship.agents == ["Ada", "Bram"]
    assert relationship.interaction_count == 3
    assert relationship.type == "emergent"
    assert relationship.description == "Ada and Bram engaged in 3 interactions"


def test_single_interaction_is_not_reported():
    content = extract_emergent_content(_rounds("a", "b"))
    assert content.relationships == []


def test_empty_transcript_yields_empty_content():
    content = extract_emergent_content([])
    assert content.relationships == []
    assert content.dialogue_snippets == []


def test_self_pairs_are_counted():
    content = extract_emergent_content(_rounds("a", "a", "a"))
    assert content.relationships[0].agents == ["Ada", "Ada"]
    assert content.relationships[0].interaction_count == 2


def test_names_follow_first_speaking_order():
    content = extract_emergent_content(_rounds("b", "a", "b", "c"))
    assert content.relationships[0].agents == ["Bram", "Ada"]


def test_dialogue_snippets_keep_first_two_lines_per_speaker():
    content = extract_emergent_content(_rounds("a", "b", "a", "b", "a"))

    snippets = {snippet.agent: snippet.samples for snippet in content.dialogue_snippets}
    assert snippets == {
        "Ada": ["Ada line 0", "Ada line 2"],
        "Bram": ["Bram line 1", "Bram line 3"],
    }


def test_snippets_use_registered_name_when_available():
    agents = {
        "a": AgentState(id="a", name="Ada the Elder", role="sage", system_prompt="p"),
    }
    content = extract_emergent_content(_rounds("a", "b"), agents)

    assert [snippet.agent for snippet in content.dialogue_snippets] == ["Ada the Elder", "Bram"]


def test_quest_and_lore_are_empty_by_default():
    content = extract_emergent_content(_rounds("a", "b", "a"))
    assert content.quest_ideas == []
    assert content.lore_fragments == []


def test_extraction_is_deterministic():
    rounds = _rounds("a", "b", "c", "a", "b")
    assert extract_emergent_content(rounds) == extract_emergent_content(rounds)


def test_subclass_hooks_fill_quests_and_lore():
    class QuestExtractor(EmergentContentExtractor):
        def extract_quest_ideas(self, rounds):
            return [m.content for m in rounds if "line 1" in m.content]

        def extract_lore_fragments(self, rounds):
            return ["The comet returns every hundred years"]

    content = QuestExtractor().extract(_rounds("a", "b"))

    assert content.quest_ideas == ["Bram line 1"]
    assert content.lore_fragments == ["The comet returns every hundred years"]
