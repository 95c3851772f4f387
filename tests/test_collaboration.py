"""Tests for NPC collaboration sessions and roster loading."""

import json

import pytest

from colloquy.collaboration import (
    CollaborationContext,
    CollaborationLoader,
    CollaborationRequest,
    CollaborationType,
    NPCPersona,
    build_agent_config,
    build_initial_prompt,
    resolve_gateway,
    run_npc_collaboration,
)
from colloquy.config import Config
from colloquy.errors import InvalidArgumentError
from colloquy.gateway import Completion, LLMCompletionGateway


class EchoGateway:
    def __init__(self):
        self.calls: list[tuple[str, float]] = []

    async def generate(self, prompt: str, temperature: float) -> Completion:
        self.calls.append((prompt, temperature))
        if temperature == 0.3:
            return Completion(text="SCORES: 8/10, 8/10, 8/10")
        return Completion(text=f"Contribution {len(self.calls)}")


ELDER = NPCPersona(
    name="Village Elder",
    personality="wise, traditional",
    archetype="sage",
    specialties=["Ancient lore"],
    relationships={"Adventurer": "wary mentor"},
)
ADVENTURER = NPCPersona(name="Adventurer", personality="bold, curious")


def test_persona_role_falls_back_to_first_trait():
    assert ELDER.role == "sage"
    assert ADVENTURER.role == "bold"


def test_initial_prompt_per_type():
    personas = [ELDER, ADVENTURER]

    quest = build_initial_prompt(
        personas, CollaborationType.QUEST, CollaborationContext(quest_seed="A relic was stolen.")
    )
    assert quest.startswith("Village Elder, Adventurer are discussing a problem")
    assert quest.endswith("A relic was stolen.")

    lore = build_initial_prompt(personas, CollaborationType.LORE, CollaborationContext())
    assert "the history and mysteries of their world" in lore

    item = build_initial_prompt(
        personas, CollaborationType.ITEM, CollaborationContext(item_type="sword", rarity="legendary")
    )
    assert "designing a legendary sword" in item

    freeform = build_initial_prompt(personas, CollaborationType.FREEFORM, CollaborationContext())
    assert freeform.startswith("Village Elder, Adventurer are interacting in the world.")


def test_agent_config_uses_type_specific_template():
    context = CollaborationContext(quest_seed="Bandits on the road", difficulty="hard")
    config = build_agent_config(ELDER, [ELDER, ADVENTURER], CollaborationType.QUEST, context)

    assert config.id.startswith("npc_")
    assert config.role == "sage"
    assert "QUEST THEME: Bandits on the road" in config.system_prompt
    assert "design a hard quest" in config.system_prompt
    assert "- Adventurer (bold)" in config.system_prompt
    assert "- Village Elder (sage)" not in config.system_prompt
    assert "{{" not in config.system_prompt
    assert config.persona.specialties == ["Ancient lore"]


def test_dialogue_template_includes_relationships_and_constraints():
    context = CollaborationContext(location="The Rusty Tankard", constraints=["Keep it short"])
    config = build_agent_config(ELDER, [ELDER, ADVENTURER], CollaborationType.DIALOGUE, context)

    assert "SCENE SETTING:\nThe Rusty Tankard" in config.system_prompt
    assert "YOUR RELATIONSHIPS:\n- Adventurer: wary mentor" in config.system_prompt
    assert "CONSTRAINTS:\n- Keep it short" in config.system_prompt


def test_relationship_type_uses_generic_template():
    config = build_agent_config(
        ADVENTURER, [ELDER, ADVENTURER], CollaborationType.RELATIONSHIP, CollaborationContext()
    )
    assert "COLLABORATION CONTEXT:\nTopic: relationship" in config.system_prompt


@pytest.mark.asyncio
async def test_run_npc_collaboration_requires_two_personas():
    request = CollaborationRequest(npc_personas=[ELDER])
    with pytest.raises(InvalidArgumentError):
        await run_npc_collaboration(request, EchoGateway())


@pytest.mark.asyncio
async def test_run_npc_collaboration_report():
    gateway = EchoGateway()
    request = CollaborationRequest(
        npc_personas=[ELDER, ADVENTURER],
        collaboration_type=CollaborationType.QUEST,
        context=CollaborationContext(quest_seed="A relic was stolen."),
        rounds=4,
        model="llama3.1",
    )

    report = await run_npc_collaboration(request, gateway)

    assert report.session_id.startswith("collab_")
    assert report.npc_count == 2
    assert report.rounds == 4
    assert [m.agent_name for m in report.conversation] == [
        "Village Elder",
        "Adventurer",
        "Village Elder",
        "Adventurer",
    ]
    assert report.emergent_content.relationships[0].interaction_count == 3
    assert report.validation.validated is True
    assert report.stats.total_messages == 4
    assert report.metadata.model == "llama3.1"
    assert report.metadata.cross_validated is True
    assert report.metadata.duration_ms >= 0
    assert "A relic was stolen." in gateway.calls[0][0]


def _capture_ollama(monkeypatch) -> list:
    models: list = []

    async def fake_ollama(**kwargs):
        models.append(kwargs["llm_model"])
        return f"Line from {kwargs['llm_model']}"

    monkeypatch.setattr("colloquy.gateway.call_ollama_chat", fake_ollama)
    return models


@pytest.mark.asyncio
async def test_requested_model_drives_generation(monkeypatch):
    models = _capture_ollama(monkeypatch)
    request = CollaborationRequest(
        npc_personas=[ELDER, ADVENTURER],
        rounds=2,
        model="mistral",
        enable_cross_validation=False,
    )

    report = await run_npc_collaboration(
        request, LLMCompletionGateway("ollama", "llama3.1", timeout=5, max_attempts=2)
    )

    assert models == ["mistral", "mistral"]
    assert report.metadata.model == "mistral"


@pytest.mark.asyncio
async def test_metadata_names_gateway_model_when_none_requested(monkeypatch):
    models = _capture_ollama(monkeypatch)
    request = CollaborationRequest(
        npc_personas=[ELDER, ADVENTURER], rounds=1, enable_cross_validation=False
    )

    report = await run_npc_collaboration(request, LLMCompletionGateway("ollama", "llama3.1"))

    assert models == ["llama3.1"]
    assert report.metadata.model == "llama3.1"


@pytest.mark.asyncio
async def test_default_gateway_comes_from_config(monkeypatch):
    models = _capture_ollama(monkeypatch)
    monkeypatch.setattr(Config, "LLM_PROVIDER", "ollama")
    monkeypatch.setattr(Config, "LLM_MODEL", "phi3")
    request = CollaborationRequest(
        npc_personas=[ELDER, ADVENTURER], rounds=1, enable_cross_validation=False
    )

    report = await run_npc_collaboration(request)

    assert models == ["phi3"]
    assert report.metadata.model == "phi3"


def test_resolve_gateway_keeps_custom_gateways():
    gateway = EchoGateway()
    assert resolve_gateway(gateway, "mistral") is gateway

    llm_gateway = LLMCompletionGateway("ollama", "llama3.1", timeout=9, max_attempts=3)
    assert resolve_gateway(llm_gateway, "llama3.1") is llm_gateway
    assert resolve_gateway(llm_gateway, None) is llm_gateway

    cloned = resolve_gateway(llm_gateway, "mistral")
    assert (cloned.llm_provider, cloned.llm_model) == ("ollama", "mistral")
    assert (cloned.timeout, cloned.max_attempts) == (9, 3)


def test_loader_reads_json_roster(tmp_path):
    roster = {
        "collaboration_type": "lore",
        "rounds": 3,
        "context": {"lore_topic": "the sunken city"},
        "npc_personas": [
            {"name": "Archivist", "personality": "meticulous"},
            {"name": "Diver", "personality": "reckless, loud"},
        ],
    }
    (tmp_path / "sunken.json").write_text(json.dumps(roster), encoding="utf-8")

    request = CollaborationLoader(tmp_path).load("sunken")

    assert request.collaboration_type is CollaborationType.LORE
    assert request.rounds == 3
    assert request.context.lore_topic == "the sunken city"
    assert [persona.role for persona in request.npc_personas] == ["meticulous", "reckless"]


def test_loader_accepts_explicit_path(tmp_path):
    path = tmp_path / "pair.json"
    path.write_text(
        json.dumps({"npc_personas": [{"name": "A", "personality": "x"}, {"name": "B", "personality": "y"}]}),
        encoding="utf-8",
    )

    request = CollaborationLoader(tmp_path / "elsewhere").load(str(path))

    assert request.collaboration_type is CollaborationType.FREEFORM


def test_loader_errors(tmp_path):
    loader = CollaborationLoader(tmp_path)

    with pytest.raises(FileNotFoundError):
        loader.load("missing")

    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        loader.load("broken")

    (tmp_path / "invalid.json").write_text(json.dumps({"npc_personas": [{"name": "A"}]}), encoding="utf-8")
    with pytest.raises(ValueError, match="invalid"):
        loader.load("invalid")
