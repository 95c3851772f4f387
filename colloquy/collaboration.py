"""
NPC collaboration sessions built on the orchestrator.

Turns a roster of NPC personas into registered agents, opens the conversation
with a prompt suited to the collaboration type, runs it, and packages the
result with session metadata.

Rosters can be written in code or loaded from JSON:

```json
{
  "collaboration_type": "quest",
  "rounds": 4,
  "context": {"quest_seed": "A relic was stolen from the temple"},
  "npc_personas": [
    {"name": "Village Elder", "personality": "wise, traditional", "archetype": "sage",
     "specialties": ["Ancient lore"]},
    {"name": "Adventurer", "personality": "bold, curious", "archetype": "hero"}
  ]
}
```

Usage:
    loader = CollaborationLoader(Path("rosters"))
    request = loader.load("stolen_relic")
    report = await run_npc_collaboration(request, gateway)
"""

import json
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError

from .config import OrchestratorConfig
from .errors import InvalidArgumentError
from .gateway import CompletionGateway, LLMCompletionGateway
from .logging_utils import log_info, log_success
from .orchestrator import Orchestrator
from .prompts import DEFAULT_PROMPTS, format_constraints, format_participants, render_prompt
from .schemas import (
    AgentConfig,
    AgentPersona,
    ConversationMessage,
    EmergentContent,
    OrchestratorStats,
    ValidationResult,
)

DEFAULT_COLLABORATION_ROUNDS = 5
MIN_PERSONAS = 2


class CollaborationType(str, Enum):
    DIALOGUE = "dialogue"
    QUEST = "quest"
    LORE = "lore"
    RELATIONSHIP = "relationship"
    ITEM = "item"
    FREEFORM = "freeform"


# System prompt template per type; anything not listed uses "npc_collaboration".
_TEMPLATE_BY_TYPE = {
    CollaborationType.DIALOGUE: "dialogue_collaboration",
    CollaborationType.QUEST: "quest_collaboration",
    CollaborationType.LORE: "lore_collaboration",
    CollaborationType.ITEM: "item_collaboration",
}


class NPCPersona(BaseModel):
    """An NPC as described by a game designer."""

    id: Optional[str] = None
    name: str
    personality: str
    archetype: Optional[str] = None
    goals: List[str] = Field(default_factory=list)
    specialties: List[str] = Field(default_factory=list)
    background: Optional[str] = None
    relationships: Dict[str, Any] = Field(default_factory=dict)

    @property
    def role(self) -> str:
        """Archetype, or the first comma-separated personality trait."""
        if self.archetype:
            return self.archetype
        return self.personality.split(",")[0].strip()


class CollaborationContext(BaseModel):
    """Optional scene details; which fields matter depends on the type."""

    description: Optional[str] = None
    scenario: Optional[str] = None
    quest_seed: Optional[str] = None
    lore_topic: Optional[str] = None
    location: Optional[str] = None
    situation: Optional[str] = None
    tone: Optional[str] = None
    difficulty: Optional[str] = None
    historical_period: Optional[str] = None
    region: Optional[str] = None
    item_type: Optional[str] = None
    rarity: Optional[str] = None
    purpose: Optional[str] = None
    constraints: List[str] = Field(default_factory=list)


class CollaborationRequest(BaseModel):
    npc_personas: List[NPCPersona]
    collaboration_type: CollaborationType = CollaborationType.FREEFORM
    context: CollaborationContext = Field(default_factory=CollaborationContext)
    rounds: int = DEFAULT_COLLABORATION_ROUNDS
    model: Optional[str] = None
    enable_cross_validation: bool = True


class CollaborationMetadata(BaseModel):
    generated_by: str = "Multi-Agent Collaboration"
    model: str = "default"
    timestamp: datetime
    cross_validated: bool
    duration_ms: int


class CollaborationReport(BaseModel):
    session_id: str
    collaboration_type: CollaborationType
    npc_count: int
    rounds: int
    conversation: List[ConversationMessage]
    emergent_content: EmergentContent
    validation: Optional[ValidationResult] = None
    stats: OrchestratorStats
    metadata: CollaborationMetadata


def _participants(personas: Sequence[NPCPersona]) -> List[Dict[str, str]]:
    return [{"name": persona.name, "role": persona.role} for persona in personas]


def _relationship_block(persona: NPCPersona) -> str:
    if not persona.relationships:
        return ""
    lines = "\n".join(f"- {other}: {detail}" for other, detail in persona.relationships.items())
    return f"\nYOUR RELATIONSHIPS:\n{lines}"


def _template_values(
    persona: NPCPersona,
    personas: Sequence[NPCPersona],
    collaboration_type: CollaborationType,
    context: CollaborationContext,
) -> Dict[str, str]:
    lore_topic = context.lore_topic or "the history and mysteries of their world"
    return {
        "npc_name": persona.name,
        "npc_role": persona.role,
        "topic": lore_topic if collaboration_type is CollaborationType.LORE else collaboration_type.value,
        "goal": context.scenario or f"Engage in {collaboration_type.value} collaboration",
        "participants": format_participants(_participants(personas), exclude_name=persona.name),
        "constraints": format_constraints(context.constraints),
        "setting": context.location or context.description or "An unremarkable corner of the world",
        "tone": context.tone or "natural",
        "relationship_block": _relationship_block(persona),
        "theme": context.quest_seed or context.scenario or "an unresolved problem",
        "difficulty": context.difficulty or "medium",
        "location": context.location or "the surrounding region",
        "period_line": f"HISTORICAL PERIOD: {context.historical_period}\n" if context.historical_period else "",
        "region_line": f"REGION: {context.region}\n" if context.region else "",
        "item_type": context.item_type or "artifact",
        "rarity": context.rarity or "rare",
        "purpose": context.purpose or context.scenario or "Reward for a memorable quest",
    }


def build_agent_config(
    persona: NPCPersona,
    personas: Sequence[NPCPersona],
    collaboration_type: CollaborationType,
    context: CollaborationContext,
) -> AgentConfig:
    """Render the collaboration system prompt and wrap the persona as an agent."""

    template = DEFAULT_PROMPTS.get(_TEMPLATE_BY_TYPE.get(collaboration_type, "npc_collaboration"))
    rendered = render_prompt(
        template, _template_values(persona, personas, collaboration_type, context)
    )
    return AgentConfig(
        id=persona.id or f"npc_{uuid4().hex[:16]}",
        name=persona.name,
        role=persona.role,
        system_prompt=rendered.combined(),
        persona=AgentPersona(
            personality=persona.personality,
            goals=list(persona.goals),
            specialties=list(persona.specialties),
            background=persona.background or "",
            relationships=dict(persona.relationships),
        ),
    )


def build_initial_prompt(
    personas: Sequence[NPCPersona],
    collaboration_type: CollaborationType,
    context: CollaborationContext,
) -> str:
    """Opening line of the conversation for each collaboration type."""

    names = ", ".join(persona.name for persona in personas)

    if collaboration_type is CollaborationType.DIALOGUE:
        return (
            f"{names} are meeting for the first time. "
            f"{context.scenario or 'They begin a natural conversation based on their personalities and goals.'}"
        )
    if collaboration_type is CollaborationType.QUEST:
        return (
            f"{names} are discussing a problem in the world that could become a quest. "
            f"{context.quest_seed or 'They brainstorm objectives, challenges, and rewards that fit their roles and the world setting.'}"
        )
    if collaboration_type is CollaborationType.LORE:
        return (
            f"{names} are gathered to share stories and knowledge about "
            f"{context.lore_topic or 'the history and mysteries of their world'}. "
            "Each contributes what they know from their unique perspective."
        )
    if collaboration_type is CollaborationType.RELATIONSHIP:
        return (
            f"{names} are interacting in {context.location or 'a social setting'}. "
            f"{context.situation or 'Their relationship develops through authentic conversation and shared experiences.'}"
        )
    if collaboration_type is CollaborationType.ITEM:
        return (
            f"{names} are designing a {context.rarity or 'rare'} {context.item_type or 'artifact'}. "
            f"{context.purpose or 'Each proposes a name, abilities, and a story that fit its rarity.'}"
        )
    return (
        f"{names} are {context.situation or 'interacting in the world'}. "
        "They respond naturally based on their personalities and goals."
    )


def resolve_gateway(
    gateway: Optional[CompletionGateway], model: Optional[str]
) -> CompletionGateway:
    """Return a gateway that generates with ``model`` when one is requested.

    Without a gateway an LLMCompletionGateway is built from Config. An
    LLMCompletionGateway bound to another model is cloned for ``model``.
    Other gateways are used as given.
    """
    if gateway is None:
        return LLMCompletionGateway(llm_model=model)
    if model and isinstance(gateway, LLMCompletionGateway) and gateway.llm_model != model:
        return LLMCompletionGateway(
            gateway.llm_provider,
            model,
            timeout=gateway.timeout,
            max_attempts=gateway.max_attempts,
            base_url=gateway.base_url,
        )
    return gateway


async def run_npc_collaboration(
    request: CollaborationRequest,
    gateway: Optional[CompletionGateway] = None,
) -> CollaborationReport:
    """Register every persona, run the conversation and package the result.

    ``metadata.model`` names the model the gateway generated with, falling back
    to ``request.model`` for gateways that do not expose one.

    Raises:
        InvalidArgumentError: If fewer than two personas are supplied
        InvalidAgentError: If a persona cannot become a valid agent
    """
    personas = request.npc_personas
    if len(personas) < MIN_PERSONAS:
        raise InvalidArgumentError(
            f"NPC collaboration needs at least {MIN_PERSONAS} personas, got {len(personas)}"
        )

    gateway = resolve_gateway(gateway, request.model)
    model = getattr(gateway, "llm_model", None) or request.model or "default"

    started = time.monotonic()
    session_id = f"collab_{uuid4().hex[:16]}"
    log_info(
        f"[Collaboration {session_id}] {request.collaboration_type.value} with "
        f"{len(personas)} NPCs: {', '.join(p.name for p in personas)}"
    )

    orchestrator = Orchestrator(
        gateway,
        OrchestratorConfig(
            max_rounds=request.rounds,
            enable_cross_validation=request.enable_cross_validation,
            model=model,
        ),
    )
    for persona in personas:
        orchestrator.register_agent(
            build_agent_config(persona, personas, request.collaboration_type, request.context)
        )

    initial_prompt = build_initial_prompt(personas, request.collaboration_type, request.context)
    result = await orchestrator.run_conversation_round(initial_prompt)

    duration_ms = int((time.monotonic() - started) * 1000)
    log_success(f"[Collaboration {session_id}] {len(result.rounds)} rounds in {duration_ms}ms")

    return CollaborationReport(
        session_id=session_id,
        collaboration_type=request.collaboration_type,
        npc_count=len(personas),
        rounds=len(result.rounds),
        conversation=result.rounds,
        emergent_content=result.emergent_content,
        validation=result.validation,
        stats=orchestrator.get_stats(),
        metadata=CollaborationMetadata(
            model=model,
            timestamp=datetime.now(timezone.utc),
            cross_validated=request.enable_cross_validation,
            duration_ms=duration_ms,
        ),
    )


class CollaborationLoader:
    """Load collaboration rosters from JSON files.

    Files live in ``roster_dir`` and are addressed by name without the
    ``.json`` suffix. A path to an existing file is accepted as well.
    """

    def __init__(self, roster_dir: Optional[Path] = None):
        self.roster_dir = Path(roster_dir) if roster_dir is not None else Path.cwd()

    def resolve(self, name_or_path: str) -> Path:
        candidate = Path(name_or_path)
        if candidate.suffix == ".json" and candidate.exists():
            return candidate
        return self.roster_dir / f"{name_or_path}.json"

    def load(self, name_or_path: str) -> CollaborationRequest:
        """Read and validate a roster.

        Raises:
            FileNotFoundError: If the roster file does not exist
            ValueError: If the file is not valid JSON or fails validation
        """
        path = self.resolve(name_or_path)
        if not path.exists():
            raise FileNotFoundError(f"Roster not found: {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Roster {path} is not valid JSON: {exc}") from exc

        try:
            return CollaborationRequest.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Roster {path} is invalid: {exc}") from exc


__all__ = [
    "CollaborationType",
    "NPCPersona",
    "CollaborationContext",
    "CollaborationRequest",
    "CollaborationMetadata",
    "CollaborationReport",
    "CollaborationLoader",
    "build_agent_config",
    "build_initial_prompt",
    "resolve_gateway",
    "run_npc_collaboration",
]
