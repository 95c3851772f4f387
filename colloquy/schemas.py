"""
Pydantic schemas for Colloquy conversations.

All data structures exchanged between the orchestrator, the extractor, the
cross-validator and callers are defined here.

Design Philosophy:
- Agent configuration is immutable input; runtime counters live on AgentState
- Transcript messages are frozen once recorded
- Derived artifacts (emergent content, validation) are plain result models,
  recomputed per run and never stored inside shared memory
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Agent Schemas
# ============================================================================


class AgentPersona(BaseModel):
    """Optional persona payload rendered into an agent's turn prompt.

    Specialties double as routing keywords: each one found in the current
    context earns the agent a bonus when the router picks the next speaker.
    """

    personality: Optional[str] = Field(None, description="Personality summary")
    goals: List[str] = Field(default_factory=list, description="What the agent wants")
    specialties: List[str] = Field(
        default_factory=list, description="Topics the agent is an authority on"
    )
    background: Optional[str] = Field(None, description="Backstory")
    # Free-form because callers describe relationships in many shapes
    # ({"npc_2": "rival"} or {"npc_2": {"trust": 3}}).
    relationships: Dict[str, Any] = Field(
        default_factory=dict, description="Relationships keyed by other agent"
    )


class AgentConfig(BaseModel):
    """Static configuration supplied when an agent is registered.

    Required-field checks happen in Orchestrator.register_agent so callers get
    a single InvalidAgentError instead of a pydantic ValidationError.
    """

    id: str = Field("", description="Unique agent identifier")
    name: str = Field("", description="Display name used in transcripts")
    role: str = Field("", description="Role keyword, matched against context by the router")
    system_prompt: str = Field("", description="System prompt that defines the agent")
    persona: Optional[AgentPersona] = Field(None, description="Optional persona payload")


class AgentState(AgentConfig):
    """AgentConfig plus the runtime counters the orchestrator maintains."""

    message_count: int = Field(0, ge=0, description="Turns generated by this agent")
    last_active: Optional[datetime] = Field(None, description="Time of the agent's last turn")


# ============================================================================
# Transcript Schemas
# ============================================================================


class ConversationMessage(BaseModel):
    """One recorded turn. Immutable once appended to the transcript."""

    model_config = ConfigDict(frozen=True)

    round: int = Field(..., ge=0, description="0-based round index")
    agent_id: str = Field(..., description="Speaker id")
    # Snapshot of the name at speaking time; re-registration does not rewrite it
    agent_name: str = Field(..., description="Speaker name when the turn was recorded")
    content: str = Field(..., description="Raw completion text including control tags")
    timestamp: datetime = Field(..., description="When the turn was recorded (UTC)")

    def as_line(self) -> str:
        """Render as ``"<name>: <content>"`` for prompts and rolling context."""
        return f"{self.agent_name}: {self.content}"


# ============================================================================
# Emergent Content Schemas
# ============================================================================


class Relationship(BaseModel):
    """A pair of agents that interacted often enough to be reported."""

    agents: List[str] = Field(..., min_length=2, max_length=2, description="Agent names")
    interaction_count: int = Field(..., ge=2, description="Adjacent turns between the pair")
    type: str = Field("emergent", description="Relationship classification")
    description: str = Field(..., description="Human-readable summary")


class DialogueSnippet(BaseModel):
    """Sample lines for one speaker, in speaking order."""

    agent: str = Field(..., description="Agent name")
    samples: List[str] = Field(default_factory=list, description="At most two early messages")


class EmergentContent(BaseModel):
    """Structured artifacts distilled from a finished transcript."""

    relationships: List[Relationship] = Field(default_factory=list)
    # Reserved extension points; the default extractor leaves them empty.
    quest_ideas: List[Any] = Field(default_factory=list)
    lore_fragments: List[Any] = Field(default_factory=list)
    dialogue_snippets: List[DialogueSnippet] = Field(default_factory=list)


# ============================================================================
# Validation Schemas
# ============================================================================


class ValidationScores(BaseModel):
    """Scores averaged across successful validators (0-10 each)."""

    consistency: float = Field(..., ge=0.0, le=10.0)
    authenticity: float = Field(..., ge=0.0, le=10.0)
    quality: float = Field(..., ge=0.0, le=10.0)


class ValidatorVerdict(BaseModel):
    """One validator's parsed rating plus its free-text feedback."""

    validator: str = Field(..., description="Name of the validating agent")
    consistency: float = Field(..., ge=0.0, le=10.0)
    authenticity: float = Field(..., ge=0.0, le=10.0)
    quality: float = Field(..., ge=0.0, le=10.0)
    feedback: str = Field("", description="Full validator response")


class ValidationResult(BaseModel):
    """Aggregate verdict of the cross-validator."""

    validated: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    scores: Optional[ValidationScores] = None
    validator_count: int = Field(0, ge=0)
    details: List[ValidatorVerdict] = Field(default_factory=list)
    # Explains degenerate outcomes ("insufficient agents", "all validations failed")
    note: Optional[str] = None


# ============================================================================
# Result Schemas
# ============================================================================


class ConversationResult(BaseModel):
    """Everything a run produces."""

    rounds: List[ConversationMessage] = Field(default_factory=list)
    emergent_content: EmergentContent = Field(default_factory=EmergentContent)
    validation: Optional[ValidationResult] = None


class AgentActivity(BaseModel):
    id: str
    name: str
    message_count: int
    last_active: Optional[datetime] = None


class OrchestratorStats(BaseModel):
    """Read-only snapshot returned by Orchestrator.get_stats()."""

    agent_count: int
    total_messages: int
    agent_activity: List[AgentActivity] = Field(default_factory=list)
