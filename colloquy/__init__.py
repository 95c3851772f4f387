"""
Colloquy - multi-agent conversation orchestration.

Register agent personas, let them talk in bounded turn-taking rounds, and
distill the transcript into emergent content with a cross-validated
confidence score.

No file I/O required. No database required.
The completion gateway is injected by the user.
"""

__version__ = "0.1.0"

# Main orchestrator
from .orchestrator import (
    Orchestrator,
    CompletedTurn,
    DegradedTurn,
    TurnOutcome,
    TurnRecord,
)

# Configuration
from .config import Config, OrchestratorConfig

# Errors
from .errors import (
    ColloquyError,
    InvalidAgentError,
    InvalidArgumentError,
    NoAvailableAgentError,
    CompletionError,
)

# Completion gateway
from .gateway import Completion, CompletionGateway, LLMCompletionGateway
from .local_llm import LocalLLMError

# Building blocks
from .memory import SharedMemory
from .routing import score_agent_relevance, select_agent
from .signals import ControlSignals, parse_control_signals, clean_response
from .extraction import EmergentContentExtractor, extract_emergent_content
from .validation import cross_validate, parse_scores
from .prompts import PromptLibrary, PromptTemplate, DEFAULT_PROMPTS

# Core schemas
from .schemas import (
    AgentPersona,
    AgentConfig,
    AgentState,
    ConversationMessage,
    Relationship,
    DialogueSnippet,
    EmergentContent,
    ValidationScores,
    ValidatorVerdict,
    ValidationResult,
    ConversationResult,
    AgentActivity,
    OrchestratorStats,
)

# NPC collaboration helpers
from .collaboration import (
    CollaborationType,
    NPCPersona,
    CollaborationContext,
    CollaborationRequest,
    CollaborationReport,
    CollaborationLoader,
    run_npc_collaboration,
)

__all__ = [
    # Main class
    "Orchestrator",
    "CompletedTurn",
    "DegradedTurn",
    "TurnOutcome",
    "TurnRecord",
    # Configuration
    "Config",
    "OrchestratorConfig",
    # Errors
    "ColloquyError",
    "InvalidAgentError",
    "InvalidArgumentError",
    "NoAvailableAgentError",
    "CompletionError",
    "LocalLLMError",
    # Gateway
    "Completion",
    "CompletionGateway",
    "LLMCompletionGateway",
    # Building blocks
    "SharedMemory",
    "score_agent_relevance",
    "select_agent",
    "ControlSignals",
    "parse_control_signals",
    "clean_response",
    "EmergentContentExtractor",
    "extract_emergent_content",
    "cross_validate",
    "parse_scores",
    "PromptLibrary",
    "PromptTemplate",
    "DEFAULT_PROMPTS",
    # Schemas
    "AgentPersona",
    "AgentConfig",
    "AgentState",
    "ConversationMessage",
    "Relationship",
    "DialogueSnippet",
    "EmergentContent",
    "ValidationScores",
    "ValidatorVerdict",
    "ValidationResult",
    "ConversationResult",
    "AgentActivity",
    "OrchestratorStats",
    # Collaboration
    "CollaborationType",
    "NPCPersona",
    "CollaborationContext",
    "CollaborationRequest",
    "CollaborationReport",
    "CollaborationLoader",
    "run_npc_collaboration",
]
