"""
Multi-agent conversation orchestrator.

Decoupled from any transport: the completion gateway is injected, nothing is
persisted, and all state lives on the instance.

Each run drives the round loop:
1. Select the next speaker (pinned id or Turn Router)
2. Generate the turn through the completion gateway
3. Record the message in the transcript and shared memory
4. Decide whether an [END_CONVERSATION] tag stops the loop
5. Roll the context forward from the last three messages

After the loop the transcript is distilled into emergent content and, when
enabled, cross-validated by the agents themselves.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .config import OrchestratorConfig
from .errors import InvalidAgentError, InvalidArgumentError, NoAvailableAgentError
from .extraction import EmergentContentExtractor
from .gateway import CompletionGateway
from .logging_utils import (
    is_verbose,
    log_deterministic,
    log_error,
    log_info,
    log_llm,
    log_success,
    preview,
)
from .memory import SharedMemory
from .prompts import DEFAULT_PROMPTS, PromptLibrary, build_turn_prompt
from .routing import select_agent
from .schemas import (
    AgentActivity,
    AgentConfig,
    AgentState,
    ConversationMessage,
    ConversationResult,
    OrchestratorStats,
)
from .signals import ControlSignals, parse_control_signals
from .validation import cross_validate

# Messages of shared history shown to the speaking agent
HISTORY_WINDOW = 5
# Messages rolled into the next round's context
CONTEXT_WINDOW = 3

_REQUIRED_AGENT_FIELDS = ("id", "name", "role", "system_prompt")


# =============================
# Turn outcomes
# =============================

@dataclass(frozen=True, slots=True)
class CompletedTurn:
    """The gateway produced text for this turn."""

    text: str
    finish_reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class DegradedTurn:
    """The gateway failed; ``text`` is the placeholder recorded instead."""

    text: str
    cause: BaseException

    @property
    def degraded(self) -> bool:
        return True


TurnOutcome = Union[CompletedTurn, DegradedTurn]


@dataclass(frozen=True, slots=True)
class TurnRecord:
    """Outcome and parsed control signals of one recorded round."""

    round: int
    agent_id: str
    outcome: TurnOutcome
    signals: ControlSignals


def silent_placeholder(agent_name: str) -> str:
    return f"[{agent_name} is momentarily silent]"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    """
    Runs bounded, turn-taking conversations among registered agents.

    One instance per conversation scope. Concurrent runs on the same instance
    are not supported because they would share the transcript and counters.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        config: Optional[OrchestratorConfig] = None,
        *,
        extractor: Optional[EmergentContentExtractor] = None,
        prompt_library: Optional[PromptLibrary] = None,
    ):
        """Initialize orchestrator with all dependencies injected.

        Args:
            gateway: Completion gateway used for turns and validation
            config: Round budget, temperatures and cross-validation switch.
                Defaults to OrchestratorConfig() (10 rounds, 0.8, validation on).
            extractor: Optional EmergentContentExtractor subclass instance
                (e.g. one that fills quest ideas or lore fragments)
            prompt_library: Optional library overriding the "turn" and
                "validate" templates
        """
        self.gateway = gateway
        self.config = config or OrchestratorConfig()
        self.extractor = extractor or EmergentContentExtractor()
        self.prompt_library = prompt_library or DEFAULT_PROMPTS

        # dict keeps insertion order; router tie-breaks and validator choice rely on it.
        self._agents: Dict[str, AgentState] = {}
        self._memory = SharedMemory()
        self._turn_records: List[TurnRecord] = []

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_agent(self, config: Union[AgentConfig, Mapping[str, Any]]) -> None:
        """Register (or silently replace) an agent.

        Raises:
            InvalidAgentError: If id, name, role or system_prompt is missing or blank
        """
        if not isinstance(config, AgentConfig):
            try:
                config = AgentConfig.model_validate(config)
            except ValidationError as exc:
                raise InvalidAgentError(f"Invalid agent configuration: {exc}") from exc

        missing = [
            name for name in _REQUIRED_AGENT_FIELDS if not getattr(config, name).strip()
        ]
        if missing:
            label = config.name or config.id or "<unnamed>"
            raise InvalidAgentError(
                f"Agent {label} is missing required fields: {', '.join(missing)}",
                missing=missing,
            )

        # Only configuration fields are copied, so counters always start fresh,
        # even for a re-registered id or an AgentState passed back in.
        self._agents[config.id] = AgentState(
            **config.model_dump(include=set(AgentConfig.model_fields))
        )

    @property
    def agents(self) -> List[AgentState]:
        """Copies of the registered agents, in registration order."""
        return [agent.model_copy(deep=True) for agent in self._agents.values()]

    def get_agent(self, agent_id: str) -> Optional[AgentState]:
        agent = self._agents.get(agent_id)
        return agent.model_copy(deep=True) if agent is not None else None

    @property
    def conversation_history(self) -> Tuple[ConversationMessage, ...]:
        return self._memory.conversation_history

    @property
    def world_state(self) -> Dict[str, Any]:
        return self._memory.world_state

    @property
    def turn_records(self) -> Tuple[TurnRecord, ...]:
        """Outcome of every turn recorded by the most recent run."""
        return tuple(self._turn_records)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def route_to_agent(
        self, context: str, exclude_agent_ids: Iterable[str] = ()
    ) -> AgentState:
        """Pick the best next speaker for ``context``.

        Raises:
            NoAvailableAgentError: If every registered agent is excluded
        """
        return self._route(context, exclude_agent_ids).model_copy(deep=True)

    def _route(self, context: str, exclude_agent_ids: Iterable[str]) -> AgentState:
        agent = select_agent(
            self._agents.values(),
            context,
            self._memory.recent_speakers(CONTEXT_WINDOW),
            exclude_agent_ids,
        )
        log_deterministic(f"[Router] Next speaker: {agent.name} ({agent.role})")
        return agent

    def _select_speaker(
        self,
        context: str,
        pinned_agent_id: Optional[str],
        previous_agent_id: Optional[str],
    ) -> Optional[AgentState]:
        if pinned_agent_id:
            agent = self._agents.get(pinned_agent_id)
            if agent is None:
                log_error(f"[Router] Agent '{pinned_agent_id}' is not registered; ending conversation")
            return agent

        # A lone agent is never excluded, so it keeps the floor every round.
        exclude: List[str] = []
        if previous_agent_id is not None and len(self._agents) > 1:
            exclude.append(previous_agent_id)

        try:
            return self._route(context, exclude)
        except NoAvailableAgentError:
            log_info("[Router] No agents available; ending conversation")
            return None

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_agent_response(self, agent_id: str, context: str) -> TurnOutcome:
        """Generate one turn for ``agent_id`` without recording it.

        Raises:
            InvalidArgumentError: If the agent is not registered
        """
        agent = self._agents.get(agent_id)
        if agent is None:
            raise InvalidArgumentError(f"Agent '{agent_id}' is not registered")
        return await self._generate(agent, context)

    async def _generate(self, agent: AgentState, context: str) -> TurnOutcome:
        prompt = build_turn_prompt(
            agent,
            self._memory.recent(HISTORY_WINDOW),
            context,
            allow_handoff=self.config.max_rounds > 1,
            library=self.prompt_library,
        )

        log_llm(f"[{agent.name}] Generating turn...")
        try:
            completion = await self.gateway.generate(prompt, self.config.temperature)
        except Exception as exc:
            # A failed turn degrades into a placeholder; the loop keeps going.
            log_error(f"[{agent.name}] Generation failed: {exc}")
            return DegradedTurn(text=silent_placeholder(agent.name), cause=exc)

        return CompletedTurn(text=completion.text, finish_reason=completion.finish_reason)

    def _record_turn(self, round_index: int, agent: AgentState, content: str) -> ConversationMessage:
        now = _utcnow()
        message = ConversationMessage(
            round=round_index,
            agent_id=agent.id,
            agent_name=agent.name,
            content=content,
            timestamp=now,
        )
        self._memory.record(message)
        agent.message_count += 1
        agent.last_active = now
        return message

    # ------------------------------------------------------------------
    # Conversation loop
    # ------------------------------------------------------------------

    async def run_conversation_round(
        self,
        initial_prompt: str,
        starting_agent_id: Optional[str] = None,
    ) -> ConversationResult:
        """Run one conversation of up to ``config.max_rounds`` turns.

        Args:
            initial_prompt: Opening context for the first speaker
            starting_agent_id: Optional id of the agent who speaks first

        Returns:
            ConversationResult with rounds, emergent content and, when enabled,
            the cross-validation verdict

        Raises:
            InvalidArgumentError: If initial_prompt is empty
        """
        if not initial_prompt or not initial_prompt.strip():
            raise InvalidArgumentError("Initial prompt is required")

        max_rounds = self.config.max_rounds
        self._turn_records = []
        rounds: List[ConversationMessage] = []

        current_context = initial_prompt
        current_agent_id = starting_agent_id
        previous_agent_id: Optional[str] = None

        log_info(f"Starting conversation: {len(self._agents)} agents, up to {max_rounds} rounds")

        for round_index in range(max_rounds):
            print(f"=== Round {round_index + 1}/{max_rounds} ===")

            agent = self._select_speaker(current_context, current_agent_id, previous_agent_id)
            if agent is None:
                break

            outcome = await self._generate(agent, current_context)
            message = self._record_turn(round_index, agent, outcome.text)
            rounds.append(message)

            signals = parse_control_signals(outcome.text)
            self._turn_records.append(
                TurnRecord(round=round_index, agent_id=agent.id, outcome=outcome, signals=signals)
            )

            if is_verbose():
                log_info(f'  {agent.name}: "{preview(outcome.text)}"')

            if signals.should_end:
                log_success(f"[{agent.name}] Ended the conversation at round {round_index + 1}")
                break

            if signals.handoff:
                log_info(f"[{agent.name}] Handoff: {signals.handoff_reason or 'natural flow'}")

            current_context = self._memory.render_recent(CONTEXT_WINDOW)
            previous_agent_id = agent.id
            current_agent_id = None

        log_deterministic(f"[Extraction] Distilling {len(rounds)} rounds")
        emergent_content = self.extractor.extract(rounds, self._agents)

        validation = None
        if self.config.enable_cross_validation:
            validation = await cross_validate(
                emergent_content,
                list(self._agents.values()),
                self.gateway,
                temperature=self.config.validation_temperature,
                library=self.prompt_library,
            )

        log_success(f"Conversation complete: {len(rounds)} rounds")
        return ConversationResult(
            rounds=rounds,
            emergent_content=emergent_content,
            validation=validation,
        )

    # ------------------------------------------------------------------
    # Reset & stats
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Clear shared memory and per-agent counters; keep registrations."""
        self._memory.reset()
        self._turn_records = []
        for agent in self._agents.values():
            agent.message_count = 0
            agent.last_active = None

    def get_stats(self) -> OrchestratorStats:
        return OrchestratorStats(
            agent_count=len(self._agents),
            total_messages=len(self._memory),
            agent_activity=[
                AgentActivity(
                    id=agent.id,
                    name=agent.name,
                    message_count=agent.message_count,
                    last_active=agent.last_active,
                )
                for agent in self._agents.values()
            ],
        )


__all__ = [
    "Orchestrator",
    "CompletedTurn",
    "DegradedTurn",
    "TurnOutcome",
    "TurnRecord",
    "HISTORY_WINDOW",
    "CONTEXT_WINDOW",
    "silent_placeholder",
]
