"""Turn routing: pick the next speaker from the registered agents.

Scoring is a cheap keyword heuristic, not an LLM call:

* +10 when the agent's role appears in the current context
* -5 for each of the last three messages the agent spoke
* +5 for each persona specialty that appears in the context

Scores may go negative. The highest score wins and ties go to the agent that
was registered first, so routing is fully deterministic.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from colloquy.errors import NoAvailableAgentError
from colloquy.schemas import AgentState

ROLE_MATCH_BONUS = 10
RECENCY_PENALTY = 5
SPECIALTY_BONUS = 5
RECENCY_WINDOW = 3


def score_agent_relevance(
    agent: AgentState,
    context: str,
    recent_speakers: Sequence[str],
) -> int:
    """Score how well ``agent`` fits ``context``.

    Args:
        agent: Candidate agent
        context: Text the next turn will respond to
        recent_speakers: Agent ids of recent messages, oldest first. Only the
            last RECENCY_WINDOW entries count.
    """

    context_lower = context.lower()
    score = 0

    if agent.role and agent.role.lower() in context_lower:
        score += ROLE_MATCH_BONUS

    window = list(recent_speakers)[-RECENCY_WINDOW:]
    score -= RECENCY_PENALTY * window.count(agent.id)

    if agent.persona is not None:
        matches = sum(
            1
            for specialty in agent.persona.specialties
            if specialty and specialty.lower() in context_lower
        )
        score += SPECIALTY_BONUS * matches

    return score


def select_agent(
    agents: Iterable[AgentState],
    context: str,
    recent_speakers: Sequence[str],
    exclude_agent_ids: Iterable[str] = (),
) -> AgentState:
    """Return the best candidate among ``agents`` minus the excluded ids.

    ``agents`` must be in registration order; that order breaks ties.

    Raises:
        NoAvailableAgentError: If no candidate remains after exclusion
    """

    excluded = set(exclude_agent_ids)
    candidates = [agent for agent in agents if agent.id not in excluded]

    if not candidates:
        raise NoAvailableAgentError(excluded=sorted(excluded))

    if len(candidates) == 1:
        return candidates[0]

    # max() keeps the first of equal scores, which is the earliest registration.
    return max(
        candidates,
        key=lambda agent: score_agent_relevance(agent, context, recent_speakers),
    )


__all__ = [
    "ROLE_MATCH_BONUS",
    "RECENCY_PENALTY",
    "SPECIALTY_BONUS",
    "RECENCY_WINDOW",
    "score_agent_relevance",
    "select_agent",
]
