"""
Example: Tavern Council - Three Agents Talk It Out
==================================================

WHAT THIS SHOWS:
- Registering agents with personas and specialties
- Keyword routing picking the next speaker each round
- [END_CONVERSATION] / [HANDOFF] tags steering the loop
- Emergent relationships, dialogue snippets and cross-validation

REQUIRES:
- LLM_PROVIDER environment variable (e.g., "openai" or "ollama")
- LLM_MODEL environment variable (e.g., "gpt-4o-mini" or "llama3.1")
- API key for hosted providers (e.g., OPENAI_API_KEY)

RUN:
    export LLM_PROVIDER=openai
    export LLM_MODEL=gpt-4o-mini
    export OPENAI_API_KEY=your_key
    python -m examples.tavern_council.run --rounds 6
"""

import argparse
import asyncio
import os

from colloquy import (
    AgentConfig,
    AgentPersona,
    Config,
    LLMCompletionGateway,
    Orchestrator,
    OrchestratorConfig,
)


AGENTS = [
    AgentConfig(
        id="innkeeper",
        name="Marta",
        role="innkeeper",
        system_prompt=(
            "You are Marta, the innkeeper of the Rusty Tankard. You know every rumour "
            "that passes through your common room and you want the trouble on the road "
            "settled before it ruins trade. Keep replies to two or three sentences."
        ),
        persona=AgentPersona(
            personality="warm, shrewd",
            goals=["Keep the tavern full", "Protect regular customers"],
            specialties=["rumours", "trade"],
        ),
    ),
    AgentConfig(
        id="captain",
        name="Captain Voss",
        role="guard",
        system_prompt=(
            "You are Captain Voss of the town guard. You are tired, underfunded and "
            "suspicious of outsiders. Keep replies to two or three sentences."
        ),
        persona=AgentPersona(
            personality="gruff, dutiful",
            goals=["Catch the bandits", "Avoid blame from the council"],
            specialties=["bandits", "patrols"],
            relationships={"innkeeper": "old friend"},
        ),
    ),
    AgentConfig(
        id="scholar",
        name="Ilse",
        role="scholar",
        system_prompt=(
            "You are Ilse, a travelling scholar who studies ruins. You suspect the "
            "bandits are searching for something buried near the road. Keep replies to "
            "two or three sentences."
        ),
        persona=AgentPersona(
            personality="curious, nervous",
            goals=["Reach the ruins safely"],
            specialties=["ruins", "old maps"],
        ),
    ),
]


async def main(rounds: int, starting_agent: str | None) -> None:
    provider = os.getenv("LLM_PROVIDER")
    model = os.getenv("LLM_MODEL")

    if not provider or not model:
        print("❌ LLM configuration missing!")
        print("\nPlease set environment variables:")
        print("  export LLM_PROVIDER=openai")
        print("  export LLM_MODEL=gpt-4o-mini")
        print("  export OPENAI_API_KEY=your_key")
        return

    Config.validate()

    print("=" * 60)
    print("TAVERN COUNCIL")
    print("=" * 60)
    print(Config.display())
    print()

    gateway = LLMCompletionGateway(provider, model, max_attempts=2)
    orchestrator = Orchestrator(gateway, OrchestratorConfig.from_env(max_rounds=rounds))
    for agent in AGENTS:
        orchestrator.register_agent(agent)

    result = await orchestrator.run_conversation_round(
        "Bandits attacked a wagon on the north road last night. The guard captain "
        "wants to know what the tavern has heard.",
        starting_agent_id=starting_agent,
    )

    print()
    print("=" * 60)
    print("TRANSCRIPT")
    print("=" * 60)
    for message in result.rounds:
        print(f"[{message.round + 1}] {message.agent_name}: {message.content}\n")

    print("=" * 60)
    print("EMERGENT CONTENT")
    print("=" * 60)
    print(result.emergent_content.model_dump_json(indent=2))

    if result.validation is not None:
        print()
        print(
            f"Validated: {result.validation.validated} "
            f"(confidence {result.validation.confidence:.2f}, "
            f"{result.validation.validator_count} validators)"
        )

    stats = orchestrator.get_stats()
    print()
    for activity in stats.agent_activity:
        print(f"  {activity.name}: {activity.message_count} messages")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the tavern council conversation")
    parser.add_argument("--rounds", type=int, default=6, help="Maximum number of turns")
    parser.add_argument("--start", default=None, help="Id of the agent who speaks first")
    args = parser.parse_args()
    asyncio.run(main(args.rounds, args.start))
