"""
Example: NPC Collaboration from a JSON Roster
=============================================

Loads a roster from examples/npc_collaboration/rosters/, lets the NPCs design
content together and prints the report as JSON.

RUN:
    export LLM_PROVIDER=ollama
    export LLM_MODEL=llama3.1
    python -m examples.npc_collaboration.run stolen_relic
    python -m examples.npc_collaboration.run stolen_relic --rounds 3 --no-validation
"""

import argparse
import asyncio
from pathlib import Path

from colloquy import CollaborationLoader, Config, run_npc_collaboration

ROSTER_DIR = Path(__file__).parent / "rosters"


async def main(roster: str, rounds: int | None, validation: bool) -> None:
    Config.validate()
    print(Config.display())
    print()

    request = CollaborationLoader(ROSTER_DIR).load(roster)
    updates = {"enable_cross_validation": validation}
    if rounds is not None:
        updates["rounds"] = rounds
    request = request.model_copy(update=updates)

    # No gateway given: one is built from Config, using the roster's model if it names one
    report = await run_npc_collaboration(request)
    print(report.model_dump_json(indent=2))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run an NPC collaboration roster")
    parser.add_argument("roster", help="Roster name (without .json) or path to a roster file")
    parser.add_argument("--rounds", type=int, default=None, help="Override the roster's round count")
    parser.add_argument("--no-validation", action="store_true", help="Skip cross-validation")
    args = parser.parse_args()
    asyncio.run(main(args.roster, args.rounds, not args.no_validation))
