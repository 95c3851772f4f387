"""Prompt templates and rendering for agent turns, validation and collaboration.

Templates use ``{{double_brace}}`` placeholders so literal JSON braces in
persona payloads never collide with substitution. Unknown placeholders are
left as-is.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Dict, Mapping, Sequence

from colloquy.schemas import AgentState, ConversationMessage
from colloquy.signals import END_TAG


@dataclass
class PromptTemplate:
    """Represents a templated prompt with placeholders."""

    name: str
    system: str
    user: str
    description: str = ""


@dataclass
class RenderedPrompt:
    system: str
    user: str

    def combined(self) -> str:
        """Join system and user sections into the single prompt a gateway takes."""
        return "\n\n".join(section for section in (self.system.strip(), self.user.strip()) if section)


class PromptLibrary:
    """Container for named prompt templates."""

    def __init__(self) -> None:
        self.templates: Dict[str, PromptTemplate] = {}

    def register(self, template: PromptTemplate) -> None:
        self.templates[template.name] = template

    def get(self, name: str) -> PromptTemplate:
        return self.templates[name]


_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def _substitute(text: str, values: Mapping[str, str]) -> str:
    # Single pass: inserted values are never rescanned for placeholders.
    return _PLACEHOLDER.sub(lambda match: values.get(match.group(1), match.group(0)), text)


def render_prompt(template: PromptTemplate, values: Mapping[str, str]) -> RenderedPrompt:
    """Replace ``{{key}}`` placeholders in both template sections."""

    return RenderedPrompt(
        system=_substitute(template.system, values),
        user=_substitute(template.user, values),
    )


# Default templates ------------------------------------------------------------

DEFAULT_PROMPTS = PromptLibrary()

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="turn",
        system="{{system_prompt}}",
        user=(
            "PERSONA:\n"
            "Name: {{agent_name}}\n"
            "Role: {{agent_role}}\n"
            "{{persona_block}}\n\n"
            "CONVERSATION HISTORY:\n"
            "{{history}}\n\n"
            "CURRENT CONTEXT:\n"
            "{{context}}\n\n"
            "INSTRUCTIONS:\n"
            "You are {{agent_name}}, a {{agent_role}}. Respond in character based on your "
            "personality and role.\n"
            "{{handoff_instruction}}\n"
            "If the conversation should end naturally, include: " + END_TAG + "\n\n"
            "YOUR RESPONSE:"
        ),
        description="One conversational turn for a registered agent.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="validate",
        system="",
        user=(
            "As {{agent_name}} ({{agent_role}}), review this generated content for logical "
            "consistency and authenticity:\n\n"
            "{{content_json}}\n\n"
            "Rate the content on a scale of 0-10 for:\n"
            "1. Logical consistency\n"
            "2. Authenticity to character personas\n"
            "3. Overall quality\n\n"
            "Format: SCORES: [consistency]/10, [authenticity]/10, [quality]/10\n"
            "Brief explanation of any issues found."
        ),
        description="Asks an agent to rate emergent content on three scales.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="npc_collaboration",
        system="You are {{npc_name}}, a {{npc_role}} in a fantasy RPG game.",
        user=(
            "COLLABORATION CONTEXT:\n"
            "Topic: {{topic}}\n"
            "Goal: {{goal}}\n\n"
            "OTHER PARTICIPANTS:\n"
            "{{participants}}\n\n"
            "{{constraints}}"
            "INSTRUCTIONS:\n"
            "You are participating in a collaborative conversation to {{goal}}. Stay in "
            "character as {{npc_name}}, drawing on your role as {{npc_role}}. Contribute your "
            "unique perspective and expertise to the discussion.\n\n"
            "When you're done contributing or want to hand off to another participant, end "
            "your response with: [HANDOFF: reason]\n\n"
            "If the conversation should end naturally, include: " + END_TAG + "\n\n"
            "YOUR CONTRIBUTION:"
        ),
        description="System prompt for an NPC taking part in a generic collaboration.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="dialogue_collaboration",
        system="You are {{npc_name}}, a {{npc_role}} in a fantasy RPG game.",
        user=(
            "SCENE SETTING:\n"
            "{{setting}}\n\n"
            "TONE: {{tone}}\n\n"
            "COLLABORATION GOAL:\n"
            "{{goal}}\n\n"
            "OTHER CHARACTERS PRESENT:\n"
            "{{participants}}\n"
            "{{relationship_block}}\n\n"
            "{{constraints}}"
            "INSTRUCTIONS:\n"
            "Create dialogue for {{npc_name}} that fits the scene and advances the "
            "conversation naturally. Stay true to your character's personality and role. The "
            "dialogue should feel authentic to a {{tone}} tone.\n\n"
            "When you're done speaking or want another character to respond, end with: "
            "[HANDOFF]\n\n"
            "If the scene should end, include: " + END_TAG + "\n\n"
            "YOUR DIALOGUE:"
        ),
        description="Scene dialogue between characters.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="quest_collaboration",
        system=(
            "You are {{npc_name}}, a {{npc_role}}, collaborating with other NPCs to design a "
            "{{difficulty}} quest."
        ),
        user=(
            "QUEST THEME: {{theme}}\n"
            "QUEST LOCATION: {{location}}\n"
            "DIFFICULTY: {{difficulty}}\n\n"
            "COLLABORATORS:\n"
            "{{participants}}\n\n"
            "INSTRUCTIONS:\n"
            "As {{npc_name}}, contribute your ideas for this quest from your unique perspective "
            "as {{npc_role}}. Consider:\n"
            "- What objectives would make sense for your character?\n"
            "- What rewards could you offer?\n"
            "- What challenges fit the {{difficulty}} difficulty?\n"
            "- How does this quest relate to {{location}}?\n\n"
            "Share your ideas in a natural, conversational way. Build on what others have "
            "suggested.\n\n"
            "When you're done contributing, end with: [HANDOFF: brief reason]\n\n"
            "YOUR INPUT:"
        ),
        description="Multi-NPC quest design.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="lore_collaboration",
        system="You are {{npc_name}}, a {{npc_role}} with knowledge about {{topic}}.",
        user=(
            "LORE TOPIC: {{topic}}\n"
            "{{period_line}}"
            "{{region_line}}\n"
            "OTHER LORE KEEPERS:\n"
            "{{participants}}\n\n"
            "INSTRUCTIONS:\n"
            "As {{npc_name}}, share your knowledge and perspective on {{topic}}. Draw from your "
            "experience as {{npc_role}}. Your contribution should:\n"
            "- Add depth and detail to the world\n"
            "- Be consistent with the fantasy RPG setting\n"
            "- Build on or complement what others have shared\n"
            "- Feel authentic to your character's perspective\n\n"
            "When you've finished your contribution, end with: [HANDOFF]\n\n"
            "SHARE YOUR LORE:"
        ),
        description="World-building lore exchange.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="item_collaboration",
        system=(
            "You are {{npc_name}}, a {{npc_role}} collaborating to design a {{rarity}} "
            "{{item_type}}."
        ),
        user=(
            "ITEM TYPE: {{item_type}}\n"
            "RARITY: {{rarity}}\n"
            "PURPOSE: {{purpose}}\n\n"
            "DESIGN TEAM:\n"
            "{{participants}}\n\n"
            "INSTRUCTIONS:\n"
            "As {{npc_name}} ({{npc_role}}), contribute your ideas for this item's:\n"
            "- Name and appearance\n"
            "- Stats or abilities\n"
            "- Lore and backstory\n"
            "- How it fits the {{rarity}} rarity tier\n\n"
            "Build on suggestions from other designers. Make it interesting and balanced for a "
            "fantasy RPG.\n\n"
            "When done contributing, end with: [HANDOFF]\n\n"
            "YOUR DESIGN IDEAS:"
        ),
        description="Collaborative item design.",
    )
)


# Builders ---------------------------------------------------------------------


def persona_block(agent: AgentState) -> str:
    if agent.persona is None:
        return ""
    payload = agent.persona.model_dump(exclude_none=True)
    return "Personality: " + json.dumps(payload, indent=2, ensure_ascii=False)


def build_turn_prompt(
    agent: AgentState,
    history: Sequence[ConversationMessage],
    context: str,
    *,
    allow_handoff: bool = True,
    library: PromptLibrary | None = None,
) -> str:
    """Build the full prompt for one agent turn.

    ``history`` is the recent shared transcript, oldest first; the caller picks
    the window size.
    """

    template = (library or DEFAULT_PROMPTS).get("turn")
    history_text = "\n\n".join(message.as_line() for message in history)
    handoff = (
        "If you want to hand off to another character, end with: [HANDOFF: reason]"
        if allow_handoff
        else ""
    )
    rendered = render_prompt(
        template,
        {
            "system_prompt": agent.system_prompt,
            "agent_name": agent.name,
            "agent_role": agent.role,
            "persona_block": persona_block(agent),
            "history": history_text or "(No previous conversation)",
            "context": context,
            "handoff_instruction": handoff,
        },
    )
    return rendered.combined()


def build_validation_prompt(
    agent: AgentState,
    content_json: str,
    *,
    library: PromptLibrary | None = None,
) -> str:
    """Build the rating request sent to one validator."""

    template = (library or DEFAULT_PROMPTS).get("validate")
    rendered = render_prompt(
        template,
        {
            "agent_name": agent.name,
            "agent_role": agent.role,
            "content_json": content_json,
        },
    )
    return rendered.combined()


def format_participants(participants: Sequence[Mapping[str, str]], *, exclude_name: str = "") -> str:
    """Bullet list of ``- Name (role)`` lines, skipping ``exclude_name``."""

    return "\n".join(
        f"- {participant['name']} ({participant['role']})"
        for participant in participants
        if participant["name"] != exclude_name
    )


def format_constraints(constraints: Sequence[str]) -> str:
    if not constraints:
        return ""
    lines = "\n".join(f"- {constraint}" for constraint in constraints)
    return f"CONSTRAINTS:\n{lines}\n\n"


__all__ = [
    "PromptTemplate",
    "PromptLibrary",
    "RenderedPrompt",
    "DEFAULT_PROMPTS",
    "render_prompt",
    "build_turn_prompt",
    "build_validation_prompt",
    "persona_block",
    "format_participants",
    "format_constraints",
]
