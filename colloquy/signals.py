"""In-band control signals emitted by agents.

Agents steer the conversation with two tags inside their completion text:

* ``[END_CONVERSATION]`` stops the round loop after the turn is recorded.
* ``[HANDOFF]`` or ``[HANDOFF: reason]`` suggests passing the floor on. It is
  advisory: the router still picks the next speaker.

All matching lives here so the tag grammar can be tightened without touching
the orchestrator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

END_TAG = "[END_CONVERSATION]"

_END_PATTERN = re.compile(r"\[END_CONVERSATION\]", re.IGNORECASE)
_HANDOFF_PATTERN = re.compile(r"\[HANDOFF(?:\s*:\s*([^\]]*))?\]", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ControlSignals:
    """Parsed control tags for one completion."""

    should_end: bool = False
    handoff: bool = False
    handoff_reason: str | None = None


def parse_control_signals(text: str) -> ControlSignals:
    """Scan raw completion text for end and handoff tags."""

    handoff_match = _HANDOFF_PATTERN.search(text)
    reason = None
    if handoff_match and handoff_match.group(1):
        reason = handoff_match.group(1).strip() or None

    return ControlSignals(
        should_end=_END_PATTERN.search(text) is not None,
        handoff=handoff_match is not None,
        handoff_reason=reason,
    )


def clean_response(text: str) -> str:
    """Strip control tags so a message can be shown to players."""

    without_end = _END_PATTERN.sub("", text)
    return _HANDOFF_PATTERN.sub("", without_end).strip()


__all__ = ["ControlSignals", "END_TAG", "parse_control_signals", "clean_response"]
