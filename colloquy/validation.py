"""Cross-validation of emergent content by the agents themselves.

Up to three registered agents (registration order) are asked, concurrently, to
rate the extracted content for consistency, authenticity and quality. Their
answers must contain ``SCORES: <c>/10, <a>/10, <q>/10``.

Failures are settled, not propagated: a validator whose call raises or whose
reply cannot be parsed is dropped and only lowers ``validator_count``.
"""

from __future__ import annotations

import asyncio
import re
from typing import List, Sequence

from colloquy.gateway import CompletionGateway
from colloquy.logging_utils import log_error, log_llm, log_success
from colloquy.prompts import PromptLibrary, build_validation_prompt
from colloquy.schemas import (
    AgentState,
    EmergentContent,
    ValidationResult,
    ValidationScores,
    ValidatorVerdict,
)

MAX_VALIDATORS = 3
MIN_REGISTERED_AGENTS = 2
PASS_THRESHOLD = 7.0
DEFAULT_VALIDATION_TEMPERATURE = 0.3

NOTE_INSUFFICIENT_AGENTS = "insufficient agents"
NOTE_ALL_FAILED = "all validations failed"

_NUMBER = r"(\d+(?:\.\d+)?)"
_SCORES_PATTERN = re.compile(
    rf"SCORES:\s*{_NUMBER}\s*/\s*10\s*,\s*{_NUMBER}\s*/\s*10\s*,\s*{_NUMBER}\s*/\s*10",
    re.IGNORECASE,
)


def parse_scores(text: str) -> tuple[float, float, float] | None:
    """Extract (consistency, authenticity, quality) or None.

    Scores outside 0-10 count as unparsable.
    """

    match = _SCORES_PATTERN.search(text)
    if match is None:
        return None
    values = tuple(float(group) for group in match.groups())
    if any(value > 10.0 for value in values):
        return None
    consistency, authenticity, quality = values
    return consistency, authenticity, quality


async def _run_validator(
    agent: AgentState,
    content_json: str,
    gateway: CompletionGateway,
    temperature: float,
    library: PromptLibrary | None,
) -> ValidatorVerdict | None:
    prompt = build_validation_prompt(agent, content_json, library=library)
    completion = await gateway.generate(prompt, temperature)
    parsed = parse_scores(completion.text)
    if parsed is None:
        return None
    consistency, authenticity, quality = parsed
    return ValidatorVerdict(
        validator=agent.name,
        consistency=consistency,
        authenticity=authenticity,
        quality=quality,
        feedback=completion.text,
    )


async def cross_validate(
    content: EmergentContent,
    agents: Sequence[AgentState],
    gateway: CompletionGateway,
    *,
    temperature: float = DEFAULT_VALIDATION_TEMPERATURE,
    library: PromptLibrary | None = None,
) -> ValidationResult:
    """Rate ``content`` with up to three of ``agents`` and aggregate the verdicts.

    Args:
        content: Emergent content to review
        agents: All registered agents, in registration order
        gateway: Completion gateway used for every validator call
        temperature: Sampling temperature for the ratings
        library: Optional prompt library overriding the "validate" template
    """

    if len(agents) < MIN_REGISTERED_AGENTS:
        return ValidationResult(validated=True, confidence=1.0, note=NOTE_INSUFFICIENT_AGENTS)

    validators = list(agents[:MAX_VALIDATORS])
    content_json = content.model_dump_json(indent=2)

    log_llm(f"[Validation] Asking {len(validators)} validators to rate emergent content...")
    # return_exceptions=True keeps one failing validator from cancelling the rest.
    results = await asyncio.gather(
        *[
            _run_validator(agent, content_json, gateway, temperature, library)
            for agent in validators
        ],
        return_exceptions=True,
    )

    verdicts: List[ValidatorVerdict] = []
    for agent, result in zip(validators, results):
        if isinstance(result, BaseException):
            log_error(f"[Validation] {agent.name} failed: {result}")
        elif result is None:
            log_error(f"[Validation] {agent.name} returned no parsable SCORES line")
        else:
            verdicts.append(result)

    if not verdicts:
        return ValidationResult(validated=False, confidence=0.0, note=NOTE_ALL_FAILED)

    count = len(verdicts)
    avg_consistency = sum(v.consistency for v in verdicts) / count
    avg_authenticity = sum(v.authenticity for v in verdicts) / count
    avg_quality = sum(v.quality for v in verdicts) / count
    confidence = (avg_consistency + avg_authenticity + avg_quality) / 30

    result = ValidationResult(
        validated=avg_consistency >= PASS_THRESHOLD and avg_authenticity >= PASS_THRESHOLD,
        confidence=min(1.0, max(0.0, confidence)),
        scores=ValidationScores(
            consistency=avg_consistency,
            authenticity=avg_authenticity,
            quality=avg_quality,
        ),
        validator_count=count,
        details=verdicts,
    )
    log_success(
        f"[Validation] {count}/{len(validators)} validators, "
        f"confidence {result.confidence:.2f} ({'validated' if result.validated else 'rejected'})"
    )
    return result


__all__ = [
    "MAX_VALIDATORS",
    "NOTE_ALL_FAILED",
    "NOTE_INSUFFICIENT_AGENTS",
    "PASS_THRESHOLD",
    "cross_validate",
    "parse_scores",
]
