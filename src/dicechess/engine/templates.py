"""Description templating for optional objectives.

Authored descriptions may contain ``{{ ... }}`` tokens. Token content is
split on ``|`` into a command and its arguments:

- ``{{plural|param|singular|plural|zero}}`` (the zero form is optional)
- ``{{pluralSuffix|param|suffix|singularSuffix}}`` (defaults ``s`` and ``""``)
- ``{{ifZero|param|zeroText|elseText}}``
- ``{{ifOne|param|oneText|elseText}}``
- ``{{param}}`` substitutes the parameter value

A token whose parameter is missing, or not a number where a number is
required, is left as-is. Expansion repeats so tokens produced by other
tokens are resolved, up to ``MAX_TEMPLATE_PASSES`` passes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from .types import Difficulty, ObjectiveDefinition, ObjectiveState, effective_params

logger = logging.getLogger(__name__)

MAX_TEMPLATE_PASSES = 5
TOKEN_OPEN = "{{"

_TOKEN_RE = re.compile(r"{{\s*([^}]+)\s*}}")


def _is_number(v: object) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def format_value(v: object) -> str:
    """Render a parameter value for display text."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _arg(args: list[str], i: int, default: str | None = None) -> str | None:
    return args[i] if i < len(args) else default


def _expand_token(match: re.Match[str], params: Mapping[str, object]) -> str:
    original = match.group(0)
    segments = [s.strip() for s in match.group(1).split("|")]
    segments = [s for s in segments if s]
    if not segments:
        return original

    command, args = segments[0], segments[1:]
    name = _arg(args, 0)
    value = params.get(name) if name is not None else None

    if command == "plural":
        if not _is_number(value):
            return original
        zero = _arg(args, 3)
        if zero is not None and value == 0:
            return zero
        return _arg(args, 1, "") if value == 1 else _arg(args, 2, "")  # type: ignore[return-value]
    if command == "pluralSuffix":
        if not _is_number(value):
            return original
        return _arg(args, 2, "") if value == 1 else _arg(args, 1, "s")  # type: ignore[return-value]
    if command == "ifZero":
        if not _is_number(value):
            return original
        return _arg(args, 1, "") if value == 0 else _arg(args, 2, "")  # type: ignore[return-value]
    if command == "ifOne":
        if not _is_number(value):
            return original
        return _arg(args, 1, "") if value == 1 else _arg(args, 2, "")  # type: ignore[return-value]

    bare = params.get(command)
    if bare is None:
        return original
    return format_value(bare)


def apply_template(template: str, params: Mapping[str, object]) -> str:
    result = template
    for _ in range(MAX_TEMPLATE_PASSES):
        if TOKEN_OPEN not in result:
            break
        expanded = _TOKEN_RE.sub(lambda m: _expand_token(m, params), result)
        if expanded == result:
            break
        result = expanded
    return result


def _fallback_sentence(definition: ObjectiveDefinition, params: Mapping[str, object]) -> str | None:
    kind = definition.condition.type
    if kind == "max_casualties":
        max_losses = params.get("maxLosses")
        if _is_number(max_losses):
            if max_losses == 0:
                return "Win without losing any units"
            noun = "casualty" if max_losses == 1 else "casualties"
            return f"Win with no more than {format_value(max_losses)} {noun}"
    elif kind == "dont_kill_courtiers":
        max_courtiers = params.get("maxCourtiers")
        if _is_number(max_courtiers):
            if max_courtiers == 0:
                return "Don't destroy any Courtiers"
            noun = "Courtier" if max_courtiers == 1 else "Courtiers"
            return f"Don't destroy more than {format_value(max_courtiers)} {noun}"
    elif kind == "win_under_turns":
        max_turns = params.get("maxTurns")
        if _is_number(max_turns):
            term = "turn" if max_turns == 1 else "turns"
            text = re.sub(r"\d+", format_value(max_turns), definition.description, count=1)
            return re.sub(r"\bturns?\b", term, text, count=1, flags=re.IGNORECASE)
    return None


def get_objective_description(definition: ObjectiveDefinition, difficulty: Difficulty | None = None) -> str:
    """Resolve the display text of ``definition`` for ``difficulty``."""
    params = effective_params(definition.condition, difficulty)
    description = definition.description or ""

    if TOKEN_OPEN in description:
        templated = apply_template(description, params).strip()
        if TOKEN_OPEN not in templated:
            return templated
        description = templated
    elif description:
        return description.strip()

    fallback = _fallback_sentence(definition, params)
    if fallback is not None:
        return fallback

    if TOKEN_OPEN in description:
        logger.warning("Unresolved template tokens in objective %s: %r", definition.id, description)
    return description


def format_objective_description(
    definition: ObjectiveDefinition,
    state: ObjectiveState | None = None,
    *,
    difficulty: Difficulty | None = None,
    include_progress: bool = True,
) -> str:
    """Description text, with a ``(current/target)`` suffix while pending."""
    description = get_objective_description(definition, difficulty)
    if (
        not include_progress
        or state is None
        or state.is_terminal
        or state.progress is None
        or state.progress.target == 0
    ):
        return description
    return f"{description} ({state.progress.current}/{format_value(state.progress.target)})"
