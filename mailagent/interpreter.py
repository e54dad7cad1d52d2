"""Deterministic interpreter turning free-text instructions into actions."""

from __future__ import annotations

import logging

from mailagent.rules import RULES, InstructionText, Rule
from mailagent.schemas import Action, AgentConfig, Interpretation, LogEntry, LogLevel

logger = logging.getLogger(__name__)


def _missing_audience_entry(rule: Rule) -> LogEntry:
    return LogEntry(
        level=LogLevel.WARNING,
        title=f"{rule.title} skipped",
        message=(
            "No audience id was found in the instruction or the configuration. "
            "Set listId and try again."
        ),
    )


def interpret(instruction: str, config: AgentConfig | None = None) -> Interpretation:
    """Map an instruction onto an ordered list of actions.

    Every rule in ``RULES`` is tried in precedence order and each one that
    fires contributes one action or, when it lacks an audience id, one
    warning. The function never raises for unrecognized text.

    Args:
        instruction: Non-empty free-text directive
        config: Operator defaults merged into the planned actions

    Returns:
        Interpretation with the planned actions and the reasoning trace
    """
    config = config or AgentConfig()
    text = InstructionText.parse(instruction)

    actions: list[Action] = []
    logs: list[LogEntry] = []
    fired = False

    for rule in RULES:
        if not rule.matches(text):
            continue
        action = rule.extract(text, config)
        if action is None:
            continue
        fired = True

        if rule.requires_audience and action.list_id is None:
            logs.append(_missing_audience_entry(rule))
            continue

        logs.append(LogEntry(level=LogLevel.INFO, title=rule.title, message=rule.describe(action)))
        actions.append(action)

    if not fired:
        logs.append(
            LogEntry(
                level=LogLevel.WARNING,
                title="Instruction not recognized",
                message="The instruction could not be mapped to a known action.",
            )
        )

    logger.info(f"Interpreted instruction into {len(actions)} action(s)")
    return Interpretation(actions=tuple(actions), logs=tuple(logs))
