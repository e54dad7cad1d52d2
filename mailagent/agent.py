"""Run one instruction end to end: interpret, execute, report."""

from __future__ import annotations

import logging

from mailagent.executor import AgentExecutor
from mailagent.interpreter import interpret
from mailagent.mailchimp import MailchimpClient, MailchimpSettings, load_settings
from mailagent.schemas import AgentConfig, AgentResponse

logger = logging.getLogger(__name__)


def run_instruction(
    instruction: str,
    config: AgentConfig | None = None,
    client: MailchimpClient | None = None,
    settings: MailchimpSettings | None = None,
) -> AgentResponse:
    """Interpret an instruction and execute the resulting plan.

    Args:
        instruction: Free-text directive from the operator
        config: Operator defaults for this run
        client: Mailchimp client; built from ``settings`` when omitted
        settings: Mailchimp credentials; read from the environment when omitted

    Returns:
        AgentResponse with summary, both traces and per-action results
    """
    settings = settings or load_settings()
    client = client or MailchimpClient(settings)

    interpretation = interpret(instruction, config)
    outcome = AgentExecutor(client).execute(interpretation.actions)

    return AgentResponse(
        configured=settings.configured,
        summary=outcome.summary,
        interpretation=interpretation.logs,
        execution=outcome.logs,
        results=outcome.results,
    )
