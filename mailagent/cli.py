"""CLI for MailAgent - run instructions and serve the HTTP API."""

from __future__ import annotations

import json

import click

from mailagent import __version__
from mailagent.schemas import AgentConfig, LogEntry

LEVEL_COLORS = {
    "info": "blue",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def _build_config(
    list_id: str | None,
    from_name: str | None,
    reply_to: str | None,
    preview_text: str | None,
    tags: tuple[str, ...],
) -> AgentConfig:
    try:
        return AgentConfig(
            list_id=list_id,
            from_name=from_name,
            reply_to=reply_to,
            default_preview_text=preview_text,
            tags=tags,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _echo_logs(heading: str, logs: tuple[LogEntry, ...]) -> None:
    click.echo(f"\n{heading}")
    click.echo(f"{'─' * 60}")
    if not logs:
        click.echo("  (nothing recorded)")
    for entry in logs:
        level = entry.level.value
        tag = click.style(f"[{level.upper()}]", fg=LEVEL_COLORS[level])
        click.echo(f"  {tag} {entry.title}: {entry.message}")


# Options shared by run and interpret
_config_options = [
    click.option("--list-id", "-l", default=None, help="Audience (list) id to use by default"),
    click.option("--from-name", default=None, help="Sender display name for new campaigns"),
    click.option("--reply-to", default=None, help="Reply-To address for new campaigns"),
    click.option("--preview-text", default=None, help="Default preview text for new campaigns"),
    click.option("--tag", "-t", "tags", multiple=True, help="Tag applied to new subscribers (repeatable)"),
]


def config_options(command):
    for option in reversed(_config_options):
        command = option(command)
    return command


@click.group()
@click.version_option(version=__version__, prog_name="mailagent")
def main() -> None:
    """MailAgent - natural language automation for Mailchimp.

    Give it a directive and it plans and runs the Mailchimp operations.
    """
    pass


@main.command()
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(port: int, host: str, reload: bool) -> None:
    """Start the MailAgent HTTP server."""
    import uvicorn

    click.echo(f"Starting MailAgent server on {host}:{port}")
    uvicorn.run(
        "mailagent.server:app",
        host=host,
        port=port,
        reload=reload,
    )


@main.command()
@click.argument("instruction")
@config_options
@click.option("--raw", is_flag=True, help="Output raw JSON instead of formatted text")
def run(
    instruction: str,
    list_id: str | None,
    from_name: str | None,
    reply_to: str | None,
    preview_text: str | None,
    tags: tuple[str, ...],
    raw: bool,
) -> None:
    """Interpret INSTRUCTION and execute it against Mailchimp.

    \b
    Example:
        mailagent run "Send campaign 9a8b7c"
        mailagent run "Add x@y.com and tag her as partner" --list-id 1a2b3c4d5e
    """
    from mailagent.agent import run_instruction

    if not instruction.strip():
        raise click.BadParameter("An instruction is required.", param_hint="INSTRUCTION")

    config = _build_config(list_id, from_name, reply_to, preview_text, tags)
    response = run_instruction(instruction, config)

    if raw:
        click.echo(json.dumps(response.model_dump(mode="json", by_alias=True), indent=2))
        return

    if not response.configured:
        click.echo(
            click.style(
                "Mailchimp credentials missing: set MAILCHIMP_API_KEY and MAILCHIMP_SERVER_PREFIX.",
                fg="red",
            )
        )

    _echo_logs("Interpretation", response.interpretation)
    _echo_logs("Execution", response.execution)
    click.echo(f"\n{'=' * 60}")
    click.echo(response.summary)


@main.command()
@click.argument("instruction")
@config_options
def interpret(
    instruction: str,
    list_id: str | None,
    from_name: str | None,
    reply_to: str | None,
    preview_text: str | None,
    tags: tuple[str, ...],
) -> None:
    """Show the plan for INSTRUCTION without calling Mailchimp."""
    from mailagent.interpreter import interpret as interpret_instruction

    if not instruction.strip():
        raise click.BadParameter("An instruction is required.", param_hint="INSTRUCTION")

    config = _build_config(list_id, from_name, reply_to, preview_text, tags)
    interpretation = interpret_instruction(instruction, config)

    _echo_logs("Interpretation", interpretation.logs)
    click.echo("\nPlanned actions:")
    if not interpretation.actions:
        click.echo("  (none)")
    for i, action in enumerate(interpretation.actions, 1):
        click.echo(f"  {i}. {json.dumps(action.model_dump(mode='json', by_alias=True))}")


@main.command()
def status() -> None:
    """Check Mailchimp configuration and connectivity."""
    from mailagent.mailchimp import MailchimpClient, load_settings

    settings = load_settings()
    if not settings.configured:
        click.echo("Mailchimp: not configured (set MAILCHIMP_API_KEY and MAILCHIMP_SERVER_PREFIX)")
        return

    click.echo(f"Mailchimp: configured (server prefix {settings.server_prefix})")
    if MailchimpClient(settings).ping():
        click.echo("Connectivity: ok")
    else:
        click.echo("Connectivity: unreachable")


@main.command()
def mcp() -> None:
    """Run the MCP server exposing MailAgent tools.

    The tools forward to a running ``mailagent serve`` instance.

    \b
    Configure in .mcp.json:
        {
            "mcpServers": {
                "mailagent": {
                    "command": "mailagent",
                    "args": ["mcp"]
                }
            }
        }
    """
    from mcp_mailagent.server import mcp as mcp_server
    mcp_server.run()


if __name__ == "__main__":
    main()
