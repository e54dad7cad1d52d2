"""MCP server exposing MailAgent tools."""

import os

import httpx
from mcp.server.fastmcp import FastMCP

mcp = FastMCP("mailagent")
SERVER = os.getenv("MAILAGENT_URL", "http://localhost:8000")


@mcp.tool()
async def run_instruction(
    instruction: str,
    list_id: str | None = None,
    from_name: str | None = None,
    reply_to: str | None = None,
    preview_text: str | None = None,
    tags: list[str] | None = None,
) -> dict:
    """Interpret a Mailchimp directive and execute it.

    Examples: "List campaigns", "Send campaign 9a8b7c",
    "Add x@y.com to my list and tag her as partner".

    Returns the summary, interpretation and execution traces, and one
    result per action.
    """
    config = {
        "listId": list_id,
        "fromName": from_name,
        "replyTo": reply_to,
        "defaultPreviewText": preview_text,
        "tags": tags,
    }
    async with httpx.AsyncClient(timeout=60.0) as client:
        r = await client.post(f"{SERVER}/agent", json={
            "instruction": instruction,
            "config": {key: value for key, value in config.items() if value is not None},
        })
        return r.json()


@mcp.tool()
async def check_configuration() -> dict:
    """Report whether Mailchimp credentials are configured on the server."""
    async with httpx.AsyncClient(timeout=10.0) as client:
        r = await client.get(f"{SERVER}/agent")
        return r.json()


if __name__ == "__main__":
    mcp.run()
