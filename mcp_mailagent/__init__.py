"""MCP integration for MailAgent."""
