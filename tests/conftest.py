"""Pytest configuration and fixtures for MailAgent tests."""

from __future__ import annotations

from typing import Any

import pytest

from mailagent.mailchimp import MailchimpError, MailchimpSettings
from mailagent.schemas import AgentConfig


class FakeMailchimpClient:
    """In-memory stand-in for MailchimpClient that records every call."""

    def __init__(
        self,
        campaigns: list[dict[str, Any]] | None = None,
        audiences: list[dict[str, Any]] | None = None,
        fail_calls: set[int] | None = None,
        fail_operations: set[str] | None = None,
        fail_sends: set[str] | None = None,
    ):
        self.campaigns = campaigns or []
        self.audiences = audiences or []
        self.fail_calls = fail_calls or set()
        self.fail_operations = fail_operations or set()
        self.fail_sends = fail_sends or set()
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if len(self.calls) in self.fail_calls or operation in self.fail_operations:
            raise MailchimpError(f"{operation} rejected", status_code=400)

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def add_or_update_member(self, list_id, email, tags=()):
        self._record("add_or_update_member", list_id, email, tuple(tags))
        return {"id": "member-1", "email_address": email, "tags_applied": list(tags)}

    def create_campaign(self, list_id, subject, from_name=None, reply_to=None, preview_text=None):
        self._record("create_campaign", list_id, subject, from_name, reply_to, preview_text)
        return {"id": "c0ffee01", "settings": {"subject_line": subject}}

    def set_campaign_content(self, campaign_id, html):
        self._record("set_campaign_content", campaign_id, html)
        return {"html": html}

    def send_campaign(self, campaign_id):
        self._record("send_campaign", campaign_id)
        if campaign_id in self.fail_sends:
            raise MailchimpError(f"Campaign {campaign_id} is not ready", status_code=400)
        return {"id": campaign_id, "status": "sent"}

    def list_campaigns(self, count=100, offset=0, status=None):
        self._record("list_campaigns")
        matching = [c for c in self.campaigns if status is None or c.get("status") == status]
        return {"campaigns": matching[offset:offset + count], "total_items": len(matching)}

    def list_audiences(self, count=100):
        self._record("list_audiences")
        return {"lists": self.audiences, "total_items": len(self.audiences)}

    def ping(self):
        self._record("ping")
        return True


@pytest.fixture
def agent_config() -> AgentConfig:
    """Operator defaults with an audience and two tags."""
    return AgentConfig(
        list_id="1a2b3c4d5e",
        from_name="Orbital Studio",
        reply_to="hello@orbital.studio",
        default_preview_text="What's new this month",
        tags=["newsletter", "vip"],
    )


@pytest.fixture
def fake_client() -> FakeMailchimpClient:
    return FakeMailchimpClient(
        campaigns=[
            {"id": "aa11bb22", "status": "save"},
            {"id": "cc33dd44", "status": "sent"},
        ],
        audiences=[{"id": "1a2b3c4d5e", "name": "Newsletter"}],
    )


@pytest.fixture
def configured_settings() -> MailchimpSettings:
    return MailchimpSettings(api_key="0123456789abcdef-us21", server_prefix="us21")
