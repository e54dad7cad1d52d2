"""Executor running planned actions against Mailchimp."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, assert_never

from mailagent.mailchimp import MailchimpClient, MailchimpError
from mailagent.schemas import (
    Action,
    ActionResult,
    ActionStatus,
    AddSubscriberAction,
    CreateCampaignAction,
    ListAudiencesAction,
    ListCampaignsAction,
    LogEntry,
    LogLevel,
    RunOutcome,
    SendCampaignAction,
    SettleCampaignsAction,
)

logger = logging.getLogger(__name__)

# Campaign statuses considered ready to send when settling
PENDING_CAMPAIGN_STATUSES = ("save",)

# Page size used while collecting pending campaigns
SETTLE_PAGE_SIZE = 100


class MissingContextError(Exception):
    """Raised when an action lacks context it needs to run."""

    pass


@dataclass(frozen=True)
class _Outcome:
    """What a handler reports back for one action."""

    detail: str
    data: Any = None
    error: str | None = None


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def describe_action(action: Action) -> str:
    """Short human label for an action."""
    if isinstance(action, AddSubscriberAction):
        return f"Subscribe {action.email}"
    if isinstance(action, CreateCampaignAction):
        return f'Create campaign "{action.subject}"'
    if isinstance(action, SendCampaignAction):
        return f"Send campaign {action.campaign_id}"
    if isinstance(action, ListCampaignsAction):
        return "Campaign overview"
    if isinstance(action, ListAudiencesAction):
        return "Audience overview"
    if isinstance(action, SettleCampaignsAction):
        return "Settle pending campaigns"
    assert_never(action)


def summarize_results(results: Sequence[ActionResult]) -> str:
    """One sentence describing how the run went."""
    if not results:
        return "No actions were identified from the instruction"

    succeeded = sum(1 for result in results if result.status == ActionStatus.SUCCESS)
    failed = len(results) - succeeded
    summary = f"Completed {_plural(len(results), 'action')}: {succeeded} succeeded"
    if failed:
        summary += f", {failed} failed"
    return summary


class AgentExecutor:
    """Runs actions one at a time, recording a trace and a result per action."""

    def __init__(self, client: MailchimpClient):
        self.client = client

    def execute(self, actions: Sequence[Action]) -> RunOutcome:
        """Execute actions in order.

        A failed remote call is recorded as an ``error`` result and the run
        moves on to the next action.

        Args:
            actions: Planned actions, in the order they must run

        Returns:
            RunOutcome with summary, execution trace and one result per action
        """
        logs: list[LogEntry] = []
        results: list[ActionResult] = []

        for index, action in enumerate(actions, 1):
            label = describe_action(action)
            logs.append(
                LogEntry(
                    level=LogLevel.INFO,
                    title=label,
                    message=f"Running step {index} of {len(actions)}: {label}.",
                )
            )

            try:
                outcome = self._dispatch(action)
            except (MailchimpError, MissingContextError) as e:
                logger.warning(f"Action {action.type} failed: {e}")
                outcome = _Outcome(detail=f"{label} failed", error=str(e))

            if outcome.error is None:
                logs.append(LogEntry(level=LogLevel.SUCCESS, title=f"{label} succeeded", message=outcome.detail))
                results.append(
                    ActionResult(
                        action=action,
                        status=ActionStatus.SUCCESS,
                        detail=outcome.detail,
                        data=outcome.data if outcome.data is not None else {},
                    )
                )
            else:
                logs.append(
                    LogEntry(
                        level=LogLevel.ERROR,
                        title=f"{label} failed",
                        message=f"{outcome.detail}. Reason: {outcome.error}",
                    )
                )
                results.append(
                    ActionResult(
                        action=action,
                        status=ActionStatus.ERROR,
                        detail=outcome.detail,
                        error=outcome.error,
                    )
                )

        summary = summarize_results(results)
        logger.info(f"Run finished: {summary}")
        return RunOutcome(summary=summary, logs=tuple(logs), results=tuple(results))

    def _dispatch(self, action: Action) -> _Outcome:
        if isinstance(action, AddSubscriberAction):
            return self._add_subscriber(action)
        if isinstance(action, CreateCampaignAction):
            return self._create_campaign(action)
        if isinstance(action, SendCampaignAction):
            return self._send_campaign(action)
        if isinstance(action, ListCampaignsAction):
            return self._list_campaigns(action)
        if isinstance(action, ListAudiencesAction):
            return self._list_audiences(action)
        if isinstance(action, SettleCampaignsAction):
            return self._settle_campaigns(action)
        assert_never(action)

    # --- Handlers ---

    def _add_subscriber(self, action: AddSubscriberAction) -> _Outcome:
        if not action.list_id:
            raise MissingContextError("No audience id is available; set listId in the configuration")

        member = self.client.add_or_update_member(action.list_id, action.email, action.tags)
        detail = f"Subscribed {action.email} to audience {action.list_id}"
        if action.tags:
            detail += f" with tags: {', '.join(action.tags)}"
        return _Outcome(detail=detail, data=member)

    def _create_campaign(self, action: CreateCampaignAction) -> _Outcome:
        if not action.list_id:
            raise MissingContextError("No audience id is available; set listId in the configuration")

        campaign = self.client.create_campaign(
            list_id=action.list_id,
            subject=action.subject,
            from_name=action.from_name,
            reply_to=action.reply_to,
            preview_text=action.preview_text,
        )
        campaign_id = campaign.get("id", "unknown")

        # The campaign stays on Mailchimp if the content update fails
        try:
            content = self.client.set_campaign_content(campaign_id, action.body_html)
        except MailchimpError as e:
            logger.warning(f"Campaign {campaign_id} created but content update failed: {e}")
            return _Outcome(
                detail=f'Created campaign "{action.subject}" ({campaign_id}) but could not set its content',
                error=f"Campaign {campaign_id} exists without content: {e}",
            )

        return _Outcome(
            detail=f'Created campaign "{action.subject}" ({campaign_id})',
            data={"campaign": campaign, "content": content},
        )

    def _send_campaign(self, action: SendCampaignAction) -> _Outcome:
        response = self.client.send_campaign(action.campaign_id)
        return _Outcome(detail=f"Sent campaign {action.campaign_id}", data=response)

    def _list_campaigns(self, action: ListCampaignsAction) -> _Outcome:
        listing = self.client.list_campaigns()
        count = len(listing.get("campaigns", []))
        return _Outcome(detail=f"Found {_plural(count, 'campaign')}", data=listing)

    def _list_audiences(self, action: ListAudiencesAction) -> _Outcome:
        listing = self.client.list_audiences()
        count = len(listing.get("lists", []))
        return _Outcome(detail=f"Found {_plural(count, 'audience')}", data=listing)

    def _pending_campaigns(self) -> list[dict[str, Any]]:
        """Page through every campaign in a pending status."""
        pending: list[dict[str, Any]] = []
        for status in PENDING_CAMPAIGN_STATUSES:
            offset = 0
            while True:
                page = self.client.list_campaigns(
                    count=SETTLE_PAGE_SIZE, offset=offset, status=status
                )
                campaigns = page.get("campaigns", [])
                pending.extend(c for c in campaigns if c.get("status") == status)
                offset += len(campaigns)
                if not campaigns or offset >= page.get("total_items", 0):
                    break
        return pending

    def _settle_campaigns(self, action: SettleCampaignsAction) -> _Outcome:
        pending = self._pending_campaigns()
        if not pending:
            return _Outcome(
                detail="No pending campaigns to send",
                data={"pending": 0, "sent": [], "failed": []},
            )

        sent: list[str] = []
        failed: list[dict[str, str]] = []
        for campaign in pending:
            campaign_id = campaign.get("id", "unknown")
            try:
                self.client.send_campaign(campaign_id)
            except MailchimpError as e:
                logger.warning(f"Settle: sending {campaign_id} failed: {e}")
                failed.append({"id": campaign_id, "error": str(e)})
                continue
            sent.append(campaign_id)

        detail = f"Sent {len(sent)} of {_plural(len(pending), 'pending campaign')}"
        if failed:
            reasons = "; ".join(f"{item['id']}: {item['error']}" for item in failed)
            sent_ids = ", ".join(sent) or "none"
            return _Outcome(
                detail=f"{detail}, {len(failed)} failed",
                error=f"sent: {sent_ids}; failed: {reasons}",
            )
        return _Outcome(detail=detail, data={"pending": len(pending), "sent": sent, "failed": []})
