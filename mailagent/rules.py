"""Intent rules for mapping instruction text to MailAgent actions."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable

from mailagent.schemas import (
    Action,
    ActionType,
    AddSubscriberAction,
    AgentConfig,
    CreateCampaignAction,
    ListAudiencesAction,
    ListCampaignsAction,
    SendCampaignAction,
    SettleCampaignsAction,
)

# Extraction grammar
EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Hex tokens must carry a digit so words like "facade" are not taken for ids
CAMPAIGN_ID_PATTERN = re.compile(r"\b(?=[0-9a-f]*[0-9])[0-9a-f]{6,}\b")
QUOTED_PATTERN = re.compile(r"[\"“]([^\"“”]*)[\"”]")
BODY_MARKER_PATTERN = re.compile(r"\bbody\s*:", re.IGNORECASE)
AUDIENCE_ID_PATTERN = re.compile(
    r"\b(?:list|audience)\s+(?:id\s*)?[:=#]?\s*(?=[a-z0-9]*[0-9])([a-z0-9]{4,})\b",
    re.IGNORECASE,
)
TAG_PATTERN = re.compile(
    r"\btag(?:s|ged)?\b"
    r"(?:\s+(?:her|him|them|it|me|us|this contact|the contact|the subscriber))?"
    r"(?:\s+(?:as|with))?\s+"
    r"(?P<tags>.+?)"
    r"(?=\s+(?:and\s+)?(?:then\s+)?(?:send|create|list|show|settle|add|subscribe)\b|[.;!?\n]|$)",
    re.IGNORECASE,
)
TAG_SEPARATOR_PATTERN = re.compile(r"\s*,\s*|\s+and\s+", re.IGNORECASE)


@dataclass(frozen=True)
class InstructionText:
    """An instruction split into the views the rules match against."""

    original: str
    command: str
    body: str
    normalized: str

    @classmethod
    def parse(cls, instruction: str) -> InstructionText:
        command, body = split_body(instruction)
        normalized = QUOTED_PATTERN.sub('""', command).lower()
        return cls(original=instruction, command=command, body=body, normalized=normalized)


@dataclass(frozen=True)
class Rule:
    """A trigger pattern paired with the extractor that builds its action."""

    name: str
    title: str
    action_type: ActionType
    trigger: re.Pattern[str]
    extract: Callable[[InstructionText, AgentConfig], Action | None]
    describe: Callable[[Action], str]
    requires_audience: bool = False

    def matches(self, text: InstructionText) -> bool:
        return self.trigger.search(text.normalized) is not None


# --- Extraction helpers ---


def split_body(instruction: str) -> tuple[str, str]:
    """Split an instruction at its ``body:`` marker."""
    match = BODY_MARKER_PATTERN.search(instruction)
    if match is None:
        return instruction, ""
    return instruction[: match.start()], instruction[match.end():].strip()


def find_email(text: str) -> str | None:
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else None


def find_campaign_id(text: str) -> str | None:
    """Return the first hex-like campaign id, ignoring emails and audience ids."""
    masked = AUDIENCE_ID_PATTERN.sub(" ", EMAIL_PATTERN.sub(" ", text.lower()))
    match = CAMPAIGN_ID_PATTERN.search(masked)
    return match.group(0) if match else None


def find_subject(text: str) -> str | None:
    for match in QUOTED_PATTERN.finditer(text):
        subject = match.group(1).strip()
        if subject:
            return subject
    return None


def find_audience_id(text: str) -> str | None:
    match = AUDIENCE_ID_PATTERN.search(EMAIL_PATTERN.sub(" ", text))
    return match.group(1) if match else None


def find_tags(text: str) -> list[str]:
    """Collect tags named after a ``tag``/``tagged``/``tags`` keyword."""
    tags: list[str] = []
    for match in TAG_PATTERN.finditer(EMAIL_PATTERN.sub(" ", text)):
        for raw in TAG_SEPARATOR_PATTERN.split(match.group("tags")):
            tag = raw.strip().strip("\"'“”").strip()
            if tag:
                tags.append(tag)
    return tags


def merge_tags(*groups: Iterable[str]) -> tuple[str, ...]:
    """Union tag groups in order, dropping duplicates and blanks."""
    merged: list[str] = []
    for group in groups:
        for tag in group:
            tag = tag.strip()
            if tag and tag not in merged:
                merged.append(tag)
    return tuple(merged)


# --- Extractors ---


def _extract_settle(text: InstructionText, config: AgentConfig) -> Action | None:
    return SettleCampaignsAction()


def _extract_subscriber(text: InstructionText, config: AgentConfig) -> Action | None:
    email = find_email(text.command)
    if email is None:
        return None
    return AddSubscriberAction(
        email=email,
        tags=merge_tags(config.tags, find_tags(text.command)),
        list_id=find_audience_id(text.normalized) or config.list_id,
    )


def _extract_campaign(text: InstructionText, config: AgentConfig) -> Action | None:
    subject = find_subject(text.command)
    if subject is None:
        return None
    return CreateCampaignAction(
        subject=subject,
        body_html=text.body,
        list_id=find_audience_id(text.normalized) or config.list_id,
        from_name=config.from_name,
        reply_to=config.reply_to,
        preview_text=config.default_preview_text,
    )


def _extract_send(text: InstructionText, config: AgentConfig) -> Action | None:
    campaign_id = find_campaign_id(text.normalized)
    if campaign_id is None:
        return None
    return SendCampaignAction(campaign_id=campaign_id)


def _extract_list_campaigns(text: InstructionText, config: AgentConfig) -> Action | None:
    return ListCampaignsAction()


def _extract_list_audiences(text: InstructionText, config: AgentConfig) -> Action | None:
    return ListAudiencesAction()


# --- Descriptions for the interpretation trace ---


def _describe_subscriber(action: AddSubscriberAction) -> str:
    message = f"Subscribe {action.email} to audience {action.list_id}"
    if action.tags:
        message += f" with tags: {', '.join(action.tags)}"
    return message + "."


def _describe_campaign(action: CreateCampaignAction) -> str:
    body = "an HTML body" if action.body_html else "an empty body"
    return f'Create campaign "{action.subject}" for audience {action.list_id} with {body}.'


# Rule table, in precedence order
RULES: list[Rule] = [
    Rule(
        name="settle_campaigns",
        title="Settle pending campaigns",
        action_type=ActionType.SETTLE_CAMPAIGNS,
        trigger=re.compile(
            r"\bsettle\b|\bsend\s+(?:all|every|any)\b[^.]*?\b(?:pending|draft|drafted|ready|unsent)\b"
        ),
        extract=_extract_settle,
        describe=lambda action: "Find every campaign waiting in draft and send each one.",
    ),
    Rule(
        name="add_subscriber",
        title="Add subscriber",
        action_type=ActionType.ADD_SUBSCRIBER,
        trigger=re.compile(r"\b(?:add|subscribe|enroll|sign\s+up)\b"),
        extract=_extract_subscriber,
        describe=_describe_subscriber,
        requires_audience=True,
    ),
    Rule(
        name="create_campaign",
        title="Create campaign",
        action_type=ActionType.CREATE_CAMPAIGN,
        trigger=re.compile(
            r"\b(?:create|draft|compose|prepare|build|write)\b[^.]*?\bcampaign\b|\bnew\s+campaign\b"
        ),
        extract=_extract_campaign,
        describe=_describe_campaign,
        requires_audience=True,
    ),
    Rule(
        name="send_campaign",
        title="Send campaign",
        action_type=ActionType.SEND_CAMPAIGN,
        trigger=re.compile(r"\bsend\b"),
        extract=_extract_send,
        describe=lambda action: f"Send campaign {action.campaign_id}.",
    ),
    Rule(
        name="list_campaigns",
        title="List campaigns",
        action_type=ActionType.LIST_CAMPAIGNS,
        trigger=re.compile(
            r"\b(?:list|show|review|display|get|fetch|view)\b[^.]*?\bcampaigns\b"
            r"|\bcampaign\s+(?:overview|pipeline)\b"
        ),
        extract=_extract_list_campaigns,
        describe=lambda action: "Retrieve campaigns for review.",
    ),
    Rule(
        name="list_audiences",
        title="List audiences",
        action_type=ActionType.LIST_AUDIENCES,
        trigger=re.compile(
            r"\b(?:list|show|review|display|get|fetch|view)\b[^.]*?\b(?:audiences|lists)\b"
            r"|\baudience\s+overview\b"
        ),
        extract=_extract_list_audiences,
        describe=lambda action: "Retrieve the audiences available to the account.",
    ),
]
