"""Pydantic schemas for MailAgent request/response contracts."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class LogLevel(str, Enum):
    """Severity of a trace entry surfaced to the operator."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ActionType(str, Enum):
    """Operations the executor knows how to run."""

    ADD_SUBSCRIBER = "addSubscriber"
    CREATE_CAMPAIGN = "createCampaign"
    SEND_CAMPAIGN = "sendCampaign"
    LIST_CAMPAIGNS = "listCampaigns"
    LIST_AUDIENCES = "listAudiences"
    SETTLE_CAMPAIGNS = "settleCampaigns"


class ActionStatus(str, Enum):
    """Outcome of a single executed action."""

    SUCCESS = "success"
    ERROR = "error"


class _WireModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# --- Configuration ---


class AgentConfig(_WireModel):
    """Operator-supplied defaults for one run."""

    list_id: str | None = None
    from_name: str | None = None
    reply_to: EmailStr | None = None
    default_preview_text: str | None = None
    tags: tuple[str, ...] = ()

    @field_validator("list_id", "from_name", "default_preview_text", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("reply_to", mode="before")
    @classmethod
    def _blank_reply_to(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        return tuple(tag.strip() for tag in value if tag and tag.strip())


# --- Actions ---


class AddSubscriberAction(_WireModel):
    """Add or update a member of an audience."""

    type: Literal["addSubscriber"] = "addSubscriber"
    email: str
    tags: tuple[str, ...] = ()
    list_id: str | None = None


class CreateCampaignAction(_WireModel):
    """Create a regular campaign and set its HTML content."""

    type: Literal["createCampaign"] = "createCampaign"
    subject: str
    body_html: str = ""
    list_id: str | None = None
    from_name: str | None = None
    reply_to: str | None = None
    preview_text: str | None = None


class SendCampaignAction(_WireModel):
    """Trigger the send of an existing campaign."""

    type: Literal["sendCampaign"] = "sendCampaign"
    campaign_id: str


class ListCampaignsAction(_WireModel):
    type: Literal["listCampaigns"] = "listCampaigns"


class ListAudiencesAction(_WireModel):
    type: Literal["listAudiences"] = "listAudiences"


class SettleCampaignsAction(_WireModel):
    """Send every campaign that is still waiting in draft."""

    type: Literal["settleCampaigns"] = "settleCampaigns"


Action = Annotated[
    Union[
        AddSubscriberAction,
        CreateCampaignAction,
        SendCampaignAction,
        ListCampaignsAction,
        ListAudiencesAction,
        SettleCampaignsAction,
    ],
    Field(discriminator="type"),
]


# --- Traces and results ---


class LogEntry(_WireModel):
    """One step of the interpretation or execution narrative."""

    level: LogLevel
    title: str
    message: str


class ActionResult(_WireModel):
    """Outcome of one executed action."""

    action: Action
    status: ActionStatus
    detail: str
    data: Any | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> ActionResult:
        if self.status == ActionStatus.SUCCESS:
            if self.data is None or self.error is not None:
                raise ValueError("successful results carry data and no error")
        elif self.error is None or self.data is not None:
            raise ValueError("failed results carry an error and no data")
        return self


class Interpretation(_WireModel):
    """Actions planned for an instruction plus the reasoning trace."""

    actions: tuple[Action, ...] = ()
    logs: tuple[LogEntry, ...] = ()


class RunOutcome(_WireModel):
    """Everything the executor produced for one action list."""

    summary: str
    logs: tuple[LogEntry, ...] = ()
    results: tuple[ActionResult, ...] = ()


# --- HTTP contracts ---


class AgentRequest(_WireModel):
    """Inbound request for one run."""

    instruction: str = Field(..., min_length=1, description="Free-text directive")
    config: AgentConfig | None = None

    @field_validator("instruction")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("An instruction is required.")
        return value


class AgentResponse(_WireModel):
    """Outbound result of one run."""

    configured: bool
    summary: str
    interpretation: tuple[LogEntry, ...] = ()
    execution: tuple[LogEntry, ...] = ()
    results: tuple[ActionResult, ...] = ()


class ConfigurationStatus(_WireModel):
    configured: bool


class HealthResponse(BaseModel):
    """Health check response."""

    broker: Literal["healthy", "unhealthy"] = "healthy"
    mailchimp: Literal["healthy", "unhealthy", "unconfigured"] = "unconfigured"


class ErrorResponse(BaseModel):
    """Error response for failed requests."""

    detail: str
    error_code: str | None = None
    issues: list[dict[str, Any]] = Field(default_factory=list)
