"""Mailchimp Marketing API client used by the executor."""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Mailchimp API settings
MAILCHIMP_API_VERSION = "3.0"
MAILCHIMP_BASE_URL = "https://{prefix}.api.mailchimp.com/" + MAILCHIMP_API_VERSION

# Timeouts
DEFAULT_TIMEOUT = 15.0  # seconds

# Page size for listing endpoints
DEFAULT_PAGE_SIZE = 100


class MailchimpError(Exception):
    """Raised when a Mailchimp call fails or cannot be made."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


@dataclass(frozen=True)
class MailchimpSettings:
    """Credentials for one Mailchimp account."""

    api_key: str | None = None
    server_prefix: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.server_prefix)

    @property
    def base_url(self) -> str:
        return MAILCHIMP_BASE_URL.format(prefix=self.server_prefix)


def _prefix_from_key(api_key: str | None) -> str | None:
    """Mailchimp keys end with their data center, e.g. ``abc123-us21``."""
    if api_key and "-" in api_key:
        return api_key.rsplit("-", 1)[1] or None
    return None


def load_settings() -> MailchimpSettings:
    """Read Mailchimp credentials from the environment (and ``.env``)."""
    load_dotenv()
    api_key = os.getenv("MAILCHIMP_API_KEY") or None
    server_prefix = os.getenv("MAILCHIMP_SERVER_PREFIX") or _prefix_from_key(api_key)
    raw_timeout = os.getenv("MAILCHIMP_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    except ValueError:
        logger.warning(f"Ignoring invalid MAILCHIMP_TIMEOUT={raw_timeout!r}, using {DEFAULT_TIMEOUT}s")
        timeout = DEFAULT_TIMEOUT
    return MailchimpSettings(api_key=api_key, server_prefix=server_prefix, timeout=timeout)


def is_mailchimp_configured(settings: MailchimpSettings | None = None) -> bool:
    """Check whether Mailchimp credentials are available."""
    return (settings or load_settings()).configured


def subscriber_hash(email: str) -> str:
    """MD5 of the lower-cased address, as Mailchimp keys members."""
    return hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()


def _error_from_response(response: httpx.Response) -> MailchimpError:
    """Build an error from a Mailchimp problem-details response."""
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    title = payload.get("title") or response.reason_phrase or "Mailchimp error"
    detail = payload.get("detail")
    message = f"{title}: {detail}" if detail else title
    return MailchimpError(message, status_code=response.status_code, payload=payload)


class MailchimpClient:
    """Thin synchronous wrapper around the Mailchimp Marketing API."""

    def __init__(
        self,
        settings: MailchimpSettings,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            settings: Account credentials and timeout
            transport: Optional httpx transport, used by tests
        """
        self.settings = settings
        self._transport = transport

    def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Perform one API call and return its JSON body."""
        if not self.settings.configured:
            raise MailchimpError("Mailchimp credentials are not configured")

        try:
            with httpx.Client(
                base_url=self.settings.base_url,
                auth=("mailagent", self.settings.api_key or ""),
                timeout=self.settings.timeout,
                transport=self._transport,
            ) as client:
                response = client.request(method, path, json=json, params=params)
                response.raise_for_status()

        except httpx.HTTPStatusError as e:
            logger.error(f"Mailchimp HTTP error on {method} {path}: {e.response.status_code}")
            raise _error_from_response(e.response) from e

        except httpx.TimeoutException as e:
            logger.warning(f"Mailchimp request timed out: {method} {path}")
            raise MailchimpError("Mailchimp request timed out") from e

        except httpx.HTTPError as e:
            logger.error(f"Failed to reach Mailchimp: {e}")
            raise MailchimpError(f"Mailchimp service unavailable: {e}") from e

        if response.status_code == 204 or not response.content:
            return {}

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Unreadable Mailchimp response on {method} {path}")
            raise MailchimpError(
                "Mailchimp returned an unreadable response", status_code=response.status_code
            ) from e
        if not isinstance(body, dict):
            raise MailchimpError(
                "Mailchimp returned an unexpected response", status_code=response.status_code
            )
        return body

    def add_or_update_member(
        self,
        list_id: str,
        email: str,
        tags: tuple[str, ...] | list[str] = (),
    ) -> dict[str, Any]:
        """Subscribe an address (or update it) and activate its tags."""
        member_hash = subscriber_hash(email)
        member = self._request(
            "PUT",
            f"/lists/{list_id}/members/{member_hash}",
            json={"email_address": email, "status_if_new": "subscribed"},
        )
        if tags:
            self._request(
                "POST",
                f"/lists/{list_id}/members/{member_hash}/tags",
                json={"tags": [{"name": tag, "status": "active"} for tag in tags]},
            )
        return {**member, "tags_applied": list(tags)}

    def create_campaign(
        self,
        list_id: str,
        subject: str,
        from_name: str | None = None,
        reply_to: str | None = None,
        preview_text: str | None = None,
    ) -> dict[str, Any]:
        """Create a regular campaign addressed to an audience."""
        settings: dict[str, Any] = {"subject_line": subject, "title": subject}
        if from_name:
            settings["from_name"] = from_name
        if reply_to:
            settings["reply_to"] = reply_to
        if preview_text:
            settings["preview_text"] = preview_text

        return self._request(
            "POST",
            "/campaigns",
            json={
                "type": "regular",
                "recipients": {"list_id": list_id},
                "settings": settings,
            },
        )

    def set_campaign_content(self, campaign_id: str, html: str) -> dict[str, Any]:
        return self._request("PUT", f"/campaigns/{campaign_id}/content", json={"html": html})

    def send_campaign(self, campaign_id: str) -> dict[str, Any]:
        """Trigger a send. Mailchimp answers with an empty 204."""
        self._request("POST", f"/campaigns/{campaign_id}/actions/send")
        return {"id": campaign_id, "status": "sent"}

    def list_campaigns(
        self,
        count: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        status: str | None = None,
    ) -> dict[str, Any]:
        """One page of campaigns, optionally limited to a status."""
        params: dict[str, Any] = {"count": count, "offset": offset}
        if status:
            params["status"] = status
        return self._request("GET", "/campaigns", params=params)

    def list_audiences(self, count: int = DEFAULT_PAGE_SIZE) -> dict[str, Any]:
        return self._request("GET", "/lists", params={"count": count})

    def ping(self) -> bool:
        """Check if the Mailchimp API is reachable with these credentials."""
        try:
            self._request("GET", "/ping")
            return True
        except MailchimpError:
            return False
