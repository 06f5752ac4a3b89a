"""Outbound notifications for issue engine outcomes.

The engine reports semantic outcomes ("issue created", "status update
failed") and leaves presentation to whatever notifier is plugged in. It runs
fine without one.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    ISSUE_CREATED = "issue_created"
    ISSUE_CREATE_FAILED = "issue_create_failed"
    ISSUE_UPDATED = "issue_updated"
    ISSUE_UPDATE_FAILED = "issue_update_failed"
    ISSUE_DELETED = "issue_deleted"
    ISSUE_DELETE_FAILED = "issue_delete_failed"
    STATUS_UPDATED = "status_updated"
    STATUS_UPDATE_FAILED = "status_update_failed"
    PRIORITY_UPDATED = "priority_updated"
    PRIORITY_UPDATE_FAILED = "priority_update_failed"
    COMMENT_ADDED = "comment_added"
    COMMENT_FAILED = "comment_failed"
    LOAD_FAILED = "load_failed"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str
    issue_id: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return self.kind.value.endswith("_failed")


class Notifier:
    """Abstract base for notification sinks."""

    async def notify(self, notification: Notification) -> None:
        raise NotImplementedError

    async def drain(self) -> None:
        """Wait for any notifications still being delivered."""


class LoggingNotifier(Notifier):
    async def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.is_error else logging.INFO
        logger.log(
            level,
            notification.message,
            extra={"issue_id": notification.issue_id, "kind": notification.kind.value},
        )


class SlackNotifier(Notifier):
    """Post notifications to a Slack incoming webhook."""

    def __init__(self, webhook_url: str, timeout: float = 5.0):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._pending: set[asyncio.Task] = set()

    def _payload(self, notification: Notification) -> dict:
        header = "⚠️ Issue Board" if notification.is_error else "🆕 Issue Board"
        fields = [
            {
                "type": "mrkdwn",
                "text": f"*Event:*\n{notification.kind.value.replace('_', ' ')}",
            },
        ]
        if notification.issue_id is not None:
            fields.append({"type": "mrkdwn", "text": f"*Issue:*\n#{notification.issue_id}"})

        return {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": header},
                },
                {"type": "section", "fields": fields},
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": notification.message},
                },
            ]
        }

    async def notify(self, notification: Notification) -> None:
        """Schedule the webhook POST off the caller's path."""
        task = asyncio.create_task(self._send(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        results = await asyncio.gather(*self._pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Slack notification task failed: {result!r}")

    async def _send(self, notification: Notification) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=self._payload(notification))
                response.raise_for_status()

            logger.info(
                "Slack notification sent successfully",
                extra={"issue_id": notification.issue_id},
            )

        except httpx.HTTPError:
            logger.exception(
                "Failed to send Slack notification",
                extra={"issue_id": notification.issue_id},
            )


async def emit(
    notifier: Optional[Notifier],
    kind: NotificationKind,
    message: str,
    issue_id: Optional[int] = None,
) -> None:
    """Send a notification if a notifier is configured.

    Notifier errors are logged and never reach the caller.
    """
    if notifier is None:
        return
    try:
        await notifier.notify(Notification(kind=kind, message=message, issue_id=issue_id))
    except Exception:
        logger.exception(
            f"Notifier {type(notifier).__name__} failed on {kind.value}",
            extra={"issue_id": issue_id},
        )


def get_notifier() -> Notifier:
    """
    Factory function to get the configured notifier.

    Uses Slack when SLACK_WEBHOOK_URL is set, otherwise logs notifications.
    """
    slack_webhook_url = os.environ.get("SLACK_WEBHOOK_URL")
    if not slack_webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not set, notifications will only be logged")
        return LoggingNotifier()

    logger.info("Using Slack notifier")
    return SlackNotifier(slack_webhook_url)
