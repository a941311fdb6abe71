"""Slack notifications for newly submitted excuses.

Posts to an incoming webhook. Delivery is best effort: every failure is logged
and reported as ``False``, never raised to the excuse workflow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExcuseNotification:
    child_name: str
    from_date: date
    to_date: date
    reason: Optional[str]
    is_on_time: bool


class ExcuseNotifier(Protocol):
    def send_excuse_notification(self, data: ExcuseNotification) -> bool:
        raise NotImplementedError


def _format_day(day: date) -> str:
    return f"{day.day}.{day.month}.{day.year}"


def build_excuse_message(data: ExcuseNotification) -> dict:
    status = ":white_check_mark: on time" if data.is_on_time else ":warning: late"
    status_text = "on time" if data.is_on_time else "late"

    from_s = _format_day(data.from_date)
    to_s = _format_day(data.to_date)
    date_range = from_s if from_s == to_s else f"{from_s} - {to_s}"

    blocks: list[dict] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": ":memo: New excuse", "emoji": True},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Child:*\n{data.child_name}"},
                {"type": "mrkdwn", "text": f"*Period:*\n{date_range}"},
                {"type": "mrkdwn", "text": f"*Status:*\n{status}"},
            ],
        },
    ]

    if data.reason and data.reason.strip():
        blocks.append(
            {
                "type": "section",
                "fields": [{"type": "mrkdwn", "text": f"*Reason:*\n{data.reason.strip()}"}],
            }
        )

    return {
        "blocks": blocks,
        "text": f"New excuse: {data.child_name} ({date_range}) - {status_text}",
    }


class SlackNotifier(ExcuseNotifier):
    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
    ):
        self._webhook_url = (webhook_url or "").strip() or None
        self._session = session or requests.Session()
        self._timeout = float(timeout)

    def send_excuse_notification(self, data: ExcuseNotification) -> bool:
        if not self._webhook_url:
            logger.warning("SLACK_WEBHOOK_URL not configured - skipping Slack notification")
            return False

        try:
            response = self._session.post(
                self._webhook_url,
                json=build_excuse_message(data),
                timeout=self._timeout,
            )
        except requests.RequestException:
            logger.exception("Failed to send Slack notification")
            return False

        if not response.ok:
            logger.error("Slack notification failed: %s - %s", response.status_code, response.text)
            return False

        logger.info("Slack notification sent for %s", data.child_name)
        return True
