"""Delivery of preventive alert batches.

The alert check hands every batch to a ``Notifier``. Which one is used is
chosen by the ``NOTIFIER`` setting; ``send`` raises on delivery failure so the
caller can leave the batch un-notified.
"""
import html
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import List

import httpx

from fleetops.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertNotice:
    plate: str
    vehicle: str  # "Make Model"
    kind: str
    message: str
    generated_at: datetime


class Notifier(ABC):
    @abstractmethod
    def send(self, recipient: str, subject: str, alerts: List[AlertNotice]) -> None:
        ...


class LogNotifier(Notifier):
    """Writes the batch to the log. Default for development."""

    def send(self, recipient: str, subject: str, alerts: List[AlertNotice]) -> None:
        logger.info(f"[{subject}] {len(alerts)} alert(s) for {recipient}")
        for alert in alerts:
            logger.info(f"  {alert.message}")


def render_alert_table(alerts: List[AlertNotice], frontend_url: str = "") -> str:
    rows = "".join(
        "<tr>"
        f'<td style="padding: 12px; border: 1px solid #ddd;">{html.escape(a.plate)}</td>'
        f'<td style="padding: 12px; border: 1px solid #ddd;">{html.escape(a.vehicle)}</td>'
        f'<td style="padding: 12px; border: 1px solid #ddd;">{html.escape(a.message)}</td>'
        "</tr>"
        for a in alerts
    )
    link = (
        f'<p><a href="{html.escape(frontend_url)}/alerts">Open the alerts dashboard</a></p>'
        if frontend_url
        else ""
    )
    return (
        "<!DOCTYPE html><html><head><meta charset=\"UTF-8\"><title>Preventive maintenance alerts</title></head>"
        '<body style="font-family: Arial, sans-serif; color: #333;">'
        "<h1>Preventive maintenance alerts</h1>"
        "<p>The following vehicles need preventive maintenance soon:</p>"
        '<table style="width: 100%; border-collapse: collapse;">'
        "<thead><tr>"
        '<th style="padding: 12px; border: 1px solid #ddd; text-align: left;">Plate</th>'
        '<th style="padding: 12px; border: 1px solid #ddd; text-align: left;">Vehicle</th>'
        '<th style="padding: 12px; border: 1px solid #ddd; text-align: left;">Reason</th>'
        f"</tr></thead><tbody>{rows}</tbody></table>"
        f"{link}</body></html>"
    )


class SmtpNotifier(Notifier):
    """HTML email with one table row per alert."""

    def __init__(self, config: Settings = default_settings):
        self.config = config

    def build_message(self, recipient: str, subject: str, alerts: List[AlertNotice]) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.MAIL_FROM
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("\n".join(a.message for a in alerts))
        message.add_alternative(render_alert_table(alerts, self.config.FRONTEND_URL), subtype="html")
        return message

    def send(self, recipient: str, subject: str, alerts: List[AlertNotice]) -> None:
        if not recipient:
            raise ValueError("Alert recipient is not configured")

        message = self.build_message(recipient, subject, alerts)
        with smtplib.SMTP(self.config.MAIL_HOST, self.config.MAIL_PORT, timeout=30) as smtp:
            if self.config.MAIL_USE_TLS:
                smtp.starttls()
            if self.config.MAIL_USER:
                smtp.login(self.config.MAIL_USER, self.config.MAIL_PASSWORD)
            smtp.send_message(message)
        logger.info(f"Alert email sent to {recipient} ({len(alerts)} alerts)")


class WebhookNotifier(Notifier):
    """POSTs the batch as JSON to ``ALERT_WEBHOOK_URL``."""

    def __init__(self, url: str, timeout: float = 10.0, client: httpx.Client = None):
        self.url = url
        self.timeout = timeout
        self.client = client

    def payload(self, recipient: str, subject: str, alerts: List[AlertNotice]) -> dict:
        return {
            "recipient": recipient,
            "subject": subject,
            "alerts": [
                {
                    "plate": a.plate,
                    "vehicle": a.vehicle,
                    "kind": a.kind,
                    "message": a.message,
                    "generated_at": a.generated_at.isoformat(),
                }
                for a in alerts
            ],
        }

    def send(self, recipient: str, subject: str, alerts: List[AlertNotice]) -> None:
        body = self.payload(recipient, subject, alerts)
        if self.client is not None:
            response = self.client.post(self.url, json=body, timeout=self.timeout)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.url, json=body)
        response.raise_for_status()
        logger.info(f"Alert webhook delivered to {self.url} ({len(alerts)} alerts)")


def build_notifier(config: Settings = default_settings) -> Notifier:
    kind = config.NOTIFIER.lower()
    if kind == "smtp":
        return SmtpNotifier(config)
    if kind == "webhook":
        if not config.ALERT_WEBHOOK_URL:
            raise ValueError("NOTIFIER=webhook requires ALERT_WEBHOOK_URL")
        return WebhookNotifier(config.ALERT_WEBHOOK_URL)
    if kind != "log":
        logger.warning(f"Unknown NOTIFIER '{config.NOTIFIER}', falling back to log delivery")
    return LogNotifier()
