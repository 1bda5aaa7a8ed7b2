# brightland/clients/notifications.py
from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, Sequence

import httpx

from ..config import settings
from ..errors import NotificationError

log = logging.getLogger("brightland.notifications")


class Notifier(Protocol):
    def send(self, recipients: Sequence[str], subject: str, body: str) -> None: ...


class ResendNotifier:
    """Sends HTML email through the Resend HTTP API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        from_email: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.base = (base_url or settings.resend_base_url).rstrip("/")
        self.from_email = from_email or settings.notify_from_email
        self.timeout = float(timeout if timeout is not None else settings.notify_timeout_seconds)

    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, recipients: Sequence[str], subject: str, body: str) -> None:
        if not self.api_key:
            raise NotificationError("resend_api_key not set")

        url = f"{self.base}/emails"
        payload = {
            "from": self.from_email,
            "to": list(recipients),
            "subject": subject,
            "html": body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            with httpx.Client(timeout=self.timeout) as client:
                r = client.post(url, json=payload, headers=headers)
                r.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError(f"resend send failed: {e}") from e


class LogNotifier:
    """Dev/local notifier: writes the message to the log instead of sending it."""

    def send(self, recipients: Sequence[str], subject: str, body: str) -> None:
        log.info("notification (not sent) to=%s subject=%s", ",".join(recipients), subject)


def _clean(recipients: Iterable[Optional[str]]) -> list[str]:
    out: list[str] = []
    for r in recipients:
        r = (r or "").strip()
        if r and r not in out:
            out.append(r)
    return out


def notify_best_effort(
    notifier: Notifier,
    recipients: Iterable[Optional[str]],
    subject: str,
    body: str,
) -> bool:
    """
    Fire-and-forget delivery.

    Returns False (and logs) on any failure; never raises. Call only after the
    state change it reports on has been committed.
    """
    to = _clean(recipients)
    if not to:
        log.warning("notification skipped: no recipients subject=%s", subject)
        return False
    try:
        notifier.send(to, subject, body)
        return True
    except Exception:
        log.exception("notification failed to=%s subject=%s", ",".join(to), subject)
        return False


def get_notifier() -> Notifier:
    """FastAPI dependency; falls back to LogNotifier when Resend is not configured."""
    n = ResendNotifier()
    if n.enabled():
        return n
    return LogNotifier()
