"""Notification handlers — log and webhook delivery of safety alerts.

Architecture
~~~~~~~~~~~~
* **NotificationHandler** — abstract base for delivery channels.
* **LogHandler / WebhookHandler** — concrete channels.
* **NotificationDispatcher** — fan-out with error-isolation and results.
* **create_dispatcher()** — factory that wires handlers from settings.

The dispatcher is registered as a :class:`StreamPipeline` consumer and
receives every processed sample; samples whose alert level is ``none``
are skipped.

Adding a new channel
~~~~~~~~~~~~~~~~~~~~
1. Subclass ``NotificationHandler``.
2. Implement ``async send(item) -> bool``.
3. Optionally set ``name`` and ``min_level``.
4. Register via ``dispatcher.add_handler(...)`` or add to the factory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
import structlog

from workout_monitor.models import AlertLevel

if TYPE_CHECKING:
    from workout_monitor.config import Settings
    from workout_monitor.models import ProcessedSample

logger = structlog.get_logger(__name__)


# ── Dispatch result ───────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome summary for a single ``dispatch()`` call."""

    sample_id: str | None
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def all_ok(self) -> bool:
        return len(self.failed) == 0


# ── Abstract handler ──────────────────────────────────────────


class NotificationHandler(ABC):
    """Contract for alert delivery channels.

    Subclasses must implement :meth:`send`.  ``min_level`` filters out
    samples below a given alert level.
    """

    name: str = "base"
    min_level: AlertLevel = AlertLevel.WARNING

    @abstractmethod
    async def send(self, item: ProcessedSample) -> bool:
        """Deliver an alert.  Return ``True`` on success."""

    def should_handle(self, item: ProcessedSample) -> bool:
        level = item.result.alert_level
        return level is not AlertLevel.NONE and level.rank >= self.min_level.rank


# ── Concrete handlers ────────────────────────────────────────


class LogHandler(NotificationHandler):
    """Write alerts to the structured log (always enabled)."""

    name = "log"

    async def send(self, item: ProcessedSample) -> bool:
        logger.info(
            "notification.log",
            user_id=item.user_id,
            level=item.result.alert_level.value,
            message=item.result.alert_message,
            intensity=item.result.intensity,
        )
        return True


class WebhookHandler(NotificationHandler):
    """POST the alerting sample as JSON to an external webhook URL."""

    name = "webhook"

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        min_level: AlertLevel = AlertLevel.WARNING,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self.min_level = min_level

    async def send(self, item: ProcessedSample) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=item.to_payload())
                resp.raise_for_status()
            logger.info("notification.webhook_sent", url=self._url, sample_id=item.id)
            return True
        except httpx.HTTPError as exc:
            logger.error("notification.webhook_failed", url=self._url, error=str(exc))
            return False


# ── Dispatcher ────────────────────────────────────────────────


class NotificationDispatcher:
    """Fan-out alerting samples to registered handlers with error isolation.

    Each handler is invoked independently; a failure in one channel
    never blocks delivery to the others.
    """

    def __init__(self, *, handlers: list[NotificationHandler] | None = None) -> None:
        self._handlers: list[NotificationHandler] = handlers or [LogHandler()]

    # ── Handler management ────────────────────────────────────

    def add_handler(self, handler: NotificationHandler) -> None:
        self._handlers.append(handler)

    def remove_handler(self, name: str) -> bool:
        """Remove the first handler matching *name*. Return ``True`` if found."""
        for i, h in enumerate(self._handlers):
            if h.name == name:
                self._handlers.pop(i)
                return True
        return False

    @property
    def handler_names(self) -> list[str]:
        return [h.name for h in self._handlers]

    # ── Dispatch ──────────────────────────────────────────────

    async def dispatch(self, item: ProcessedSample) -> DispatchResult:
        """Send *item* to every interested handler, collecting outcomes.

        A handler that raises is caught, logged, and marked as failed so
        remaining handlers still execute.
        """
        sent: list[str] = []
        failed: list[str] = []

        for handler in self._handlers:
            if not handler.should_handle(item):
                continue
            try:
                ok = await handler.send(item)
                (sent if ok else failed).append(handler.name)
            except Exception:
                logger.exception(
                    "notification.handler_error",
                    handler=handler.name,
                    sample_id=item.id,
                )
                failed.append(handler.name)

        result = DispatchResult(sample_id=item.id, sent=sent, failed=failed)
        if result.failed:
            logger.warning(
                "notification.partial_failure",
                sample_id=item.id,
                failed=result.failed,
            )
        return result


# ── Factory ───────────────────────────────────────────────────


def create_dispatcher(settings: Settings) -> NotificationDispatcher:
    """Build a :class:`NotificationDispatcher` wired from application settings.

    * **LogHandler** is always registered.
    * **WebhookHandler** is added when ``settings.webhook_url`` is non-empty.
    """
    dispatcher = NotificationDispatcher()

    if settings.webhook_url:
        dispatcher.add_handler(
            WebhookHandler(
                settings.webhook_url,
                min_level=AlertLevel(settings.alert_webhook_min_level),
            ),
        )

    return dispatcher
