# file: app/services/reconciler.py

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ValidationError

from app import config
from app.models.notification import NotificationEvent
from app.services.api_client import ApiError
from app.services.dispatcher import ChannelDispatcher
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class ReconcileResult(BaseModel):
    attempts: int
    success: bool
    presented: int = 0
    error: Optional[str] = None


def parse_history(data: Any) -> List[NotificationEvent]:
    """Turns the history payload into events, newest first. Malformed rows are skipped."""
    rows = data.get("notifications", []) if isinstance(data, dict) else (data or [])
    events = []
    for row in rows:
        try:
            events.append(NotificationEvent.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping malformed notification row: {e}")

    oldest = datetime.min.replace(tzinfo=timezone.utc)

    def created(event: NotificationEvent) -> datetime:
        if event.created_at is None:
            return oldest
        if event.created_at.tzinfo is None:
            return event.created_at.replace(tzinfo=timezone.utc)
        return event.created_at

    return sorted(events, key=created, reverse=True)


class HistoryReconciler:
    """
    Fetches the server's notification history, replaces the cached list and
    re-presents anything still unread. Transient failures (no status or 5xx)
    are retried with a fixed delay; everything else stops the chain.
    """

    def __init__(self, service: NotificationService, dispatcher: ChannelDispatcher,
                 on_history: Callable[[List[NotificationEvent]], None],
                 max_retries: int = config.HISTORY_MAX_RETRIES,
                 retry_delay: float = config.HISTORY_RETRY_DELAY_SECONDS,
                 spacing: float = config.PRESENTATION_SPACING_SECONDS):
        self.service = service
        self.dispatcher = dispatcher
        self.on_history = on_history
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.spacing = spacing
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    async def reconcile(self) -> ReconcileResult:
        if self.in_flight:
            logger.info("Notification history reconcile already running; joining it")
        else:
            self._in_flight = asyncio.create_task(self._run())
        # A started chain runs to completion even if this caller goes away.
        return await asyncio.shield(self._in_flight)

    async def _run(self) -> ReconcileResult:
        attempts = 0
        while True:
            attempts += 1
            logger.info(f"Loading notification history (attempt {attempts})")
            try:
                envelope = await self.service.get_history()
            except ApiError as e:
                error, transient = e.message, e.is_transient
                logger.error(f"Request error loading notification history ({e.status}): {e.message}")
            else:
                if envelope.success:
                    events = parse_history(envelope.data)
                    logger.info(f"Received {len(events)} notifications")
                    self.on_history(events)
                    presented = await self._present_unread(events)
                    return ReconcileResult(attempts=attempts, success=True, presented=presented)
                error, transient = envelope.error or "Failed to load notifications", False
                logger.error(f"Failed to load notifications: {error}")

            if not transient or attempts > self.max_retries:
                logger.error(f"Giving up on notification history after {attempts} attempt(s)")
                return ReconcileResult(attempts=attempts, success=False, error=error)

            logger.info(f"Retrying notification fetch in {self.retry_delay}s")
            await asyncio.sleep(self.retry_delay)

    async def _present_unread(self, events: List[NotificationEvent]) -> int:
        unread = [event for event in events if not event.is_read]
        if not unread:
            logger.info("No unread notifications found")
            return 0

        logger.info(f"Found {len(unread)} unread notifications, presenting them")
        presented = 0
        for index, event in enumerate(unread):
            if index:
                await asyncio.sleep(self.spacing)
            try:
                await self.dispatcher.present(event)
                presented += 1
            except Exception as e:
                logger.error(f"Error presenting notification {event.id}: {e}", exc_info=True)
        return presented
