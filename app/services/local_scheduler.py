# file: app/services/local_scheduler.py

import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from app.models.notification import (
    DailyTrigger, DateTrigger, NotificationContent, ScheduledLocalNotification, Trigger,
)

logger = logging.getLogger(__name__)


def seconds_until(trigger: Trigger, now: Optional[datetime] = None) -> float:
    if trigger is None:
        return 0.0
    if isinstance(trigger, DateTrigger):
        now = now or datetime.now(trigger.at.tzinfo)
        return max((trigger.at - now).total_seconds(), 0.0)

    now = now or datetime.now()
    fire_at = now.replace(hour=trigger.hour, minute=trigger.minute, second=0, microsecond=0)
    if fire_at <= now:
        fire_at += timedelta(days=1)
    return (fire_at - now).total_seconds()


class LocalScheduler:
    """
    Hands notifications off to timed delivery. Once scheduled, a notification
    is only addressable by its id.
    """

    def __init__(self, sender, token_provider: Callable[[], Optional[str]]):
        self.sender = sender
        self.token_provider = token_provider
        self._tasks: Dict[str, asyncio.Task] = {}
        self._scheduled: Dict[str, ScheduledLocalNotification] = {}

    async def schedule(self, content: NotificationContent, trigger: Trigger, channel_id: str) -> str:
        notification_id = uuid.uuid4().hex
        self._scheduled[notification_id] = ScheduledLocalNotification(
            id=notification_id,
            title=content.title,
            body=content.body,
            data=content.data,
            trigger=trigger,
            channel_id=channel_id,
        )
        self._tasks[notification_id] = asyncio.create_task(self._run(notification_id, content, trigger, channel_id))
        logger.info(f"Scheduled local notification {notification_id} on {channel_id}")
        return notification_id

    async def cancel(self, notification_id: str) -> None:
        task = self._tasks.pop(notification_id, None)
        self._scheduled.pop(notification_id, None)
        if task is None:
            raise KeyError(f"No scheduled notification with id {notification_id}")
        task.cancel()

    async def cancel_all(self) -> None:
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()
        self._scheduled.clear()

    def pending(self) -> List[ScheduledLocalNotification]:
        return list(self._scheduled.values())

    async def _run(self, notification_id: str, content: NotificationContent, trigger: Trigger, channel_id: str):
        try:
            while True:
                await asyncio.sleep(seconds_until(trigger))
                await self._deliver(content, channel_id)
                if not (isinstance(trigger, DailyTrigger) and trigger.repeats):
                    break
                # Step past the current minute so the next occurrence is tomorrow.
                await asyncio.sleep(60)
        finally:
            if self._tasks.get(notification_id) is asyncio.current_task():
                self._tasks.pop(notification_id, None)
                self._scheduled.pop(notification_id, None)

    async def _deliver(self, content: NotificationContent, channel_id: str) -> None:
        token = self.token_provider()
        if not token:
            logger.warning(f"No device token; dropping '{content.title}'")
            return
        await self.sender.send(token, content, channel_id)
