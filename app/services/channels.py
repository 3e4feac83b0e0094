# file: app/services/channels.py

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from app.models.notification import NotificationType


@dataclass(frozen=True)
class NotificationChannel:
    id: str
    name: str
    importance: str
    vibration_pattern: Optional[Tuple[int, ...]] = None
    sound: str = "default"


MEDICATION = NotificationChannel("medication-reminders", "Medication Reminders", "high", (0, 250, 250, 250))
HEALTH = NotificationChannel("health-checkins", "Health Check-ins", "default")
EMERGENCY = NotificationChannel("emergency-alerts", "Emergency Alerts", "max", (0, 250, 250, 250))
FAMILY = NotificationChannel("family-invitations", "Family Invitations", "high")
GENERAL = NotificationChannel("general-notifications", "General Notifications", "default")

CHANNELS: Dict[str, NotificationChannel] = {c.id: c for c in (MEDICATION, HEALTH, EMERGENCY, FAMILY, GENERAL)}

_BY_TYPE = {
    NotificationType.MEDICATION_REMINDER.value: MEDICATION,
    NotificationType.HEALTH_CHECKIN_REMINDER.value: HEALTH,
    NotificationType.EMERGENCY_ALERT.value: EMERGENCY,
    NotificationType.FAMILY_INVITATION.value: FAMILY,
}


def channel_for(notification_type: str) -> NotificationChannel:
    return _BY_TYPE.get(notification_type, GENERAL)


def channel_by_id(channel_id: str) -> NotificationChannel:
    return CHANNELS.get(channel_id, GENERAL)
