# file: models/notification.py

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator, model_validator
from typing import Any, Dict, Optional, Union
from datetime import datetime
from enum import Enum
import re


class NotificationType(str, Enum):
    MEDICATION_REMINDER = "medication_reminder"
    HEALTH_CHECKIN_REMINDER = "health_checkin_reminder"
    EMERGENCY_ALERT = "emergency_alert"
    FAMILY_INVITATION = "family_invitation"
    BRAIN_TRAINING_REMINDER = "brain_training_reminder"
    GENERAL = "general"


KNOWN_TYPES = {t.value for t in NotificationType}

_HHMM = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


class NotificationEvent(BaseModel):
    """
    A notification as held by the server. Rows from the history endpoint use
    `message` for the body; unknown `type` values are kept verbatim.
    """
    id: str
    type: str = NotificationType.GENERAL.value
    title: str = ""
    body: str = Field(default="", validation_alias=AliasChoices("body", "message"))
    data: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    is_read: bool = Field(default=False, validation_alias=AliasChoices("is_read", "read"))

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    def coerce_id(cls, v):
        return str(v)

    @field_validator("type", mode="before")
    def default_type(cls, v):
        return v or NotificationType.GENERAL.value

    @field_validator("title", "body", mode="before")
    def none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("data", mode="before")
    def stringify_data(cls, v):
        if not v:
            return {}
        return {str(k): val if isinstance(val, str) else str(val) for k, val in v.items() if val is not None}

    @property
    def is_known_type(self) -> bool:
        return self.type in KNOWN_TYPES

    def payload(self) -> Dict[str, str]:
        """Data handed to a channel: the event's data plus its type and id."""
        return {**self.data, "type": self.type, "id": self.id}


class QuietHours(BaseModel):
    enabled: bool = False
    start_time: str = Field(default="22:00", validation_alias=AliasChoices("start_time", "startTime"))
    end_time: str = Field(default="07:00", validation_alias=AliasChoices("end_time", "endTime"))

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("start_time", "end_time")
    def validate_hhmm(cls, v):
        if not _HHMM.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v


class NotificationSettings(BaseModel):
    medication_reminders: bool = Field(
        default=True, validation_alias=AliasChoices("medication_reminders", "medicationReminders"))
    health_checkins: bool = Field(
        default=True,
        validation_alias=AliasChoices("health_checkins", "healthCheckins", "health_checkin_reminders"))
    emergency_alerts: bool = Field(
        default=True, validation_alias=AliasChoices("emergency_alerts", "emergencyAlerts"))
    brain_training_reminders: bool = Field(
        default=True, validation_alias=AliasChoices("brain_training_reminders", "brainTrainingReminders"))
    family_notifications: bool = Field(
        default=True, validation_alias=AliasChoices("family_notifications", "familyNotifications"))
    notification_sound: bool = Field(
        default=True, validation_alias=AliasChoices("notification_sound", "notificationSound"))
    vibration: bool = True
    quiet_hours: QuietHours = Field(
        default_factory=QuietHours, validation_alias=AliasChoices("quiet_hours", "quietHours"))

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def fold_flat_quiet_hours(cls, values: Any):
        # The backend stores quiet hours as three flat columns.
        if isinstance(values, dict) and "quiet_hours_enabled" in values:
            values = dict(values)
            values["quiet_hours"] = {
                "enabled": values.pop("quiet_hours_enabled"),
                "start_time": values.pop("quiet_hours_start", "22:00"),
                "end_time": values.pop("quiet_hours_end", "07:00"),
            }
        return values

    def to_backend(self) -> Dict[str, Any]:
        return {
            "medication_reminders": self.medication_reminders,
            "health_checkin_reminders": self.health_checkins,
            "emergency_alerts": self.emergency_alerts,
            "brain_training_reminders": self.brain_training_reminders,
            "family_notifications": self.family_notifications,
            "quiet_hours_enabled": self.quiet_hours.enabled,
            "quiet_hours_start": self.quiet_hours.start_time,
            "quiet_hours_end": self.quiet_hours.end_time,
            "notification_sound": self.notification_sound,
            "vibration": self.vibration,
        }


class QuietHoursUpdate(BaseModel):
    enabled: Optional[bool] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("start_time", "end_time")
    def validate_hhmm(cls, v):
        if v is not None and not _HHMM.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v


class NotificationSettingsUpdate(BaseModel):
    medication_reminders: Optional[bool] = None
    health_checkins: Optional[bool] = None
    emergency_alerts: Optional[bool] = None
    brain_training_reminders: Optional[bool] = None
    family_notifications: Optional[bool] = None
    notification_sound: Optional[bool] = None
    vibration: Optional[bool] = None
    quiet_hours: Optional[QuietHoursUpdate] = None

    def apply_to(self, settings: NotificationSettings) -> NotificationSettings:
        changes = self.model_dump(exclude_unset=True, exclude={"quiet_hours"})
        if self.quiet_hours is not None:
            quiet = settings.quiet_hours.model_dump()
            quiet.update(self.quiet_hours.model_dump(exclude_unset=True))
            changes["quiet_hours"] = QuietHours(**quiet)
        return NotificationSettings(**{**settings.model_dump(exclude={"quiet_hours"}),
                                       "quiet_hours": settings.quiet_hours, **changes})


class DateTrigger(BaseModel):
    at: datetime


class DailyTrigger(BaseModel):
    hour: int = Field(ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    repeats: bool = True


Trigger = Optional[Union[DateTrigger, DailyTrigger]]


class NotificationContent(BaseModel):
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)
    sound: Optional[str] = "default"


class ScheduledLocalNotification(BaseModel):
    id: str
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)
    trigger: Trigger = None
    channel_id: str


class ApiEnvelope(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None


class DeviceRegistration(BaseModel):
    device_token: str
    platform: str = "mobile"
    device_name: str = "Mobile App"


class CustomNotificationRequest(BaseModel):
    title: str
    body: str
    target_user_id: Optional[str] = None
    data: Dict[str, str] = Field(default_factory=dict)


class EmergencyNotificationRequest(BaseModel):
    message: Optional[str] = None
    alert_type: str = "sos"
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def as_data(self) -> Dict[str, str]:
        return {k: str(v) for k, v in self.model_dump(exclude_none=True).items()}


class MedicationReminderRequest(BaseModel):
    medication_id: str
    name: str
    dosage: str = ""
    remind_at: datetime


class DailyReminderRequest(BaseModel):
    hour: int = Field(default=9, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
