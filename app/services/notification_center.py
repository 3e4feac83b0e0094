# file: app/services/notification_center.py

import logging
from datetime import datetime, time
from typing import Dict, List, Optional, Union

from fastapi import Request
from pydantic import ValidationError

from app import config
from app.models.capabilities import DeviceCapabilities, HostInfo
from app.models.notification import (
    CustomNotificationRequest, DailyTrigger, DateTrigger, DeviceRegistration, EmergencyNotificationRequest,
    MedicationReminderRequest, NotificationEvent, NotificationSettings, NotificationSettingsUpdate,
    NotificationType, Trigger,
)
from app.services.alerts import AlertCenter
from app.services.api_client import ApiError
from app.services.auth_session import AuthSession
from app.services.capabilities import host_from_env, probe
from app.services.channels import GENERAL, HEALTH, MEDICATION
from app.services.dispatcher import ChannelDispatcher
from app.services.kv_store import KeyValueStore
from app.services.local_scheduler import LocalScheduler
from app.services.navigation import NavigationState
from app.services.notification_service import NotificationService
from app.services.quiet_hours import is_quiet
from app.services.reconciler import HistoryReconciler, ReconcileResult

logger = logging.getLogger(__name__)


class NotificationCenter:
    """
    Per-session notification state for the companion UI: cached history,
    user settings, device registration, reminder scheduling and emergency
    fan-out. Starts working when the session becomes authenticated.
    """

    def __init__(self, session: AuthSession, service: NotificationService, store: KeyValueStore, sender,
                 host: Optional[HostInfo] = None, alerts: Optional[AlertCenter] = None,
                 navigation: Optional[NavigationState] = None):
        self.session = session
        self.service = service
        self.capabilities: DeviceCapabilities = probe(host or host_from_env())
        self.alerts = alerts or AlertCenter()
        self.navigation = navigation or NavigationState()
        self.scheduler = LocalScheduler(sender, lambda: self.device_token)
        self.dispatcher = ChannelDispatcher(self.capabilities, self.scheduler, self.alerts, store, self.navigation,
                                            token_provider=lambda: self.device_token)
        self.reconciler = HistoryReconciler(service, self.dispatcher, self._set_notifications)

        self.notifications: List[NotificationEvent] = []
        self.settings = NotificationSettings()
        self.device_token: Optional[str] = None
        self.loading = False
        self.error: Optional[str] = None
        self.initialized = False

        session.add_listener(self.on_auth_change)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.is_read)

    async def on_auth_change(self, is_authenticated: bool) -> None:
        if is_authenticated:
            logger.info("Authentication state changed to authenticated, initializing notifications")
            await self.initialize()
            await self.load_settings()
            await self.load_history()
        else:
            await self.reset()

    async def initialize(self, device_token: Optional[str] = None) -> None:
        if self.initialized:
            return
        try:
            token = device_token or config.DEVICE_PUSH_TOKEN
            if self.capabilities.push_notifications_available and token:
                self.device_token = token
                self.capabilities = self.capabilities.with_token(token)
                await self.register_device(token)
            else:
                logger.info("Skipping push notification registration (sandboxed host, emulator or no token)")
            self.initialized = True
            logger.info("Notifications initialized successfully")
        except Exception as e:
            logger.error(f"Error initializing notifications: {e}", exc_info=True)
            self.error = str(e)

    async def register_device(self, token: str) -> bool:
        try:
            response = await self.service.register_device(DeviceRegistration(device_token=token))
            if not response.success:
                raise ApiError(response.error or "Failed to register device", 200)
            return True
        except ApiError as e:
            logger.error(f"Error registering device: {e.message}")
            return False

    async def load_settings(self) -> None:
        try:
            response = await self.service.get_settings()
        except ApiError as e:
            logger.error(f"Error loading notification settings: {e.message}")
            return
        if response.success and response.data:
            raw = response.data.get("settings", response.data) if isinstance(response.data, dict) else None
            if raw:
                try:
                    self.settings = NotificationSettings.model_validate(raw)
                except ValidationError as e:
                    logger.error(f"Ignoring malformed notification settings: {e}")

    async def update_settings(self, update: NotificationSettingsUpdate) -> Dict[str, Union[bool, str]]:
        self.loading = True
        self.error = None
        try:
            new_settings = update.apply_to(self.settings)
            response = await self.service.update_settings(new_settings)
            if not response.success:
                raise ApiError(response.error or "Failed to update settings", 200)
            self.settings = new_settings
            return {"success": True}
        except ApiError as e:
            self.error = e.message
            return {"success": False, "error": e.message}
        finally:
            self.loading = False

    async def load_history(self) -> ReconcileResult:
        self.loading = True
        try:
            return await self.reconciler.reconcile()
        finally:
            self.loading = False

    refresh = load_history

    def _set_notifications(self, events: List[NotificationEvent]) -> None:
        self.notifications = events

    def is_in_quiet_hours(self, now: Optional[Union[datetime, time]] = None) -> bool:
        return is_quiet(now or datetime.now(), self.settings)

    async def schedule_local_notification(self, title: str, body: str, data: Optional[Dict[str, str]] = None,
                                          trigger: Trigger = None, channel_id: str = GENERAL.id,
                                          notification_type: str = NotificationType.GENERAL.value) -> str:
        event = NotificationEvent(id=f"local-{notification_type}", type=notification_type,
                                  title=title, body=body, data=data or {})
        return await self.dispatcher.schedule(event, trigger, channel_id)

    def _allowed(self, enabled: bool, fire_time: Union[datetime, time], category: str) -> bool:
        if not enabled:
            logger.info(f"{category} reminders are turned off; not scheduling")
            return False
        if is_quiet(fire_time, self.settings):
            logger.info(f"{category} reminder at {fire_time:%H:%M} falls in quiet hours; not scheduling")
            return False
        return True

    async def schedule_medication_reminder(self, medication: MedicationReminderRequest) -> Optional[str]:
        if not self._allowed(self.settings.medication_reminders, medication.remind_at, "Medication"):
            return None
        try:
            return await self.schedule_local_notification(
                title="Medication Reminder",
                body=f"Time to take {medication.name}" + (f" ({medication.dosage})" if medication.dosage else ""),
                data={
                    "medicationId": medication.medication_id,
                    "scheduledTime": medication.remind_at.isoformat(),
                },
                trigger=DateTrigger(at=medication.remind_at),
                channel_id=MEDICATION.id,
                notification_type=NotificationType.MEDICATION_REMINDER.value,
            )
        except Exception as e:
            logger.error(f"Error scheduling medication reminder: {e}")
            return None

    async def schedule_health_checkin_reminder(self, hour: int = 9, minute: int = 0) -> Optional[str]:
        if not self._allowed(self.settings.health_checkins, time(hour, minute), "Health check-in"):
            return None
        try:
            return await self.schedule_local_notification(
                title="Daily Health Check-in",
                body="How are you feeling today? Take a moment to log your health.",
                trigger=DailyTrigger(hour=hour, minute=minute, repeats=True),
                channel_id=HEALTH.id,
                notification_type=NotificationType.HEALTH_CHECKIN_REMINDER.value,
            )
        except Exception as e:
            logger.error(f"Error scheduling health check-in reminder: {e}")
            return None

    async def schedule_brain_training_reminder(self, hour: int = 15, minute: int = 0) -> Optional[str]:
        if not self._allowed(self.settings.brain_training_reminders, time(hour, minute), "Brain training"):
            return None
        try:
            return await self.schedule_local_notification(
                title="Brain Training Time",
                body="Keep your mind sharp with a quick brain game.",
                trigger=DailyTrigger(hour=hour, minute=minute, repeats=True),
                channel_id=GENERAL.id,
                notification_type=NotificationType.BRAIN_TRAINING_REMINDER.value,
            )
        except Exception as e:
            logger.error(f"Error scheduling brain training reminder: {e}")
            return None

    async def send_emergency_notification(self, request: EmergencyNotificationRequest):
        # Emergency alerts skip the quiet-hours gate.
        event = NotificationEvent(
            id=f"emergency-{datetime.now():%Y%m%d%H%M%S}",
            type=NotificationType.EMERGENCY_ALERT.value,
            title="EMERGENCY ALERT",
            body=request.message or "Emergency situation detected",
            data=request.as_data(),
        )
        await self.dispatcher.present(event)
        try:
            return await self.service.send_emergency_alert(request.model_dump(exclude_none=True))
        except ApiError as e:
            logger.error(f"Error sending emergency notification: {e.message}")
            return None

    async def mark_as_read(self, notification_id: str) -> None:
        self.notifications = [
            n.model_copy(update={"is_read": True}) if n.id == notification_id else n
            for n in self.notifications
        ]
        try:
            await self.service.mark_as_read(notification_id)
        except ApiError as e:
            logger.error(f"Error marking notification as read: {e.message}")

    async def delete_notification(self, notification_id: str) -> bool:
        try:
            response = await self.service.delete_notification(notification_id)
            if not response.success:
                raise ApiError(response.error or "Failed to delete notification", 200)
        except ApiError as e:
            logger.error(f"Error deleting notification {notification_id}: {e.message}")
            self.error = e.message
            return False
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        return True

    async def send_notification(self, request: CustomNotificationRequest) -> Dict[str, Union[bool, str]]:
        try:
            response = await self.service.send_notification(
                request.title, request.body, target_user_id=request.target_user_id, data=request.data)
            if not response.success:
                raise ApiError(response.error or "Failed to send notification", 200)
            return {"success": True}
        except ApiError as e:
            logger.error(f"Error sending custom notification: {e.message}")
            return {"success": False, "error": e.message}

    async def cancel_notification(self, handle: str) -> None:
        await self.dispatcher.cancel(handle)

    async def cancel_all_notifications(self) -> None:
        await self.dispatcher.cancel_all()

    async def get_pending_invitation(self) -> Optional[Dict[str, str]]:
        return await self.dispatcher.get_pending_invitation()

    def clear_error(self) -> None:
        self.error = None

    def notification_info(self) -> dict:
        info = self.capabilities.model_dump(mode="json")
        if self.capabilities.push_notifications_available:
            info["message"] = "Push and local notifications are enabled"
        elif self.capabilities.local_notifications_available:
            info["message"] = "Local notifications are enabled. Push notifications need a physical device."
        else:
            info["message"] = ("In-app alerts only. For push notifications, use a development build "
                               "instead of the sandboxed client.")
        return info

    async def reset(self) -> None:
        logger.info("Session ended, clearing notification state")
        await self.dispatcher.cancel_all()
        self.notifications = []
        self.settings = NotificationSettings()
        self.loading = False
        self.error = None
        self.alerts.clear()
        self.navigation.clear()


def get_notification_center(request: Request) -> NotificationCenter:
    return request.app.state.notification_center
