# file: app/services/dispatcher.py

import logging
from typing import Callable, Dict, Optional

from app.config import PENDING_INVITATION_KEY
from app.models.alert import AlertButton
from app.models.capabilities import DeviceCapabilities
from app.models.notification import NotificationContent, NotificationEvent, NotificationType, Trigger
from app.services.alerts import AlertCenter
from app.services.channels import channel_for
from app.services.kv_store import KeyValueStore
from app.services.local_scheduler import LocalScheduler
from app.services.navigation import NavigationState

logger = logging.getLogger(__name__)

# Returned when local scheduling is unavailable on the host.
SANDBOX_SCHEDULE_HANDLE = "sandbox-local-notification"


class ChannelDispatcher:
    """
    Picks the delivery channel for a notification: system notification when
    push works, otherwise an in-app alert shaped by the notification type.
    """

    def __init__(self, capabilities: DeviceCapabilities, scheduler: LocalScheduler, alerts: AlertCenter,
                 store: KeyValueStore, navigation: NavigationState,
                 token_provider: Optional[Callable[[], Optional[str]]] = None):
        self.capabilities = capabilities
        self.scheduler = scheduler
        self.alerts = alerts
        self.store = store
        self.navigation = navigation
        self.token_provider = token_provider or (lambda: self.capabilities.device_token)

    @property
    def push_ready(self) -> bool:
        """Push is only usable once a device token has been registered."""
        return self.capabilities.can_push and bool(self.token_provider())

    async def present(self, event: NotificationEvent) -> None:
        try:
            if self.push_ready:
                channel = channel_for(event.type)
                await self.scheduler.schedule(self._content(event), None, channel.id)
                logger.info(f"Presented system notification: {event.title}")
            elif event.type == NotificationType.FAMILY_INVITATION.value:
                self._show_invitation_alert(event)
            elif event.type == NotificationType.EMERGENCY_ALERT.value:
                self._show_emergency_alert(event)
            else:
                self.alerts.show(event.title, event.body, notification_type=event.type)
        except Exception as e:
            logger.error(f"Error presenting notification '{event.title}': {e}", exc_info=True)
            self.alerts.show(event.title, event.body)

    async def schedule(self, event: NotificationEvent, trigger: Trigger, channel_id: Optional[str] = None) -> str:
        if not self.capabilities.local_notifications_available:
            logger.info(f"Local notifications unavailable; not scheduling '{event.title}'")
            return SANDBOX_SCHEDULE_HANDLE

        channel_id = channel_id or channel_for(event.type).id
        try:
            return await self.scheduler.schedule(self._content(event), trigger, channel_id)
        except Exception as e:
            logger.error(f"Error scheduling local notification '{event.title}': {e}")
            raise

    async def cancel(self, handle: str) -> None:
        if handle == SANDBOX_SCHEDULE_HANDLE:
            logger.info("Nothing to cancel for a sandbox notification handle")
            return
        try:
            await self.scheduler.cancel(handle)
            logger.info(f"Canceled notification: {handle}")
        except Exception as e:
            logger.error(f"Error canceling notification {handle}: {e}")

    async def cancel_all(self) -> None:
        try:
            await self.scheduler.cancel_all()
            logger.info("Canceled all scheduled notifications")
        except Exception as e:
            logger.error(f"Error canceling all notifications: {e}")

    async def store_pending_invitation(self, invitation: Dict[str, str]) -> None:
        try:
            await self.store.set(PENDING_INVITATION_KEY, invitation)
            logger.info("Stored pending invitation for later access")
        except Exception as e:
            logger.error(f"Error storing pending invitation: {e}")

    async def get_pending_invitation(self) -> Optional[Dict[str, str]]:
        """Returns the deferred invitation once; later calls return None until another is stored."""
        try:
            invitation = await self.store.get(PENDING_INVITATION_KEY)
            if invitation is None:
                return None
            await self.store.remove(PENDING_INVITATION_KEY)
            return invitation
        except Exception as e:
            logger.error(f"Error getting pending invitation: {e}")
            return None

    @staticmethod
    def _content(event: NotificationEvent) -> NotificationContent:
        return NotificationContent(title=event.title, body=event.body, data=event.payload())

    def _show_invitation_alert(self, event: NotificationEvent) -> None:
        data = event.payload()
        tab_name = self.navigation.family_tab_name

        async def view_invitation():
            invitation_id = data.get("invitation_id") or event.id
            if not self.navigation.navigate_to_invite_acceptance(invitation_id, data):
                logger.info("Invitation screen navigation failed, trying family management")
                self.navigation.navigate_to_family_management()

        async def go_to_family_tab():
            if not self.navigation.navigate_to_family_management():
                await self.store_pending_invitation(data)

        async def later():
            await self.store_pending_invitation(data)

        self.alerts.show(
            event.title or "Family Invitation",
            event.body or "You have a new family invitation",
            buttons=[
                (AlertButton(label="View Invitation", action="view_invitation"), view_invitation),
                (AlertButton(label=f"Go to {tab_name} Tab", action="family_tab"), go_to_family_tab),
                (AlertButton(label="Later", action="later", style="cancel"), later),
            ],
            blocking=True,
            notification_type=event.type,
        )

    def _show_emergency_alert(self, event: NotificationEvent) -> None:
        async def view_emergency():
            if not self.navigation.navigate_to_tab("Emergency"):
                logger.warning("Failed to navigate to Emergency tab")

        self.alerts.show(
            f"🚨 {event.title}",
            event.body,
            buttons=[
                (AlertButton(label="View Emergency", action="view_emergency"), view_emergency),
                (AlertButton(label="OK"), None),
            ],
            blocking=True,
            notification_type=event.type,
        )
