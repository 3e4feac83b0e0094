import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime, timedelta

from pydantic import ValidationError

from app import config
from app.models.capabilities import HostInfo
from app.models.notification import (
    ApiEnvelope, CustomNotificationRequest, DeviceRegistration, EmergencyNotificationRequest,
    MedicationReminderRequest, NotificationEvent, NotificationSettingsUpdate, QuietHoursUpdate,
)
from app.services.api_client import ApiClient, ApiError
from app.services.auth_session import AuthSession
from app.services.kv_store import KeyValueStore
from app.services.notification_center import NotificationCenter
from app.services.notification_service import NotificationService

SANDBOX_HOST = HostInfo(app_ownership="expo", is_device=True, platform="android")
DEVICE_HOST = HostInfo(app_ownership="standalone", is_device=True, platform="android")


# === Test Fixtures ===
@pytest.fixture
def service():
    service = AsyncMock(spec=NotificationService)
    service.get_settings.return_value = ApiEnvelope(success=True, data={"settings": {
        "medication_reminders": True, "health_checkin_reminders": True, "emergency_alerts": True,
        "brain_training_reminders": True, "quiet_hours_enabled": True,
        "quiet_hours_start": "22:00", "quiet_hours_end": "07:00"}})
    service.get_history.return_value = ApiEnvelope(success=True, data={"notifications": [
        {"id": 1, "type": "general", "title": "Welcome", "message": "Hello", "is_read": True}]})
    service.register_device.return_value = ApiEnvelope(success=True)
    service.update_settings.return_value = ApiEnvelope(success=True)
    service.mark_as_read.return_value = ApiEnvelope(success=True)
    service.send_emergency_alert.return_value = ApiEnvelope(success=True)
    return service


@pytest.fixture
def session():
    return AuthSession()


def make_center(session, service, host=SANDBOX_HOST):
    return NotificationCenter(session, service, MagicMock(spec=KeyValueStore), AsyncMock(), host=host)


def tomorrow_at(hour, minute=0):
    return (datetime.now() + timedelta(days=1)).replace(hour=hour, minute=minute, second=0, microsecond=0)


@pytest.mark.asyncio
async def test_sign_in_loads_settings_and_history(session, service):
    center = make_center(session, service)

    await session.sign_in("access-token")

    service.get_settings.assert_awaited_once()
    service.get_history.assert_awaited_once()
    service.register_device.assert_not_called()
    assert center.settings.quiet_hours.enabled is True
    assert [n.id for n in center.notifications] == ["1"]
    assert center.unread_count == 0
    assert center.loading is False


@pytest.mark.asyncio
async def test_device_is_registered_on_installed_build(session, service):
    center = make_center(session, service, host=DEVICE_HOST)

    await center.initialize(device_token="ExponentPushToken[abc]")

    service.register_device.assert_awaited_once_with(DeviceRegistration(device_token="ExponentPushToken[abc]"))
    assert center.device_token == "ExponentPushToken[abc]"
    assert center.capabilities.device_token == "ExponentPushToken[abc]"


@pytest.mark.asyncio
async def test_sign_out_resets_state(session, service):
    center = make_center(session, service)
    await session.sign_in("access-token")

    await session.sign_out()

    assert center.notifications == []
    assert center.settings.quiet_hours.enabled is False


@pytest.mark.asyncio
async def test_update_settings_success(session, service):
    center = make_center(session, service)

    result = await center.update_settings(NotificationSettingsUpdate(
        brain_training_reminders=False, quiet_hours=QuietHoursUpdate(enabled=True, start_time="21:00")))

    assert result == {"success": True}
    assert center.settings.brain_training_reminders is False
    assert center.settings.quiet_hours.start_time == "21:00"
    sent = service.update_settings.call_args.args[0]
    assert sent.to_backend()["quiet_hours_start"] == "21:00"


@pytest.mark.asyncio
async def test_update_settings_failure_is_reported(session, service):
    service.update_settings.side_effect = ApiError("Failed to update notification settings", 500)
    center = make_center(session, service)

    result = await center.update_settings(NotificationSettingsUpdate(medication_reminders=False))

    assert result == {"success": False, "error": "Failed to update notification settings"}
    assert center.settings.medication_reminders is True
    assert center.error == "Failed to update notification settings"


@pytest.mark.asyncio
async def test_medication_reminder_scheduled_outside_quiet_hours(session, service):
    center = make_center(session, service, host=DEVICE_HOST)
    await center.load_settings()

    handle = await center.schedule_medication_reminder(MedicationReminderRequest(
        medication_id="m1", name="Metformin", dosage="500mg", remind_at=tomorrow_at(12)))

    [scheduled] = center.scheduler.pending()
    assert scheduled.id == handle
    assert scheduled.channel_id == "medication-reminders"
    assert scheduled.body == "Time to take Metformin (500mg)"
    assert scheduled.data["type"] == "medication_reminder"
    await center.cancel_all_notifications()


@pytest.mark.asyncio
async def test_medication_reminder_skipped_in_quiet_hours(session, service):
    center = make_center(session, service, host=DEVICE_HOST)
    await center.load_settings()

    handle = await center.schedule_medication_reminder(MedicationReminderRequest(
        medication_id="m1", name="Metformin", remind_at=tomorrow_at(23, 30)))

    assert handle is None
    assert center.scheduler.pending() == []


@pytest.mark.asyncio
async def test_health_checkin_respects_toggle(session, service):
    center = make_center(session, service, host=DEVICE_HOST)
    await center.update_settings(NotificationSettingsUpdate(health_checkins=False))

    assert await center.schedule_health_checkin_reminder() is None
    assert center.scheduler.pending() == []


@pytest.mark.asyncio
async def test_daily_reminders_use_daily_triggers(session, service):
    center = make_center(session, service, host=DEVICE_HOST)

    checkin = await center.schedule_health_checkin_reminder(hour=9)
    brain = await center.schedule_brain_training_reminder(hour=15, minute=30)

    scheduled = {n.id: n for n in center.scheduler.pending()}
    assert scheduled[checkin].trigger.hour == 9
    assert scheduled[checkin].channel_id == "health-checkins"
    assert scheduled[brain].trigger.minute == 30
    assert scheduled[brain].data["type"] == "brain_training_reminder"
    await center.cancel_notification(checkin)
    assert list(center.scheduler.pending()) == [scheduled[brain]]
    await center.cancel_all_notifications()


@pytest.mark.asyncio
async def test_emergency_bypasses_quiet_hours(session, service):
    center = make_center(session, service)
    await center.update_settings(NotificationSettingsUpdate(
        quiet_hours=QuietHoursUpdate(enabled=True, start_time="00:00", end_time="23:59")))
    assert center.is_in_quiet_hours() is True

    response = await center.send_emergency_notification(EmergencyNotificationRequest(message="Fall detected"))

    [alert] = center.alerts.pending()
    assert alert.title == "🚨 EMERGENCY ALERT"
    assert alert.body == "Fall detected"
    assert response.success is True
    service.send_emergency_alert.assert_awaited_once()


@pytest.mark.asyncio
async def test_mark_as_read_updates_cache_even_if_backend_fails(session, service):
    service.mark_as_read.side_effect = ApiError("Network error. Please check your connection.", 0)
    service.get_history.return_value = ApiEnvelope(success=True, data={"notifications": [
        {"id": 7, "type": "weekly_digest", "title": "Digest", "message": "Your week", "is_read": False}]})
    center = make_center(session, service)
    await center.load_history()
    assert center.unread_count == 1

    await center.mark_as_read("7")

    assert center.unread_count == 0
    service.mark_as_read.assert_awaited_once_with("7")


def test_notification_info_in_sandbox(session, service):
    center = make_center(session, service)
    info = center.notification_info()
    assert info["environment"] == "sandboxed"
    assert "development build" in info["message"]


@pytest.mark.asyncio
async def test_presentation_without_registered_token_falls_back_to_alert(session, service, monkeypatch):
    monkeypatch.setattr(config, "DEVICE_PUSH_TOKEN", None)
    sender = AsyncMock()
    center = NotificationCenter(session, service, MagicMock(spec=KeyValueStore), sender, host=DEVICE_HOST)
    await center.initialize()
    assert center.capabilities.can_push is True
    assert center.device_token is None

    await center.dispatcher.present(NotificationEvent(id="e1", type="emergency_alert", title="Help",
                                                      body="Fall detected"))

    [alert] = center.alerts.pending()
    assert alert.title == "🚨 Help"
    assert center.scheduler.pending() == []
    sender.send.assert_not_called()


@patch('app.services.reconciler.asyncio.sleep', new_callable=AsyncMock)
@pytest.mark.asyncio
async def test_empty_backend_responses_are_not_fatal(mock_sleep, session):
    requests = []

    def handler(request):
        requests.append(request.url.path)
        return httpx.Response(204)

    client = ApiClient(session, base_url="http://backend.test", transport=httpx.MockTransport(handler))
    center = make_center(session, NotificationService(client))

    await session.sign_in("access-token")

    assert requests.count("/api/notifications/history") == 3
    assert center.notifications == []
    assert center.loading is False
    result = await center.update_settings(NotificationSettingsUpdate(vibration=False))
    assert result == {"success": False, "error": "Unexpected response from server"}


@pytest.mark.asyncio
async def test_invalid_settings_update_clears_loading(session, service):
    center = make_center(session, service)
    update = NotificationSettingsUpdate.model_construct(
        quiet_hours=QuietHoursUpdate.model_construct(start_time="25:99"))

    with pytest.raises(ValidationError):
        await center.update_settings(update)

    assert center.loading is False
    service.update_settings.assert_not_called()


@pytest.mark.asyncio
async def test_delete_notification_removes_cached_item(session, service):
    service.delete_notification.return_value = ApiEnvelope(success=True)
    center = make_center(session, service)
    await center.load_history()

    assert await center.delete_notification("1") is True

    assert center.notifications == []
    service.delete_notification.assert_awaited_once_with("1")


@pytest.mark.asyncio
async def test_delete_notification_keeps_cache_on_failure(session, service):
    service.delete_notification.side_effect = ApiError("Not found", 404)
    center = make_center(session, service)
    await center.load_history()

    assert await center.delete_notification("1") is False

    assert [n.id for n in center.notifications] == ["1"]
    assert center.error == "Not found"


@pytest.mark.asyncio
async def test_send_custom_notification(session, service):
    service.send_notification.return_value = ApiEnvelope(success=True)
    center = make_center(session, service)

    result = await center.send_notification(CustomNotificationRequest(
        title="Dinner", body="Ready at 6", target_user_id="u-2", data={"kind": "family"}))

    assert result == {"success": True}
    service.send_notification.assert_awaited_once_with(
        "Dinner", "Ready at 6", target_user_id="u-2", data={"kind": "family"})
