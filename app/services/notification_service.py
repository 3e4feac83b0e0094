# file: app/services/notification_service.py

from typing import Any, Optional

from pydantic import ValidationError

from app.models.notification import (
    ApiEnvelope, DeviceRegistration, NotificationSettings,
)
from app.services.api_client import ApiClient, ApiError, UNEXPECTED_ERROR_STATUS


def to_envelope(body: Any) -> ApiEnvelope:
    """Reads the `{success, data, error}` wrapper; anything else is an unexpected-response error."""
    if not isinstance(body, dict):
        raise ApiError("Unexpected response from server", UNEXPECTED_ERROR_STATUS, body)
    try:
        return ApiEnvelope.model_validate(body)
    except ValidationError as e:
        raise ApiError("Unexpected response from server", UNEXPECTED_ERROR_STATUS, body) from e


class NotificationService:
    """Thin wrappers over the backend's notification and emergency endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def register_device(self, registration: DeviceRegistration) -> ApiEnvelope:
        body = await self.client.post("/api/notifications/register-device", json=registration.model_dump())
        return to_envelope(body)

    async def send_notification(self, title: str, body: str, target_user_id: Optional[str] = None,
                                data: Optional[dict] = None) -> ApiEnvelope:
        payload = {"title": title, "body": body, "data": data or {}}
        if target_user_id:
            payload["target_user_id"] = target_user_id
        response = await self.client.post("/api/notifications/send-custom", json=payload)
        return to_envelope(response)

    async def get_history(self, limit: Optional[int] = None) -> ApiEnvelope:
        params = {"limit": limit} if limit else None
        body = await self.client.get("/api/notifications/history", params=params)
        return to_envelope(body)

    async def get_settings(self) -> ApiEnvelope:
        body = await self.client.get("/api/notifications/settings")
        return to_envelope(body)

    async def update_settings(self, settings: NotificationSettings) -> ApiEnvelope:
        body = await self.client.put("/api/notifications/settings", json={"settings": settings.to_backend()})
        return to_envelope(body)

    async def mark_as_read(self, notification_id: str) -> ApiEnvelope:
        body = await self.client.put(f"/api/notifications/{notification_id}/read")
        return to_envelope(body)

    async def delete_notification(self, notification_id: str) -> ApiEnvelope:
        body = await self.client.delete(f"/api/notifications/{notification_id}")
        return to_envelope(body)

    async def send_emergency_alert(self, alert_data: dict) -> ApiEnvelope:
        body = await self.client.post("/api/emergency/alert", json=alert_data)
        return to_envelope(body)
