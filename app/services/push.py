# file: app/services/push.py

import httpx
import logging
import firebase_admin
from firebase_admin import credentials, messaging
from typing import Optional

from app import config
from app.models.notification import NotificationContent
from app.services.channels import channel_by_id

logger = logging.getLogger(__name__)


class ExpoPushSender:
    """Sends a push notification to a device via Expo's Push API."""

    def __init__(self, push_url: str = config.EXPO_PUSH_URL, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.push_url = push_url
        self._transport = transport

    async def send(self, token: str, content: NotificationContent, channel_id: str) -> bool:
        headers = {
            'Accept': 'application/json',
            'Accept-Encoding': 'gzip, deflate',
            'Content-Type': 'application/json',
        }
        payload = {
            'to': token,
            'sound': content.sound,
            'title': content.title,
            'body': content.body,
            'data': content.data,
            'channelId': channel_id,
        }

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.post(self.push_url, json=payload, headers=headers)
                response.raise_for_status()
                logger.info(f"Sent '{content.title}' via Expo on channel {channel_id}")
                return True
            except httpx.HTTPStatusError as e:
                logger.error(f"Expo push rejected with {e.response.status_code}: {e.response.text}")
            except httpx.RequestError as e:
                logger.error(f"Error requesting Expo's push service: {e}")
        return False


class FcmPushSender:
    """Sends a push notification through Firebase Cloud Messaging."""

    def __init__(self, credentials_path: str = config.FIREBASE_CREDENTIALS):
        if not firebase_admin._apps:
            cred = credentials.Certificate(credentials_path)
            firebase_admin.initialize_app(cred)
            logger.info("Firebase Admin SDK initialized for push delivery.")

    async def send(self, token: str, content: NotificationContent, channel_id: str) -> bool:
        channel = channel_by_id(channel_id)
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=content.title, body=content.body),
            data=content.data,
            android=messaging.AndroidConfig(
                priority="high" if channel.importance in ("high", "max") else "normal",
                notification=messaging.AndroidNotification(channel_id=channel.id, sound=content.sound),
            ),
        )
        try:
            response = messaging.send(message)
            logger.info(f"Notification sent via FCM: {response}")
            return True
        except Exception as e:
            logger.error(f"Error sending FCM notification: {str(e)}")
            return False


def build_push_sender(provider: str = config.PUSH_PROVIDER):
    if provider == "fcm":
        return FcmPushSender()
    return ExpoPushSender()
