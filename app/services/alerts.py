# file: app/services/alerts.py

import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from app.models.alert import Alert, AlertButton

logger = logging.getLogger(__name__)

AlertAction = Callable[[], Awaitable[None]]


class AlertNotFound(Exception):
    pass


class AlertCenter:
    """In-app alerts waiting for the UI to show them and for the user to answer."""

    def __init__(self):
        self._alerts: Dict[str, Alert] = {}
        self._actions: Dict[Tuple[str, str], AlertAction] = {}

    def show(self, title: str, body: str,
             buttons: Optional[List[Tuple[AlertButton, Optional[AlertAction]]]] = None,
             blocking: bool = False, notification_type: Optional[str] = None) -> Alert:
        buttons = buttons or [(AlertButton(label="OK"), None)]
        alert = Alert(
            id=uuid.uuid4().hex,
            title=title,
            body=body,
            buttons=[button for button, _ in buttons],
            blocking=blocking,
            notification_type=notification_type,
        )
        self._alerts[alert.id] = alert
        for button, action in buttons:
            if action is not None:
                self._actions[(alert.id, button.label)] = action
        logger.info(f"Showing in-app alert '{title}'")
        return alert

    def pending(self) -> List[Alert]:
        return sorted(self._alerts.values(), key=lambda a: a.created_at)

    async def respond(self, alert_id: str, label: str) -> None:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFound(alert_id)
        if label not in {b.label for b in alert.buttons}:
            raise ValueError(f"Alert {alert_id} has no button '{label}'")

        del self._alerts[alert_id]
        action = self._actions.pop((alert_id, label), None)
        for button in alert.buttons:
            self._actions.pop((alert_id, button.label), None)
        if action is not None:
            await action()

    def clear(self) -> None:
        self._alerts.clear()
        self._actions.clear()
