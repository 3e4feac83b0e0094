# file: controllers/notification.py

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from app.models.capabilities import DeviceCapabilities
from app.models.notification import (
    CustomNotificationRequest, DailyReminderRequest, EmergencyNotificationRequest, MedicationReminderRequest,
    NotificationEvent, NotificationSettings, NotificationSettingsUpdate,
)
from app.controllers.session import get_current_session
from app.services.notification_center import NotificationCenter
from app.services.reconciler import ReconcileResult

router = APIRouter()


@router.get("/", response_model=List[NotificationEvent])
async def get_notifications(center: NotificationCenter = Depends(get_current_session)):
    """
    Returns the cached notification history, newest first.
    """
    return center.notifications


@router.post("/refresh", response_model=ReconcileResult)
async def refresh_notifications(center: NotificationCenter = Depends(get_current_session)):
    """
    Re-fetches history from the server and presents anything unread. Joins a
    refresh that is already running.
    """
    return await center.refresh()


@router.get("/settings", response_model=NotificationSettings)
async def get_settings(center: NotificationCenter = Depends(get_current_session)):
    return center.settings


@router.put("/settings", response_model=NotificationSettings)
async def update_settings(
        update: NotificationSettingsUpdate,
        center: NotificationCenter = Depends(get_current_session),
):
    try:
        result = await center.update_settings(update)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if not result["success"]:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result["error"])
    return center.settings


@router.put("/{notification_id}/read", response_model=NotificationEvent)
async def mark_notification_as_read(
        notification_id: str,
        center: NotificationCenter = Depends(get_current_session),
):
    """
    Marks a cached notification as read locally and on the server.
    """
    if not any(n.id == notification_id for n in center.notifications):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    await center.mark_as_read(notification_id)
    return next(n for n in center.notifications if n.id == notification_id)


@router.get("/capabilities", response_model=DeviceCapabilities)
async def get_capabilities(center: NotificationCenter = Depends(get_current_session)):
    return center.capabilities


@router.get("/info")
async def get_notification_info(center: NotificationCenter = Depends(get_current_session)):
    return center.notification_info()


@router.get("/quiet-hours")
async def get_quiet_hours(center: NotificationCenter = Depends(get_current_session)):
    return {"quiet": center.is_in_quiet_hours(), "quiet_hours": center.settings.quiet_hours}


@router.get("/pending-invitation")
async def get_pending_invitation(center: NotificationCenter = Depends(get_current_session)):
    """
    Returns the invitation the user deferred with "Later" and clears it.
    """
    return {"invitation": await center.get_pending_invitation()}


@router.post("/emergency")
async def send_emergency_notification(
        request: EmergencyNotificationRequest,
        center: NotificationCenter = Depends(get_current_session),
):
    response = await center.send_emergency_notification(request)
    return {"delivered_to_backend": bool(response and response.success)}


@router.post("/reminders/medication", status_code=status.HTTP_201_CREATED)
async def schedule_medication_reminder(
        request: MedicationReminderRequest,
        center: NotificationCenter = Depends(get_current_session),
):
    return {"handle": await center.schedule_medication_reminder(request)}


@router.post("/reminders/health-checkin", status_code=status.HTTP_201_CREATED)
async def schedule_health_checkin_reminder(
        request: Optional[DailyReminderRequest] = None,
        center: NotificationCenter = Depends(get_current_session),
):
    request = request or DailyReminderRequest()
    return {"handle": await center.schedule_health_checkin_reminder(request.hour, request.minute)}


@router.post("/reminders/brain-training", status_code=status.HTTP_201_CREATED)
async def schedule_brain_training_reminder(
        request: DailyReminderRequest,
        center: NotificationCenter = Depends(get_current_session),
):
    return {"handle": await center.schedule_brain_training_reminder(request.hour, request.minute)}


@router.delete("/scheduled/{handle}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_notification(handle: str, center: NotificationCenter = Depends(get_current_session)):
    await center.cancel_notification(handle)
    return


@router.delete("/scheduled", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_all_notifications(center: NotificationCenter = Depends(get_current_session)):
    await center.cancel_all_notifications()
    return


@router.post("/send", status_code=status.HTTP_201_CREATED)
async def send_custom_notification(
        request: CustomNotificationRequest,
        center: NotificationCenter = Depends(get_current_session),
):
    """
    Asks the backend to push a custom notification, to another user when
    `target_user_id` is set.
    """
    result = await center.send_notification(request)
    if not result["success"]:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result["error"])
    return {"sent": True}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: str, center: NotificationCenter = Depends(get_current_session)):
    if not any(n.id == notification_id for n in center.notifications):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if not await center.delete_notification(notification_id):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=center.error)
    return
