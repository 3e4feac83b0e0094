# file: controllers/alerts.py

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from app.controllers.session import get_current_session
from app.models.alert import Alert, AlertResponse
from app.services.alerts import AlertNotFound
from app.services.navigation import NavigationIntent
from app.services.notification_center import NotificationCenter

router = APIRouter()


@router.get("/alerts", response_model=List[Alert])
async def get_pending_alerts(center: NotificationCenter = Depends(get_current_session)):
    """
    In-app alerts waiting to be shown, oldest first.
    """
    return center.alerts.pending()


@router.post("/alerts/{alert_id}/respond", status_code=status.HTTP_204_NO_CONTENT)
async def respond_to_alert(
        alert_id: str,
        response: AlertResponse,
        center: NotificationCenter = Depends(get_current_session),
):
    try:
        await center.alerts.respond(alert_id, response.button)
    except AlertNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return


@router.get("/navigation/pending", response_model=List[NavigationIntent])
async def drain_navigation(center: NotificationCenter = Depends(get_current_session)):
    """
    Navigation requested by alert actions since the last call.
    """
    return center.navigation.drain()
