# file: controllers/session.py

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel
from typing import Optional

from app.services.notification_center import NotificationCenter, get_notification_center

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/session", auto_error=False)


class SessionRequest(BaseModel):
    access_token: str


async def get_current_session(
        token: Optional[str] = Depends(oauth2_scheme),
        center: NotificationCenter = Depends(get_notification_center),
) -> NotificationCenter:
    """
    Required dependency: the bearer token must be the one the active session
    was opened with. Returns the session's notification center.
    """
    if not token or token != center.session.token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return center


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_session(
        request: SessionRequest,
        center: NotificationCenter = Depends(get_notification_center),
):
    """
    Signs the device in with an auth-provider access token. The first sign-in
    loads settings and reconciles notification history.
    """
    try:
        await center.session.sign_in(request.access_token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid access token")
    return {"authenticated": True, "user_id": center.session.user_id}


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(center: NotificationCenter = Depends(get_current_session)):
    await center.session.sign_out()
    return
