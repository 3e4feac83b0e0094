# file: models/alert.py

from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime


class AlertButton(BaseModel):
    label: str
    action: Optional[str] = None
    style: Literal["default", "cancel", "destructive"] = "default"


class Alert(BaseModel):
    id: str
    title: str
    body: str
    buttons: List[AlertButton] = Field(default_factory=list)
    blocking: bool = False
    notification_type: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class AlertResponse(BaseModel):
    button: str
