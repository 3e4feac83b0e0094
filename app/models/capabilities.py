# file: models/capabilities.py

from pydantic import BaseModel, ConfigDict
from typing import Optional
from enum import Enum


class Environment(str, Enum):
    SANDBOXED = "sandboxed"
    PRODUCTION = "production"


class HostInfo(BaseModel):
    app_ownership: Optional[str] = None
    is_device: bool = False
    platform: Optional[str] = None


class DeviceCapabilities(BaseModel):
    push_notifications_available: bool = False
    local_notifications_available: bool = False
    in_app_alerts_available: bool = True
    device_token: Optional[str] = None
    environment: Environment = Environment.SANDBOXED
    platform: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def can_push(self) -> bool:
        return self.environment == Environment.PRODUCTION and self.push_notifications_available

    def with_token(self, token: Optional[str]) -> "DeviceCapabilities":
        return self.model_copy(update={"device_token": token})
