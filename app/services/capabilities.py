# file: app/services/capabilities.py

import logging

from app import config
from app.models.capabilities import DeviceCapabilities, Environment, HostInfo

logger = logging.getLogger(__name__)

SANDBOX_OWNERSHIP = "expo"
INSTALLED_OWNERSHIPS = {"standalone", "guest", None}
MOBILE_PLATFORMS = {"android", "ios"}


def host_from_env() -> HostInfo:
    return HostInfo(
        app_ownership=config.APP_OWNERSHIP or None,
        is_device=config.DEVICE_IS_PHYSICAL,
        platform=config.DEVICE_PLATFORM,
    )


def probe(host: HostInfo) -> DeviceCapabilities:
    """
    Derives the usable notification channels from install provenance and
    device class. Anything ambiguous degrades to in-app alerts only.
    """
    platform = (host.platform or "").lower() or None
    ownership = (host.app_ownership or "").lower() or None

    if ownership == SANDBOX_OWNERSHIP:
        capabilities = DeviceCapabilities(environment=Environment.SANDBOXED, platform=platform)
    elif ownership in INSTALLED_OWNERSHIPS and platform in MOBILE_PLATFORMS:
        capabilities = DeviceCapabilities(
            push_notifications_available=host.is_device,
            local_notifications_available=True,
            environment=Environment.PRODUCTION,
            platform=platform,
        )
    elif ownership in INSTALLED_OWNERSHIPS and platform == "web":
        capabilities = DeviceCapabilities(environment=Environment.PRODUCTION, platform=platform)
    else:
        capabilities = DeviceCapabilities(environment=Environment.SANDBOXED, platform=platform)

    logger.info(f"Notification capabilities for {ownership or 'unknown'}/{platform or 'unknown'}: "
                f"push={capabilities.push_notifications_available}, "
                f"local={capabilities.local_notifications_available}, "
                f"environment={capabilities.environment.value}")
    return capabilities
