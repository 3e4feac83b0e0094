# file: app/services/navigation.py

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NavigationIntent(BaseModel):
    route: str
    params: Dict[str, str] = Field(default_factory=dict)


class NavigationState:
    """
    Navigation requests raised by notification actions, held until the UI
    drains them. Replaces process-wide navigation flags.
    """

    def __init__(self, family_tab_name: str = "Family"):
        self.family_tab_name = family_tab_name
        self._pending: List[NavigationIntent] = []

    def navigate(self, route: str, params: Optional[Dict[str, str]] = None) -> bool:
        self._pending.append(NavigationIntent(route=route, params=params or {}))
        logger.info(f"Queued navigation to {route}")
        return True

    def navigate_to_tab(self, tab_name: str) -> bool:
        return self.navigate("Tab", {"tab": tab_name})

    def navigate_to_family_management(self) -> bool:
        return self.navigate("FamilyManagement")

    def navigate_to_invite_acceptance(self, invitation_id: Optional[str], data: Dict[str, str]) -> bool:
        if not invitation_id:
            return False
        return self.navigate("InviteAcceptance", {**data, "invitation_id": invitation_id})

    def drain(self) -> List[NavigationIntent]:
        pending, self._pending = self._pending, []
        return pending

    def clear(self) -> None:
        self._pending = []
