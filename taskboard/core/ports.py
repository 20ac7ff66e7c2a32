"""
Ports (interfaces) for the collaborators the workflow engine depends on.

Services receive these as arguments so the directory and the notification
channel can be swapped (database-backed in production, fakes in tests).
"""

from typing import Any, Dict, List, Protocol


class TeamDirectory(Protocol):
    def list_approved_identities_by_team(self, team: str) -> List[str]: ...

    def is_registered(self, identity: str) -> bool: ...


class Notifier(Protocol):
    """Fire-and-forget notification channel. Delivery is not our concern."""

    def notify(self, identity: str, kind: str, payload: Dict[str, Any]) -> None: ...
