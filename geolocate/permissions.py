import logging

from geolocate.models import PermissionKind
from geolocate.service import PermissionService

logger = logging.getLogger(__name__)


class StaticPermissionService(PermissionService):
    """
    Permission service answered from configuration.

    Args:
        granted (bool, optional): Whether permission is granted up front. Defaults to False.
        grant_on_request (bool, optional): Grant on the first request. Defaults to False.
    """

    def __init__(self, granted: bool = False, grant_on_request: bool = False):
        self._granted = set(PermissionKind) if granted else set()
        self._grant_on_request = grant_on_request

    def has_permission(self, kind: PermissionKind) -> bool:
        return kind in self._granted

    def request_permission(self, kind: PermissionKind):
        if self._grant_on_request:
            logger.info(f"Granting {kind} permission on request")
            self._granted.add(kind)
        else:
            logger.info(f"Permission {kind} not granted by configuration")


class RemotePermissionService(PermissionService):
    """
    Permission service answered by a remote operator.

    A request records a pending prompt, the operator answers it with
    `respond`. An answer stays in effect until it is changed.
    """

    def __init__(self):
        self._answers: dict[PermissionKind, bool] = {}
        self._pending: set[PermissionKind] = set()

    @property
    def pending(self) -> list[PermissionKind]:
        return sorted(self._pending, key=lambda kind: kind.value)

    def has_permission(self, kind: PermissionKind) -> bool:
        return self._answers.get(kind, False)

    def request_permission(self, kind: PermissionKind):
        if kind not in self._pending:
            logger.info(f"Waiting for operator to answer {kind} permission")
        self._pending.add(kind)

    def respond(self, kind: PermissionKind, granted: bool):
        self._pending.discard(kind)
        self._answers[kind] = granted
        logger.info(f"Operator {'granted' if granted else 'denied'} {kind} permission")
