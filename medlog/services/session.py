import logging
from typing import Callable, Optional

from medlog.schemas.log import Identity
from medlog.services.backend import BackendClient, BackendError

logger = logging.getLogger(__name__)


class SessionTracker:
    """
    Keeps track of who is signed in.

    start() resolves the current session and listens for later auth events;
    `on_change` fires only when the user actually changes, so a token
    refresh for the same user is silent.
    """

    def __init__(self, backend: BackendClient, on_change: Callable[[Optional[Identity]], None]):
        self._backend = backend
        self._on_change = on_change
        self._unsubscribe = None
        self._alive = False
        self._event_seen = False
        self.identity: Optional[Identity] = None

    async def start(self):
        self._alive = True
        self._event_seen = False
        self._unsubscribe = self._backend.on_auth_state_change(self._handle_auth_event)

        try:
            identity = await self._backend.get_session()
        except BackendError as exc:
            logger.error(f"Error fetching session: {exc.message}")
            identity = None

        # An auth event that arrived meanwhile is newer than this lookup
        if not self._alive or self._event_seen:
            return
        self._set(identity)

    def stop(self):
        self._alive = False
        # the next start() reports whoever is signed in then as a change
        self.identity = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _handle_auth_event(self, event: str, identity: Optional[Identity]):
        if not self._alive:
            return
        logger.info(f"Auth state changed: {event}")
        self._event_seen = True
        self._set(identity)

    def _set(self, identity: Optional[Identity]):
        previous = self.identity
        self.identity = identity
        if _user_id(previous) != _user_id(identity):
            self._on_change(identity)


def _user_id(identity: Optional[Identity]) -> Optional[str]:
    return identity.id if identity else None
