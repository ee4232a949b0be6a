"""
The medication & note log component.

Owns the visible list of entries for the signed-in user:
1. hydrates it with one read when the user changes,
2. writes notes and administration events to the backend,
3. appends rows the backend pushes back over a realtime channel.

Writes never touch the list directly; the pushed insert is what makes a new
entry appear. Every await is followed by a liveness check so that results for
an unmounted component, or for a user who has since signed out, are dropped.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from pydantic import ValidationError

from medlog.schemas.log import Identity, LogEntry, Medication
from medlog.services.backend import BackendClient, BackendError, Row
from medlog.services.session import SessionTracker
from medlog.services.signals import StateEmitter

logger = logging.getLogger(__name__)

# Column scoping rows to their owner; LogEntry reads it as owner_id
OWNER_COLUMN = "user_id"


@dataclass(frozen=True)
class LoggerState:
    identity: Optional[Identity] = None
    entries: Tuple[LogEntry, ...] = field(default_factory=tuple)
    loading: bool = False
    error: Optional[str] = None
    draft: str = ""
    revision: int = 0  # bumped whenever `entries` changes


class MedicationLogger:

    def __init__(self, backend: BackendClient, medications: Sequence[Medication] = (),
                 table: str = "notes"):
        self.backend = backend
        self.medications: List[Medication] = list(medications)
        self.table = table

        self._session = SessionTracker(backend, self._identity_changed)
        self._emitter: StateEmitter[LoggerState] = StateEmitter()

        self._entries: List[LogEntry] = []
        self._loading = False
        self._error: Optional[str] = None
        self._draft = ""
        self._revision = 0

        self._alive = False
        self._generation = 0  # bumped on identity change and unmount
        self._channel: Any = None
        self._tasks: Set[asyncio.Task] = set()

    # --- State & observers ---
    @property
    def identity(self) -> Optional[Identity]:
        return self._session.identity

    @property
    def state(self) -> LoggerState:
        return LoggerState(
            identity=self.identity,
            entries=tuple(self._entries),
            loading=self._loading,
            error=self._error,
            draft=self._draft,
            revision=self._revision,
        )

    def subscribe(self, listener: Callable[[LoggerState], None]) -> Callable[[], None]:
        return self._emitter.subscribe(listener)

    def medication(self, medication_id: str) -> Optional[Medication]:
        return next((m for m in self.medications if m.id == medication_id), None)

    def _changed(self, entries_changed: bool = False):
        if entries_changed:
            self._revision += 1
        self._emitter.emit(self.state)

    def _is_current(self, generation: int) -> bool:
        return self._alive and generation == self._generation

    def _fail(self, action: str, exc: Exception):
        message = exc.message if isinstance(exc, BackendError) else str(exc)
        logger.error(f"Error {action}: {message}")
        self._error = message
        self._changed()

    def _clear_error(self) -> bool:
        # A failed subscription stays visible while the channel is down
        if self._error is None or self._channel is None:
            return False
        self._error = None
        return True

    # --- Lifecycle ---
    async def mount(self):
        self._alive = True
        await self._session.start()

    async def unmount(self):
        self._alive = False
        self._generation += 1
        self._session.stop()
        for task in list(self._tasks):
            task.cancel()
        await self._close_channel()
        self._entries = []
        self._loading = False

    async def wait_idle(self):
        """Wait until the load/subscribe work started by identity changes is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # --- Identity ---
    def _identity_changed(self, identity: Optional[Identity]):
        self._generation += 1
        logger.info(f"Showing log for {identity.id if identity else 'no user'}")

        # The previous user's entries and error never carry over
        self._entries = []
        self._error = None
        self._loading = identity is not None
        self._changed(entries_changed=True)

        self._spawn(self._attach(identity, self._generation))

    async def _attach(self, identity: Optional[Identity], generation: int):
        await self._close_channel()
        if identity is None or not self._is_current(generation):
            return
        await self._open_channel(identity, generation)
        await self._load(identity, generation)

    # --- Live merge ---
    async def _open_channel(self, identity: Identity, generation: int):
        try:
            channel = await self.backend.subscribe_inserts(
                self.table, OWNER_COLUMN, identity.id,
                lambda row: self._merge(row, generation),
            )
        except BackendError as exc:
            if self._is_current(generation):
                self._fail("subscribing to notes", exc)
            return

        if not self._is_current(generation):
            await self._remove_channel(channel)
            return
        self._channel = channel

    async def _close_channel(self):
        channel, self._channel = self._channel, None
        if channel is not None:
            await self._remove_channel(channel)

    async def _remove_channel(self, channel):
        try:
            await self.backend.remove_channel(channel)
        except BackendError as exc:
            logger.error(f"Error closing notes channel: {exc.message}")

    def _merge(self, row: Row, generation: int):
        if not self._is_current(generation):
            return
        try:
            entry = LogEntry.model_validate(row)
        except ValidationError as exc:
            logger.warning(f"Ignoring malformed pushed row: {exc}")
            return

        identity = self.identity
        if identity is None or entry.owner_id != identity.id:
            return
        if any(existing.id == entry.id for existing in self._entries):
            logger.debug(f"Entry {entry.id} already shown")
            return

        self._entries.append(entry)
        self._changed(entries_changed=True)

    # --- Record store ---
    async def _load(self, identity: Identity, generation: int):
        self._loading = True
        self._changed()
        try:
            rows = await self.backend.select(
                self.table, OWNER_COLUMN, identity.id, "created_at"
            )
            entries = [LogEntry.model_validate(row) for row in rows]
        except (BackendError, ValidationError) as exc:
            if self._is_current(generation):
                self._loading = False
                self._fail("fetching notes", exc)
            return

        if not self._is_current(generation):
            return

        # Keep rows pushed while the read was in flight
        loaded_ids = {entry.id for entry in entries}
        pushed = [entry for entry in self._entries if entry.id not in loaded_ids]

        self._entries = entries + pushed
        self._loading = False
        self._clear_error()
        logger.info(f"Loaded {len(entries)} entries for {identity.id}")
        self._changed(entries_changed=True)

    # --- Write path ---
    def set_draft(self, text: str):
        if not self._alive:
            return
        self._draft = text
        self._changed()

    async def submit(self):
        if await self.add_note(self._draft) and self._alive:
            self._draft = ""
            self._changed()

    async def add_note(self, text: str) -> bool:
        """Insert a free note. Returns True when the backend accepted it."""
        identity = self.identity
        if text.strip() == "" or identity is None or not self._alive:
            return False

        generation = self._generation
        try:
            await self.backend.insert(self.table, {
                "content": text,
                OWNER_COLUMN: identity.id,
                "is_administration": False,
            })
        except BackendError as exc:
            if self._is_current(generation):
                self._fail("adding note", exc)
            return False

        if self._is_current(generation) and self._clear_error():
            self._changed()
        return True

    async def administer(self, medication_name: str):
        identity = self.identity
        if identity is None or not self._alive:
            return

        generation = self._generation
        try:
            await self.backend.insert(self.table, {
                "content": f"Administered {medication_name}.",
                "medication_name": medication_name,
                OWNER_COLUMN: identity.id,
                "is_administration": True,
            })
        except BackendError as exc:
            if self._is_current(generation):
                self._fail("logging medication", exc)
            return

        if self._is_current(generation) and self._clear_error():
            self._changed()
