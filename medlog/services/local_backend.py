"""
BackendClient kept entirely in-process.

Rows are stored through SQLAlchemy, the signed-in user is whatever was last
passed to sign_in(), and inserts are pushed to matching channels as soon as
they are committed. Serves BACKEND_MODE=local and the test suite.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from medlog.models.note import NoteRow
from medlog.schemas.log import Identity
from medlog.services.backend import (
    AuthCallback, BackendClient, BackendError, InsertCallback, Row,
)

logger = logging.getLogger(__name__)

COLUMNS = {column.name for column in NoteRow.__table__.columns}


@dataclass(eq=False)
class LocalChannel:
    table: str
    column: str
    value: str
    callback: InsertCallback

    def matches(self, table: str, record: Row) -> bool:
        return table == self.table and record.get(self.column) == self.value


class LocalBackend(BackendClient):

    def __init__(self, session_factory, identity: Optional[Identity] = None):
        self._session_factory = session_factory
        self._identity = identity
        self._auth_listeners: List[AuthCallback] = []
        self.channels: List[LocalChannel] = []

    # --- Auth ---
    async def get_session(self) -> Optional[Identity]:
        return self._identity

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        self._auth_listeners.append(callback)

        def unsubscribe():
            if callback in self._auth_listeners:
                self._auth_listeners.remove(callback)

        return unsubscribe

    def sign_in(self, user_id: str, email: Optional[str] = None) -> Identity:
        self._identity = Identity(id=user_id, email=email)
        self._notify_auth("SIGNED_IN")
        return self._identity

    def sign_out(self) -> None:
        self._identity = None
        self._notify_auth("SIGNED_OUT")

    def refresh_token(self) -> None:
        self._notify_auth("TOKEN_REFRESHED")

    def _notify_auth(self, event: str):
        logger.info(f"Auth event {event} for {self._identity.id if self._identity else 'nobody'}")
        for callback in list(self._auth_listeners):
            callback(event, self._identity)

    # --- Query / Insert ---
    def _check(self, table: str, columns):
        if table != NoteRow.__tablename__:
            raise BackendError(f'relation "{table}" does not exist')
        unknown = set(columns) - COLUMNS
        if unknown:
            raise BackendError(f"unknown column(s) on {table}: {', '.join(sorted(unknown))}")

    async def select(self, table: str, column: str, value: str, order_by: str) -> List[Row]:
        self._check(table, [column, order_by])
        try:
            with self._session_factory() as db:
                rows = db.query(NoteRow)\
                    .filter(getattr(NoteRow, column) == value)\
                    .order_by(getattr(NoteRow, order_by).asc())\
                    .all()
                return [row.to_dict() for row in rows]
        except SQLAlchemyError as exc:
            raise BackendError(str(exc)) from exc

    async def insert(self, table: str, row: Row) -> None:
        self._check(table, row.keys())
        values = dict(row)
        values.setdefault("id", str(uuid.uuid4()))
        try:
            with self._session_factory() as db:
                new_row = NoteRow(**values)
                db.add(new_row)
                db.commit()
                record = new_row.to_dict()
        except SQLAlchemyError as exc:
            raise BackendError(str(exc)) from exc

        logger.info(f"Inserted {table} row {record['id']} for {record['user_id']}")
        self._fan_out(table, record)

    def _fan_out(self, table: str, record: Row):
        for channel in list(self.channels):
            if not channel.matches(table, record):
                continue
            try:
                channel.callback(dict(record))
            except Exception:
                # one broken subscriber must not fail the insert
                logger.exception(f"Insert listener on {table} raised")

    # --- Realtime ---
    async def subscribe_inserts(self, table: str, column: str, value: str,
                                callback: InsertCallback) -> LocalChannel:
        self._check(table, [column])
        channel = LocalChannel(table=table, column=column, value=value, callback=callback)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel: LocalChannel) -> None:
        if channel in self.channels:
            self.channels.remove(channel)
