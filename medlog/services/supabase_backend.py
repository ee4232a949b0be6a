"""
BackendClient backed by a hosted Supabase project.

Uses the async client because realtime channels are only available there.
"""

import logging
from typing import Any, Callable, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client
from supabase_auth.errors import AuthError

from medlog.schemas.log import Identity
from medlog.services.backend import (
    AuthCallback, BackendClient, BackendError, InsertCallback, Row,
)

logger = logging.getLogger(__name__)


def _identity_from_session(session) -> Optional[Identity]:
    user = getattr(session, "user", None) if session else None
    if user is None:
        return None
    return Identity(id=str(user.id), email=getattr(user, "email", None))


def _inserted_record(payload: dict) -> Optional[Row]:
    # realtime-py nests the row under data.record; older payloads use "new"
    data = payload.get("data") or {}
    return data.get("record") or payload.get("new")


class SupabaseBackend(BackendClient):

    def __init__(self, client: AsyncClient, schema: str = "public"):
        self.client = client
        self.schema = schema

    @classmethod
    async def connect(cls, url: str, key: str) -> "SupabaseBackend":
        if not url or not key:
            raise BackendError("SUPABASE_URL and SUPABASE_KEY must be set")
        client = await acreate_client(url, key)
        logger.info(f"Connected to Supabase at {url}")
        return cls(client)

    # --- Auth ---
    async def get_session(self) -> Optional[Identity]:
        try:
            session = await self.client.auth.get_session()
        except AuthError as exc:
            raise BackendError(exc.message) from exc
        except httpx.HTTPError as exc:
            raise BackendError(str(exc)) from exc
        return _identity_from_session(session)

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        def relay(event, session):
            callback(str(event), _identity_from_session(session))

        subscription = self.client.auth.on_auth_state_change(relay)
        return subscription.unsubscribe

    # --- Query / Insert ---
    async def select(self, table: str, column: str, value: str, order_by: str) -> List[Row]:
        try:
            response = await (
                self.client.table(table)
                .select("*")
                .eq(column, value)
                .order(order_by, desc=False)
                .execute()
            )
        except APIError as exc:
            raise BackendError(exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise BackendError(str(exc)) from exc
        return list(response.data or [])

    async def insert(self, table: str, row: Row) -> None:
        try:
            await self.client.table(table).insert(row).execute()
        except APIError as exc:
            raise BackendError(exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise BackendError(str(exc)) from exc

    # --- Realtime ---
    async def subscribe_inserts(self, table: str, column: str, value: str,
                                callback: InsertCallback) -> Any:
        def on_insert(payload):
            record = _inserted_record(payload)
            if record is None:
                logger.warning(f"Insert event on {table} without a record: {payload}")
                return
            callback(record)

        channel = self.client.channel(f"{self.schema}:{table}:{value}")
        channel.on_postgres_changes(
            "INSERT",
            callback=on_insert,
            table=table,
            schema=self.schema,
            filter=f"{column}=eq.{value}",
        )
        try:
            await channel.subscribe()
        except Exception as exc:
            # websocket failures come from several libraries below realtime-py
            raise BackendError(f"Realtime subscription failed: {exc}") from exc
        return channel

    async def remove_channel(self, channel: Any) -> None:
        try:
            await self.client.remove_channel(channel)
        except Exception as exc:
            raise BackendError(f"Closing realtime channel failed: {exc}") from exc
