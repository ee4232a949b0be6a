"""
The hosted backend the log talks to, seen from the component's side.

Auth, queries, inserts and realtime channels all go through a BackendClient
handed to the component at construction. Every failure is raised as a
BackendError carrying a human readable message.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from medlog.schemas.log import Identity

Row = Dict[str, Any]
AuthCallback = Callable[[str, Optional[Identity]], None]
InsertCallback = Callable[[Row], None]


class BackendError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendClient(ABC):

    # --- Auth ---
    @abstractmethod
    async def get_session(self) -> Optional[Identity]:
        """Identity of the current session, or None when signed out."""

    @abstractmethod
    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Call `callback(event, identity)` on every auth transition.

        Returns a function that removes the registration.
        """

    # --- Query / Insert ---
    @abstractmethod
    async def select(self, table: str, column: str, value: str, order_by: str) -> List[Row]:
        """Rows of `table` where `column == value`, ascending by `order_by`."""

    @abstractmethod
    async def insert(self, table: str, row: Row) -> None:
        ...

    # --- Realtime ---
    @abstractmethod
    async def subscribe_inserts(self, table: str, column: str, value: str,
                                callback: InsertCallback) -> Any:
        """Open a channel delivering rows inserted into `table` with `column == value`."""

    @abstractmethod
    async def remove_channel(self, channel: Any) -> None:
        ...
