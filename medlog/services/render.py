"""
Turns the component state into the view model the client draws.

render() is a pure function of (state, medications). LiveView is the
observer that calls it whenever the component reports a change.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from medlog.schemas.log import LogEntry, Medication
from medlog.schemas.view import EntryView, LogView, MedicationButton, ScrollMarker
from medlog.services.logger import LoggerState, MedicationLogger

logger = logging.getLogger(__name__)

TITLE = "Medication & Note Log"
SIGN_IN_PROMPT = "Please sign in to view and add notes."
BUTTONS_HEADING = "Log Administration:"
LOADING_MESSAGE = "Loading notes..."
EMPTY_MESSAGE = "No notes yet. Add one below!"


def format_timestamp(value: datetime) -> str:
    # e.g. "03/14/2024, 09:26:53 AM"
    return value.strftime("%m/%d/%Y, %I:%M:%S %p")


def render_entry(entry: LogEntry) -> EntryView:
    return EntryView(
        id=entry.id,
        content=entry.content,
        icon="pill" if entry.is_administration else "note",
        emphasized=entry.is_administration,
        created_at=entry.created_at,
        created_at_display=format_timestamp(entry.created_at),
    )


def render(state: LoggerState, medications: Sequence[Medication] = ()) -> LogView:
    if state.identity is None:
        return LogView(signed_in=False, prompt=SIGN_IN_PROMPT)

    return LogView(
        signed_in=True,
        title=TITLE,
        buttons_heading=BUTTONS_HEADING if medications else None,
        buttons=[MedicationButton(id=m.id, label=m.name) for m in medications],
        entries=[render_entry(entry) for entry in state.entries],
        loading_message=LOADING_MESSAGE if state.loading else None,
        error_message=f"Error: {state.error}" if state.error else None,
        empty_message=EMPTY_MESSAGE if not state.loading and not state.entries else None,
        scroll_marker=ScrollMarker(revision=state.revision),
        draft=state.draft,
        submit_enabled=state.draft.strip() != "",
    )


class LiveView:
    """Holds the latest rendered view of a MedicationLogger."""

    def __init__(self, component: MedicationLogger):
        self._component = component
        self.renders = 0
        self.view = render(component.state, component.medications)
        self._unsubscribe: Optional[Callable[[], None]] = component.subscribe(self._on_change)

    def _on_change(self, state: LoggerState):
        self.view = render(state, self._component.medications)
        self.renders += 1

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
