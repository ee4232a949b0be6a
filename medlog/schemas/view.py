from pydantic import BaseModel
from typing import List, Optional, Union
from datetime import datetime


class MedicationButton(BaseModel):
    id: str
    label: str
    icon: str = "pill"


class EntryView(BaseModel):
    id: Union[str, int]
    content: str
    icon: str  # "pill" or "note"
    emphasized: bool
    created_at: datetime
    created_at_display: str


class ScrollMarker(BaseModel):
    """Marker at the end of the list; a new revision means scroll to it."""
    id: str = "notes-end"
    behavior: str = "smooth"
    revision: int = 0


class LogView(BaseModel):
    signed_in: bool
    prompt: Optional[str] = None
    title: Optional[str] = None

    # Administration buttons
    buttons_heading: Optional[str] = None
    buttons: List[MedicationButton] = []

    # Entry list and its banners
    entries: List[EntryView] = []
    loading_message: Optional[str] = None
    error_message: Optional[str] = None
    empty_message: Optional[str] = None
    scroll_marker: Optional[ScrollMarker] = None

    # Add-note form
    draft: str = ""
    placeholder: str = "Add a custom note..."
    submit_label: str = "Add Note"
    submit_enabled: bool = False
