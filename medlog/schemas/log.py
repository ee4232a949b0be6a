from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union
from datetime import datetime


class Identity(BaseModel):
    """The signed-in user every read, write and subscription is scoped to."""
    id: str
    email: Optional[str] = None


class Medication(BaseModel):
    """A configured item shown as an 'administer' button. Never persisted."""
    id: str
    name: str


class LogEntry(BaseModel):
    """
    A stored row: either a free note or a medication administration.
    The backend column for the owner is `user_id`.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Union[str, int]
    content: str
    owner_id: str = Field(alias="user_id")
    is_administration: bool = False
    medication_name: Optional[str] = None  # set only when is_administration
    created_at: datetime


# --- Request bodies ---
class DraftUpdate(BaseModel):
    text: str = ""


class NoteCreate(BaseModel):
    # None submits the current draft, like pressing "Add Note"
    content: Optional[str] = None


class SignInRequest(BaseModel):
    user_id: str
    email: Optional[str] = None
