import logging

from fastapi import APIRouter, Depends, HTTPException

from medlog.api.deps import get_live_view, get_medication_logger
from medlog.schemas.log import DraftUpdate, NoteCreate
from medlog.schemas.view import LogView
from medlog.services.logger import MedicationLogger
from medlog.services.render import LiveView

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/view", response_model=LogView)
async def get_view(live_view: LiveView = Depends(get_live_view)):
    """The latest rendered log, re-rendered on every state change."""
    return live_view.view


@router.put("/draft", response_model=LogView)
async def update_draft(
    body: DraftUpdate,
    component: MedicationLogger = Depends(get_medication_logger),
    live_view: LiveView = Depends(get_live_view),
):
    component.set_draft(body.text)
    return live_view.view


@router.post("/notes", response_model=LogView)
async def add_note(
    body: NoteCreate,
    component: MedicationLogger = Depends(get_medication_logger),
    live_view: LiveView = Depends(get_live_view),
):
    """
    Submits the current draft, or `content` when given.
    Failures come back as `error_message` in the view, not as an HTTP error.
    """
    if body.content is None:
        await component.submit()
    else:
        await component.add_note(body.content)
    return live_view.view


@router.post("/administer/{medication_id}", response_model=LogView)
async def administer(
    medication_id: str,
    component: MedicationLogger = Depends(get_medication_logger),
    live_view: LiveView = Depends(get_live_view),
):
    medication = component.medication(medication_id)
    if medication is None:
        raise HTTPException(status_code=404, detail="Medication not found")

    logger.info(f"Logging administration of {medication.name}")
    await component.administer(medication.name)
    return live_view.view
