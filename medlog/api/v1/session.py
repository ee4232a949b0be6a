from fastapi import APIRouter, Depends

from medlog.api.deps import get_live_view, get_local_backend, get_medication_logger
from medlog.schemas.log import SignInRequest
from medlog.schemas.view import LogView
from medlog.services.local_backend import LocalBackend
from medlog.services.logger import MedicationLogger
from medlog.services.render import LiveView

router = APIRouter()


@router.post("/sign-in", response_model=LogView)
async def sign_in(
    body: SignInRequest,
    backend: LocalBackend = Depends(get_local_backend),
    component: MedicationLogger = Depends(get_medication_logger),
    live_view: LiveView = Depends(get_live_view),
):
    """Signs in locally and waits for that user's log to load."""
    backend.sign_in(body.user_id, body.email)
    await component.wait_idle()
    return live_view.view


@router.post("/sign-out", response_model=LogView)
async def sign_out(
    backend: LocalBackend = Depends(get_local_backend),
    component: MedicationLogger = Depends(get_medication_logger),
    live_view: LiveView = Depends(get_live_view),
):
    backend.sign_out()
    await component.wait_idle()
    return live_view.view
