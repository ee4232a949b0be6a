from fastapi import HTTPException, Request

from medlog.services.local_backend import LocalBackend
from medlog.services.logger import MedicationLogger
from medlog.services.render import LiveView


def get_medication_logger(request: Request) -> MedicationLogger:
    return request.app.state.medication_logger


def get_live_view(request: Request) -> LiveView:
    return request.app.state.live_view


def get_local_backend(request: Request) -> LocalBackend:
    """
    Sign-in helpers only exist for the in-process backend.
    Against Supabase the client signs in with the Supabase auth API.
    """
    backend = request.app.state.medication_logger.backend
    if not isinstance(backend, LocalBackend):
        raise HTTPException(status_code=400, detail="Session helpers require BACKEND_MODE=local")
    return backend
