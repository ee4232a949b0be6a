import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from medlog.config import config
from medlog.db.session import init_db, make_engine, make_session_factory
from medlog.services.backend import BackendClient
from medlog.services.local_backend import LocalBackend
from medlog.services.logger import MedicationLogger
from medlog.services.render import LiveView
from medlog.services.supabase_backend import SupabaseBackend
from medlog.api.v1 import logger as logger_routes, session as session_routes

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def build_backend() -> BackendClient:
    if config.BACKEND_MODE == "local":
        engine = make_engine(config.LOCAL_DATABASE_URL)
        init_db(engine)
        logger.info(f"Using local backend at {config.LOCAL_DATABASE_URL}")
        return LocalBackend(make_session_factory(engine))
    return await SupabaseBackend.connect(config.SUPABASE_URL, config.SUPABASE_KEY)


def create_app(backend_factory=build_backend, medications=None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        backend = await backend_factory()
        component = MedicationLogger(
            backend,
            medications=config.medications() if medications is None else medications,
            table=config.LOG_TABLE,
        )
        live_view = LiveView(component)
        await component.mount()
        await component.wait_idle()

        app.state.medication_logger = component
        app.state.live_view = live_view
        yield

        live_view.close()
        await component.unmount()

    app = FastAPI(title="Medication & Note Log", lifespan=lifespan)

    # Include Routers
    app.include_router(logger_routes.router, prefix="/api/v1/logger", tags=["Log"])
    app.include_router(session_routes.router, prefix="/api/v1/session", tags=["Session"])

    @app.get("/")
    def root():
        return {"message": "System Operational"}

    return app


app = create_app()
