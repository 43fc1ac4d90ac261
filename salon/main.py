# salon/main.py

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import SYNC_ENABLED, SYNC_INTERVAL_SECONDS
from .routers.admin_routes import router as admin_router
from .routers.appointments_routes import router as appointments_router
from .routers.auth_routes import router as auth_router
from .routers.availability_routes import router as availability_router
from .routers.clients_routes import router as clients_router
from .state import AppStateService
from .store import build_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(portal: Optional[AppStateService] = None, background_sync: bool = SYNC_ENABLED) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state_service = app.state.salon
        if state_service is None:
            state_service = AppStateService(build_store(), is_admin=True)
            await state_service.load()
            app.state.salon = state_service
            logger.info("Loaded shared document (%d appointments)", len(state_service.snapshot().appointments))

        task = None
        if background_sync:
            task = asyncio.create_task(state_service.run(SYNC_INTERVAL_SECONDS))
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            await state_service.flush()

    app = FastAPI(title="Salon booking portal", lifespan=lifespan)
    app.state.salon = portal

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(clients_router)
    app.include_router(availability_router)
    app.include_router(appointments_router)
    app.include_router(admin_router)
    return app


app = create_app()
