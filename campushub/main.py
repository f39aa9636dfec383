from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campushub.core.logging_config import configure_logging
from campushub.routes import bookings, events, students
from campushub.services.gateways import make_gateway
from campushub.services.lifecycle import LifecycleManager
from campushub.services.snapshots import make_snapshot_writer


def build_core() -> LifecycleManager:
    gateway = make_gateway()
    return LifecycleManager(gateway, writer=make_snapshot_writer(gateway))


def create_app(core: LifecycleManager | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        manager = core or build_core()
        manager.start()
        app.state.core = manager
        try:
            yield
        finally:
            manager.close()

    app = FastAPI(title="CampusHub Events API", lifespan=lifespan)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include the routers
    app.include_router(events.router)
    app.include_router(bookings.router)
    app.include_router(students.router)
    return app


app = create_app()
