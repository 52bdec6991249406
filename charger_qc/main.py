# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from charger_qc.api import api_router
from charger_qc.api.ws_router import router as ws_router
from charger_qc.core.config import settings
from charger_qc.core.db import DatabaseManager, check_database_health
from charger_qc.core.identity import IdentityProvider, SQLiteIdentityProvider
from charger_qc.core.session import SessionRegistry
from charger_qc.core.store import RecordStore, SQLiteRecordStore
from charger_qc.core.ws_manager import ConnectionManager
from charger_qc.services.dashboard import DashboardState

logger = logging.getLogger("charger_qc")


def create_app(
    db_path: str | None = None,
    store: RecordStore | None = None,
    identity: IdentityProvider | None = None,
) -> FastAPI:
    db_manager = DatabaseManager(db_path or settings.DB_PATH)
    store = store or SQLiteRecordStore(db_manager)
    identity = identity or SQLiteIdentityProvider(db_manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(identity, SQLiteIdentityProvider):
            identity.ensure_admin(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)

        app.state.sessions.start()
        await app.state.dashboard.start()
        logger.info("🚀 Charger QC backend ready (%s)", settings.chargers_path)
        try:
            yield
        finally:
            app.state.dashboard.stop()
            app.state.sessions.stop()
            logger.info("Charger QC backend stopped")

    app = FastAPI(title="Charger QC Backend", lifespan=lifespan)

    app.state.db_manager = db_manager
    app.state.store = store
    app.state.identity = identity
    app.state.sessions = SessionRegistry(identity)
    app.state.ws_manager = ConnectionManager()
    app.state.dashboard = DashboardState(store, settings.chargers_path, app.state.ws_manager)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    # WebSocket routes are mounted without the /api prefix
    app.include_router(ws_router)

    @app.get("/health")
    def health():
        return {
            "db": check_database_health(db_manager),
            "sessions": len(app.state.sessions),
            "chargers": len(app.state.dashboard.chargers),
        }

    return app


app = create_app()
