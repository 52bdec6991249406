# charger_qc/api/__init__.py
"""
All REST routers under /api; the WebSocket router is mounted separately.
"""
from fastapi import APIRouter

# ── REST routers ─────────────────────────────────────
from .auth      import router as auth_router
from .chargers  import router as chargers_router
from .users     import router as users_router

api_router = APIRouter(prefix="/api")

# ---- REST (JWT + roles) ----
api_router.include_router(auth_router)
api_router.include_router(chargers_router)
api_router.include_router(users_router)

# ---- WebSocket ----
# ws_router is included directly in main.py without the /api prefix
