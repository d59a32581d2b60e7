"""
FastAPI app assembly: logging, middleware and router wiring.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from . import __version__
from .auth import bootstrap_admin
from .config import get_settings
from .db import SessionLocal, init_db
from .routers import ROUTERS

settings = get_settings()

LOG_LEVEL = getattr(logging, settings.log_level.upper(), logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB once at startup
    init_db()
    db = SessionLocal()
    try:
        bootstrap_admin(db, settings)
    finally:
        db.close()
    logger.info("mise %s started (env=%s)", __version__, settings.env.value)
    yield


app = FastAPI(
    title="Mise",
    description="Kitchen operations: recipes, HACCP logs, staff schedule, menu plans and guest counts.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.session_https_only,
)

for router in ROUTERS:
    app.include_router(router)


@app.get("/api/health", tags=["health"])
def health():
    return {"status": "ok", "version": __version__}
