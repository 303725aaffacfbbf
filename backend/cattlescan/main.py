"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from cattlescan.config import get_settings
from cattlescan.db.session import SessionLocal
from cattlescan.routers import breeds, moderation, scans
from cattlescan.services.breeds import list_breed_names

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


def _warm_backend_state() -> None:
    """Prime the DB connection and the breed enumeration at process start."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
            known = list_breed_names(db)
        logger.info("startup.warm_complete breeds=%d", len(known))
    except Exception:
        logger.exception("Backend warm-up failed; continuing without startup pre-warm.")


@asynccontextmanager
async def lifespan(_: FastAPI):
    _warm_backend_state()
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scans.router, tags=["scans"])
app.include_router(moderation.router, tags=["moderation"])
app.include_router(breeds.router, tags=["breeds"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
