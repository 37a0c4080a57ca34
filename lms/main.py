import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lms.api.v2.api import api_router
from lms.core.config import settings
from lms.db import base  # noqa: F401  (registers every model on the metadata)
from lms.db import session as db_session
from lms.db.base_class import Base

# --- Logging ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Courseware LMS API V2",
    openapi_url="/api/v2/openapi.json",
)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value:
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _build_cors_origins() -> list[str]:
    origins = {_sanitize_origin(o) for o in settings.BACKEND_CORS_ORIGINS}

    additional = os.getenv("ADDITIONAL_CORS_ORIGINS")
    if additional:
        for origin in additional.split(","):
            origins.add(_sanitize_origin(origin))

    allow_origins = sorted({origin for origin in origins if origin})
    logger.info("CORS origins: %s", allow_origins)
    return allow_origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=_build_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(api_router, prefix="/api/v2")


@app.on_event("startup")
def startup() -> None:
    logger.info("Creating database tables if needed...")
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("Database tables ready.")


@app.get("/")
def read_root():
    return {"message": "Welcome to the Courseware LMS API V2!"}
