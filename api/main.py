"""FastAPI app: DDL generation, layout and schema import over HTTP with Bearer auth."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import router
from erdforge.config import Settings, load_env

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load env (.env), validate required settings, then yield."""
    load_env()
    if not os.environ.get("API_AUTH_TOKEN"):
        raise RuntimeError("API_AUTH_TOKEN is not set (.env or environment)")
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")
    logger.info(f"ERD API ready (import workers: {settings.import_workers})")
    yield


app = FastAPI(title="ERD Modeling API", lifespan=lifespan)
app.include_router(router)
