import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load .env before settings are read; tests configure the environment themselves
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from pitchgenie.core.config import cors_origins, settings, validate_config
from pitchgenie.core.database import create_all_tables
from pitchgenie.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from pitchgenie.core.logging import LOGGER_NAME, configure_logging
from pitchgenie.core.middleware.request_id import RequestIdMiddleware
from pitchgenie.core.validation import validate_env
from pitchgenie.api import auth, billing, documents, export, fields, generate, health

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger(LOGGER_NAME)
    logger.info("Starting PitchGenie backend...")
    app.state.startup_time = time.time()
    create_all_tables()
    try:
        yield
    finally:
        logger.info("Stopping PitchGenie backend...")


app = FastAPI(title="PitchGenie API", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-request-id", "Content-Disposition"],
)

app.include_router(auth.router)
app.include_router(generate.router)
app.include_router(export.router)
app.include_router(documents.router)
app.include_router(fields.router)
app.include_router(billing.router)
app.include_router(billing.subscription_router)
app.include_router(health.router)
app.include_router(health.root_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pitchgenie.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
