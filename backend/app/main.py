"""
FastAPI entrypoint for tabi-box backend application.
"""
import logging
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from app.core.config import settings
from app.core.errors import TabiBoxError
from app.core.logging_config import setup_logging
from app.core.utils import format_error
from app.api.router import api_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="tabi-box API",
    description="Backend API for shared travel reservation tracking",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TabiBoxError)
async def tabibox_error_handler(request: Request, exc: TabiBoxError):
    """Render domain errors as the localized message plus a machine code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error(exc.user_message, exc.to_dict())
    )


# Serve stored evidence files at their public URLs
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.STATIC_URL_PATH, StaticFiles(directory=settings.UPLOAD_DIR), name="static")

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "tabi-box API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
