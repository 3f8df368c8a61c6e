"""
Main entry point for the Medication Service.

This script initializes the FastAPI application, sets up the database and
the maintenance scheduler, maps domain errors to HTTP responses and
includes the API routers.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import models
from .config import settings
from .database import engine
from .errors import ServiceError
from .routes import dose_logs, regimens
from .scheduler import delete_orphaned_dose_logs

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Scheduling and adherence tracking for recurring medication regimens.",
    version="1.0.0"
)

scheduler = BackgroundScheduler()


@app.on_event("startup")
def on_startup():
    # Create all database tables defined in models.py if they don't exist
    models.Base.metadata.create_all(bind=engine)

    if settings.ENABLE_SCHEDULER:
        scheduler.add_job(
            delete_orphaned_dose_logs, 'cron',
            hour=settings.ORPHAN_CLEANUP_HOUR, minute=settings.ORPHAN_CLEANUP_MINUTE
        )
        scheduler.start()
        logger.info("Scheduler started...")


@app.on_event("shutdown")
def on_shutdown():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler shut down...")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """
    Renders every domain error as {"kind": ..., "message": ...} with the
    status code of its class.
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/", tags=["Root"])
def read_root():
    """Root endpoint for basic health check."""
    return {"message": f"{settings.PROJECT_NAME} is running"}


app.include_router(regimens.router, prefix=settings.API_PREFIX)
app.include_router(dose_logs.router, prefix=settings.API_PREFIX)
