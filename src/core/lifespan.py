from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger
from sqlmodel import Session

from core.config import settings
from model.database import create_db_and_tables, engine
from service.auth_service import ensure_superadmin
from service.movie_service import seed_indicative_ratings
from worker.delete_worker import DeleteWorker
from worker.runner import start_background_workers
from worker.upload_worker import UploadWorker


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === 시작 ===
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION}")

    create_db_and_tables()
    with Session(engine) as session:
        added = seed_indicative_ratings(session)
        if ensure_superadmin(session):
            logger.info(f"Super admin ready ({settings.SUPERADMIN_EMAIL})")
    logger.info(f"Database ready ({settings.DATABASE_URL}), {added} indicative rating(s) seeded")

    app.state.settings = settings
    app.state.workers = None

    if settings.RUN_WORKERS_IN_APP:
        app.state.workers = start_background_workers([UploadWorker, DeleteWorker])
        logger.info("Image workers started in-process")

    yield

    # === 종료 ===
    if app.state.workers:
        app.state.workers.stop()
        logger.info("Image workers stopped")
    logger.info("Shutting down")
