from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fintrack_ai.api.routes import categorize, duplicates
from fintrack_ai.core import settings
from fintrack_ai.logger import get_logger, setup_logging
from fintrack_ai.manager import CategorizerService
from fintrack_ai.services.duplicates import DuplicateDetector

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        app.state.detector = DuplicateDetector()
        app.state.service = CategorizerService(
            memory_threshold=settings.get_env_float(
                "MEMORY_THRESHOLD", settings.DEFAULT_MEMORY_THRESHOLD
            ),
            tfidf_threshold=settings.get_env_float(
                "TFIDF_THRESHOLD", settings.DEFAULT_TFIDF_THRESHOLD
            ),
            data_dir=settings.DATA_DIR,
        )

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="FinTrack AI", lifespan=lifespan)
    app.include_router(duplicates.router)
    app.include_router(categorize.router)
    return app


app = create_app()
