import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.sql import text # Import text for raw SQL execution

from config.settings import StoreSettings, SurveySettings, store_settings as default_store_settings, survey_settings as default_survey_settings
from src.core.logging_config import setup_logging
from src.db.database import create_store_engine
from src.db.store import DataStoreAdapter
from src.location.reference import ReferenceDataset
from src.routers import survey as survey_router
from src.services.continuity import SessionContinuityManager
from services.connectivity_engine.loader import load_catalog, load_report_config_from_file
from services.connectivity_engine.wizard import SurveyWizard

logger = logging.getLogger(__name__)


def create_app(store_settings: Optional[StoreSettings] = None, survey_settings: Optional[SurveySettings] = None) -> FastAPI:
    """
    Builds the survey service. Settings default to the environment-backed instances;
    tests pass their own to point at a temporary store.
    """
    store_settings = store_settings or default_store_settings
    survey_settings = survey_settings or default_survey_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(survey_settings.log_level)
        logger.info(f"Starting soil connectivity survey in {store_settings.mode} mode")

        engine = create_store_engine(store_settings)
        store = DataStoreAdapter(engine, retry_attempts=store_settings.retry_attempts)
        store.init_schema()

        catalog = load_catalog()
        report_config = load_report_config_from_file(survey_settings.report_config_path)
        reference = ReferenceDataset.from_csv(survey_settings.reference_path)

        wizard = SurveyWizard(
            catalog,
            store,
            reference,
            report_config,
            decline_redirect_url=survey_settings.decline_redirect_url,
            more_info_url=survey_settings.more_info_url,
        )
        app.state.engine = engine
        app.state.store = store
        app.state.reference = reference
        app.state.wizard = wizard
        app.state.continuity = SessionContinuityManager(wizard, survey_settings.session_timeout_seconds)
        logger.info("Survey service ready")
        try:
            yield
        finally:
            engine.dispose()
            logger.info("Survey service stopped")

    app = FastAPI(title="Soil Connectivity Evaluation API", lifespan=lifespan)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=survey_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Include Routers ---
    app.include_router(survey_router.router, prefix="/api/v1", tags=["survey"])

    @app.get("/", tags=["Health Check"])
    async def read_root():
        """
        Root endpoint for basic health check.
        """
        return {"status": "ok", "message": "Soil connectivity survey is running."}

    @app.get("/health/db", tags=["Health Check"])
    def health_check_db(request: Request):
        """
        Performs a store connection health check.
        """
        try:
            with request.app.state.engine.connect() as conn:
                result = conn.execute(text("SELECT 1")).scalar_one()
            logger.info(f"DB health check successful (SELECT 1 returned: {result})")
            return {"status": "ok", "db_check": result}
        except Exception as e:
            logger.error(f"DB health check failed: {e}", exc_info=True)
            # Raise 503 Service Unavailable if DB connection fails
            raise HTTPException(status_code=503, detail="Database connection error")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    # Better to run with `uvicorn main:app --reload` from the project root directory
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
