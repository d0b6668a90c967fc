"""Main application entry point for the HTTP API."""

import logging

from fastapi import FastAPI

from condocalc import __version__
from condocalc.api.billing import router as billing_router
from condocalc.services.config import AppConfig, load_config
from condocalc.services.db import create_db_engine, create_session_factory, init_db

logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build the FastAPI application on the configured database.

    Args:
        config: Loaded configuration (default: load_config(), so a broken
            .env or condominium file fails at startup, not per request)

    Returns:
        FastAPI app with config and session factory on app.state
    """
    if config is None:
        config = load_config()

    engine = create_db_engine(config.database_url)
    init_db(engine)

    app = FastAPI(title="CondoCalc", version=__version__)
    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.include_router(billing_router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("API application created (database=%s)", engine.url.render_as_string(hide_password=True))
    return app
