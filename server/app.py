"""
Oracle Recommendation Server — FastAPI app factory.

Use: uvicorn server.app:app
Or:  from server import create_app
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import oracle

from .config import ServerConfig, get_config
from .routes import register_routes
from .state import AppState

logger = logging.getLogger(__name__)


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """Build FastAPI app with CORS, routes, and an isolated engine worker."""
    config = config or get_config()
    ok, errors = config.validate()
    if not ok:
        raise ValueError("; ".join(errors))

    app = FastAPI(
        title="Oracle Recommendation API",
        description="Game recommendation engine: taste profile, scoring and shelves",
        version=oracle.__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.oracle = AppState(config, config.load_oracle_config())
    register_routes(app)

    @app.on_event("shutdown")
    def stop_worker():
        app.state.oracle.close()
        logger.info("[shutdown] Worker stopped")

    logger.info(
        "[startup] Oracle config: %s",
        config.oracle_config_path or "defaults",
    )
    return app


app = create_app()
