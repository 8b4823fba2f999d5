"""FastAPI application factory for the JSON host."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from funding_radar.dashboard.routes import api


def create_app(components: dict[str, Any], settings: Any, lifespan: Any = None) -> FastAPI:
    """Create the FastAPI app with components exposed on ``app.state``.

    Args:
        components: Built components; must include ``funding_service``,
            ``catalog_service`` and ``alert_job``.
        settings: AppSettings, read by routes for cache headers.
        lifespan: Optional async context manager for startup/shutdown.
    """
    app = FastAPI(title="Funding Radar", lifespan=lifespan)

    app.state.settings = settings
    app.state.funding_service = components["funding_service"]
    app.state.catalog_service = components["catalog_service"]
    app.state.alert_job = components["alert_job"]

    app.include_router(api.router, prefix="/api")

    return app
