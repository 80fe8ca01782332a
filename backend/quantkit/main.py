from __future__ import annotations

import logging

from fastapi import FastAPI

from quantkit.api.router import api_router
from quantkit.db.session import Database
from quantkit.settings import Settings


def create_app(database_url: str | None = None) -> FastAPI:
    settings = Settings.from_env(database_url)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="quantkit", version="0.1.0")
    app.state.settings = settings

    # Run store (SQLite by default)
    app.state.db = Database.from_url(settings.database_url)
    app.state.db.create_tables()

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
