from fastapi import FastAPI

from cookka.api import gemini, health
from cookka.core.errors import register_exception_handlers
from cookka.core.logging import configure_logging
from cookka.core.settings import get_settings


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        summary="Gemini chat, receipt OCR and recipe helpers for Cookka",
    )
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(gemini.router, prefix="/api/gemini", tags=["gemini"])

    return app


app = create_app()
