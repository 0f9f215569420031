from __future__ import annotations

from fastapi import Depends

from cookka.core.settings import Settings, get_settings
from cookka.services.gemini_service import GeminiService


def get_gemini_service(settings: Settings = Depends(get_settings)) -> GeminiService:
    return GeminiService(settings=settings)
