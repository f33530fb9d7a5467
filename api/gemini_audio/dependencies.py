from typing import Annotated

from fastapi import Depends, Request

from gemini_audio.config import Settings, settings
from gemini_audio.models.gemini import GeminiAudioClient


def get_settings() -> Settings:
    return settings


def get_gemini_client(request: Request) -> GeminiAudioClient:
    # Built once in the lifespan hook; read-only afterwards
    return request.app.state.gemini


SettingsDep = Annotated[Settings, Depends(get_settings)]
GeminiDep = Annotated[GeminiAudioClient, Depends(get_gemini_client)]
