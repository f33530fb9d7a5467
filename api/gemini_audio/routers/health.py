from fastapi import APIRouter

from gemini_audio.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse, summary="Liveness check")
async def health():
    """Static acknowledgement. Never touches the Gemini API."""
    return HealthResponse(status="ok", message="Gemini audio backend is running.")
