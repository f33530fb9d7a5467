import logging

from fastapi import APIRouter, Request

from gemini_audio.dependencies import GeminiDep, SettingsDep
from gemini_audio.models.gemini import ProviderFailure, describe_error
from gemini_audio.schemas.analyze import AnalyzeFailure, AnalyzeSuccess, ValidationFailure
from gemini_audio.services.audio import AudioValidationError, read_uploaded_audio
from gemini_audio.services.pipeline import map_result, map_validation_error, run_analysis

logger = logging.getLogger("gemini_audio")
router = APIRouter()


@router.post(
    "/analyze-audio",
    summary="Timestamped transcript of an audio upload",
    responses={
        200: {"model": AnalyzeSuccess},
        400: {"model": ValidationFailure},
        500: {"model": AnalyzeFailure},
    },
)
async def analyze_audio(request: Request, gemini: GeminiDep, config: SettingsDep):
    """Send an uploaded recording to Gemini and return its transcript.

    The body must be `multipart/form-data` with the file in a field named
    `audio`. Any audio type Gemini understands is accepted (webm, wav, mp3,
    ogg...). Each line of the result looks like `[00:00 - 00:02] "..."`.
    """
    try:
        audio = await read_uploaded_audio(
            request,
            max_bytes=config.upload_max_bytes,
            default_media_type=config.default_media_type,
        )
    except AudioValidationError as e:
        return map_validation_error(e)

    try:
        result = await run_analysis(audio, gemini)
    except Exception as e:
        logger.exception("Analysis failed outside the Gemini call: %s", e)
        result = ProviderFailure(message=describe_error(e))
    return map_result(result)
