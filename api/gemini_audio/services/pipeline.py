import logging

from fastapi.responses import JSONResponse

from gemini_audio.models.gemini import (
    EMPTY_RESULT_PLACEHOLDER,
    MODEL_ID,
    GeminiAudioClient,
    ModelResult,
    ProviderFailure,
    TextResult,
)
from gemini_audio.schemas.analyze import AnalyzeFailure, AnalyzeSuccess, ValidationFailure
from gemini_audio.services.audio import AudioValidationError, UploadedAudio, encode_audio

logger = logging.getLogger("gemini_audio")

PROVIDER_FAILURE_MESSAGE = "call to inference provider failed"


async def run_analysis(audio: UploadedAudio, client: GeminiAudioClient) -> ModelResult:
    """Encode the upload and run a single Gemini call. Returns the tagged outcome."""
    request = encode_audio(audio)
    logger.info(
        "Analyzing %d bytes of %s with %s",
        audio.size_bytes, audio.media_type, request.model_id,
    )
    return await client.analyze(request)


def map_result(result: ModelResult) -> JSONResponse:
    if isinstance(result, TextResult):
        body = AnalyzeSuccess(
            model=MODEL_ID,
            result=result.content or EMPTY_RESULT_PLACEHOLDER,
        )
        return JSONResponse(status_code=200, content=body.model_dump())
    if isinstance(result, ProviderFailure):
        body = AnalyzeFailure(error=PROVIDER_FAILURE_MESSAGE, detail=result.message)
        return JSONResponse(status_code=500, content=body.model_dump())
    raise TypeError(f"Unknown model result: {result!r}")


def map_validation_error(error: AudioValidationError) -> JSONResponse:
    logger.info("Rejected upload (%s): %s", error.kind, error)
    body = ValidationFailure(error=str(error))
    return JSONResponse(status_code=400, content=body.model_dump())
