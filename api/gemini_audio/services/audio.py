import base64
import logging
from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Request
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from gemini_audio.middleware.metrics import UPLOAD_BYTES, VALIDATION_FAILURES
from gemini_audio.models.gemini import MODEL_ID, TRANSCRIPT_PROMPT, ModelRequest

logger = logging.getLogger("gemini_audio")

AUDIO_FIELD = "audio"

# Boundaries, part headers and small companion fields around the file
MULTIPART_OVERHEAD_BYTES = 64 * 1024
MAX_FORM_PARTS = 16


class AudioValidationError(Exception):
    kind = "AudioValidationError"


class MissingAudioFile(AudioValidationError):
    kind = "MissingAudioFile"

    def __init__(self):
        super().__init__(
            f"Upload the audio file as multipart/form-data in a field named '{AUDIO_FIELD}'"
        )


class PayloadTooLarge(AudioValidationError):
    kind = "PayloadTooLarge"

    def __init__(self, max_bytes: int):
        super().__init__(
            f"Audio exceeds the {max_bytes / (1024 * 1024):g} MB limit"
        )


@dataclass(frozen=True)
class UploadedAudio:
    data: bytes
    media_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


async def _bounded_stream(
    request: Request, limit: int, max_bytes: int
) -> AsyncGenerator[bytes, None]:
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise _reject(PayloadTooLarge(max_bytes))
        yield chunk


async def read_uploaded_audio(
    request: Request, max_bytes: int, default_media_type: str
) -> UploadedAudio:
    """Pull the `audio` file part out of a multipart request, fully in memory.

    The body is never read past max_bytes plus the multipart framing
    allowance: a larger Content-Length is refused before reading, and a
    chunked body is cut off as soon as it crosses the limit.

    Raises MissingAudioFile when the field is absent, is a plain form value,
    or the body is not parseable as a form, and PayloadTooLarge when the file
    is bigger than max_bytes.
    """
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise _reject(MissingAudioFile())

    limit = max_bytes + MULTIPART_OVERHEAD_BYTES
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise _reject(PayloadTooLarge(max_bytes))

    parser = MultiPartParser(
        request.headers,
        _bounded_stream(request, limit, max_bytes),
        max_files=MAX_FORM_PARTS,
        max_fields=MAX_FORM_PARTS,
    )
    # Spool ceiling above the read limit keeps file parts off disk
    parser.spool_max_size = limit + 1

    try:
        form = await parser.parse()
    except MultiPartException as e:
        logger.info("Unparseable upload body: %s", e.message)
        raise _reject(MissingAudioFile())

    try:
        upload = form.get(AUDIO_FIELD)
        if not isinstance(upload, UploadFile):
            raise _reject(MissingAudioFile())

        if upload.size is not None and upload.size > max_bytes:
            raise _reject(PayloadTooLarge(max_bytes))

        data = await upload.read()
        media_type = upload.content_type or default_media_type
    finally:
        await form.close()

    UPLOAD_BYTES.observe(len(data))
    return UploadedAudio(data=data, media_type=media_type)


def _reject(error: AudioValidationError) -> AudioValidationError:
    VALIDATION_FAILURES.labels(kind=error.kind).inc()
    return error


def encode_audio(audio: UploadedAudio) -> ModelRequest:
    """Base64 the raw bytes and pair them with the transcript prompt."""
    return ModelRequest(
        instruction=TRANSCRIPT_PROMPT,
        media_type=audio.media_type,
        encoded_data=base64.b64encode(audio.data).decode("ascii"),
        model_id=MODEL_ID,
    )
