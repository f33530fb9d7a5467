"""
Unit tests for upload intake and the payload encoder.
"""

import base64

import pytest
from starlette.requests import Request

from gemini_audio.models.gemini import MODEL_ID, TRANSCRIPT_PROMPT
from gemini_audio.services.audio import (
    MULTIPART_OVERHEAD_BYTES,
    PayloadTooLarge,
    UploadedAudio,
    encode_audio,
    read_uploaded_audio,
)

WAV_HEADER = bytes([0x52, 0x49, 0x46, 0x46, 0x24, 0x08, 0x00, 0x00, 0x57, 0x41, 0x56, 0x45])


@pytest.mark.unit
@pytest.mark.parametrize(
    "data",
    [WAV_HEADER, bytes(range(256)), b"\x00", b"not really audio at all"],
)
def test_encoded_data_decodes_to_original_bytes(data: bytes) -> None:
    """Test that base64 decoding the encoded payload gives back the upload."""
    request = encode_audio(UploadedAudio(data=data, media_type="audio/wav"))

    assert base64.b64decode(request.encoded_data) == data


@pytest.mark.unit
def test_wav_upload_builds_expected_request() -> None:
    """Test the request built for a WAV upload tagged audio/wav."""
    request = encode_audio(UploadedAudio(data=WAV_HEADER, media_type="audio/wav"))

    assert request.media_type == "audio/wav"
    assert request.encoded_data == base64.b64encode(WAV_HEADER).decode("ascii")
    assert request.instruction == TRANSCRIPT_PROMPT
    assert request.model_id == MODEL_ID == "gemini-2.5-flash-lite"


@pytest.mark.unit
def test_empty_upload_still_encodes() -> None:
    """Test that a zero-length buffer is encoded rather than rejected."""
    audio = UploadedAudio(data=b"", media_type="audio/webm")
    request = encode_audio(audio)

    assert audio.size_bytes == 0
    assert request.encoded_data == ""
    assert request.media_type == "audio/webm"


@pytest.mark.unit
def test_encoding_is_deterministic() -> None:
    audio = UploadedAudio(data=WAV_HEADER, media_type="audio/wav")

    assert encode_audio(audio) == encode_audio(audio)


@pytest.mark.unit
def test_prompt_describes_timestamped_lines() -> None:
    assert '[00:00 - 00:02] "' in TRANSCRIPT_PROMPT
    assert '[00:03 - 00:06] "' in TRANSCRIPT_PROMPT


# ============================================================================
# Upload size limit
# ============================================================================

BOUNDARY = "XBOUNDARY"
CHUNK = 64 * 1024


def _multipart_request(chunks: list[bytes], headers: dict, delivered: list[int]) -> Request:
    """Request whose body arrives in the given chunks, recording each delivery."""
    pending = list(chunks)

    async def receive():
        body = pending.pop(0) if pending else b""
        delivered.append(len(body))
        return {"type": "http.request", "body": body, "more_body": bool(pending)}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/analyze-audio",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope, receive)


def _large_audio_chunks(total: int) -> list[bytes]:
    preamble = (
        f"--{BOUNDARY}\r\n"
        'Content-Disposition: form-data; name="audio"; filename="big.wav"\r\n'
        "Content-Type: audio/wav\r\n\r\n"
    ).encode()
    return [preamble] + [b"\x00" * CHUNK for _ in range(total // CHUNK)]


@pytest.mark.unit
async def test_chunked_body_is_cut_off_past_the_limit() -> None:
    """Test that an oversized body without Content-Length is not read to the end."""
    delivered: list[int] = []
    total = 8 * 1024 * 1024
    request = _multipart_request(
        _large_audio_chunks(total),
        {"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
        delivered,
    )

    with pytest.raises(PayloadTooLarge):
        await read_uploaded_audio(request, max_bytes=1024, default_media_type="audio/webm")

    assert sum(delivered) <= 1024 + MULTIPART_OVERHEAD_BYTES + CHUNK
    assert sum(delivered) < total


@pytest.mark.unit
async def test_oversized_content_length_is_refused_before_reading() -> None:
    delivered: list[int] = []
    request = _multipart_request(
        _large_audio_chunks(CHUNK * 4),
        {
            "Content-Type": f"multipart/form-data; boundary={BOUNDARY}",
            "Content-Length": str(8 * 1024 * 1024),
        },
        delivered,
    )

    with pytest.raises(PayloadTooLarge):
        await read_uploaded_audio(request, max_bytes=1024, default_media_type="audio/webm")

    assert delivered == []


@pytest.mark.unit
async def test_upload_within_limit_is_read_whole() -> None:
    delivered: list[int] = []
    chunks = _large_audio_chunks(CHUNK * 2) + [f"\r\n--{BOUNDARY}--\r\n".encode()]
    request = _multipart_request(
        chunks,
        {"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"},
        delivered,
    )

    audio = await read_uploaded_audio(
        request, max_bytes=CHUNK * 2, default_media_type="audio/webm"
    )

    assert audio.size_bytes == CHUNK * 2
    assert audio.media_type == "audio/wav"
