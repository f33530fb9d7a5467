import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from typing import Union

from google import genai
from google.genai import types

from gemini_audio.config import Settings, settings as default_settings
from gemini_audio.middleware.metrics import INFERENCE_DURATION, INFERENCE_REQUESTS

logger = logging.getLogger("gemini_audio")

MODEL_ID = "gemini-2.5-flash-lite"

TRANSCRIPT_PROMPT = (
    "Transcribe the speech in this audio clip sentence by sentence. "
    "Output one line per utterance with its start and end time, using exactly this format:"
    '\n[00:00 - 00:02] "The first thing the speaker said"'
    '\n[00:03 - 00:06] "The second thing the speaker said"'
)

EMPTY_RESULT_PLACEHOLDER = "(no text response)"

PROVIDER_ERROR = "ProviderError"


@dataclass(frozen=True)
class ModelRequest:
    instruction: str
    media_type: str
    encoded_data: str
    model_id: str = MODEL_ID

    def to_contents(self) -> list:
        """Prompt text followed by the audio as an inline-data part."""
        return [
            self.instruction,
            types.Part.from_bytes(
                data=base64.b64decode(self.encoded_data),
                mime_type=self.media_type,
            ),
        ]


@dataclass(frozen=True)
class TextResult:
    content: str


@dataclass(frozen=True)
class ProviderFailure:
    message: str
    kind: str = PROVIDER_ERROR


ModelResult = Union[TextResult, ProviderFailure]


def describe_error(exc: BaseException) -> str:
    """Provider message when the SDK carries one, else the exception text."""
    message = getattr(exc, "message", None)
    if message:
        return str(message)
    return str(exc) or type(exc).__name__


class GeminiAudioClient:
    def __init__(
        self,
        client: genai.Client,
        timeout_s: float,
        log: logging.Logger = logger,
    ):
        self.client = client
        self.timeout_s = timeout_s
        self.log = log

    async def analyze(self, request: ModelRequest) -> ModelResult:
        """Send one generate_content call; never raises, never retries."""
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=request.model_id,
                    contents=request.to_contents(),
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            return self._failure(
                f"Gemini call timed out after {self.timeout_s:g}s", start
            )
        except Exception as e:
            return self._failure(describe_error(e), start, exc=e)

        elapsed = time.perf_counter() - start
        INFERENCE_DURATION.observe(elapsed)
        INFERENCE_REQUESTS.labels(outcome="success").inc()
        self.log.info(
            "Gemini %s answered in %dms", request.model_id, round(elapsed * 1000)
        )
        return TextResult(content=response.text or EMPTY_RESULT_PLACEHOLDER)

    def _failure(
        self, message: str, start: float, exc: BaseException | None = None
    ) -> ProviderFailure:
        elapsed = time.perf_counter() - start
        INFERENCE_DURATION.observe(elapsed)
        INFERENCE_REQUESTS.labels(outcome="failure").inc()
        self.log.error(
            "Gemini call failed: %s",
            message,
            exc_info=exc,
            extra={
                "event": "inference_failure",
                "kind": PROVIDER_ERROR,
                "error_type": type(exc).__name__ if exc else "TimeoutError",
                "elapsed_ms": round(elapsed * 1000),
            },
        )
        return ProviderFailure(message=message)


def load_gemini_client(config: Settings = default_settings) -> GeminiAudioClient:
    api_key = config.require_api_key()
    logger.info("Initializing Gemini client (model %s)", MODEL_ID)
    client = genai.Client(api_key=api_key)
    return GeminiAudioClient(client, timeout_s=config.gemini_timeout_s)
