from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

INFERENCE_REQUESTS = Counter(
    "gemini_audio_inference_requests_total",
    "Total Gemini generate_content calls",
    ["outcome"],
)

INFERENCE_DURATION = Histogram(
    "gemini_audio_inference_duration_seconds",
    "Gemini call duration in seconds",
    buckets=[0.25, 0.5, 1.0, 2.0, 3.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)

UPLOAD_BYTES = Histogram(
    "gemini_audio_upload_bytes",
    "Size of accepted audio uploads",
    buckets=[16_384, 65_536, 262_144, 1_048_576, 4_194_304, 10_485_760, 20_971_520],
)

VALIDATION_FAILURES = Counter(
    "gemini_audio_validation_failures_total",
    "Uploads rejected before reaching Gemini",
    ["kind"],
)


def setup_metrics(app):
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/docs", "/openapi.json"],
    ).instrument(app).expose(app, endpoint="/metrics")
