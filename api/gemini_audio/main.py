import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gemini_audio.config import settings
from gemini_audio.models.gemini import MODEL_ID, describe_error, load_gemini_client
from gemini_audio.routers import analyze, health
from gemini_audio.schemas.analyze import AnalyzeFailure
from gemini_audio.services.pipeline import PROVIDER_FAILURE_MESSAGE

logger = logging.getLogger("gemini_audio")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Gemini audio backend starting up")

    # Raises ConfigurationError without a key, so uvicorn never binds
    app.state.gemini = load_gemini_client(settings)
    logger.info("Model: %s, timeout %ss", MODEL_ID, settings.gemini_timeout_s)

    yield

    logger.info("Gemini audio backend shutting down")


API_DESCRIPTION = """
# Gemini Audio API

Keeps the Gemini API key on the server: the browser uploads a recording,
the backend asks Gemini for a timestamped transcript and returns it.

## Pipeline

**Audio :** multipart upload → base64 inline data → Gemini 2.5 Flash-Lite → text

## Output format

```
[00:00 - 00:02] "first sentence"
[00:03 - 00:06] "second sentence"
```
"""

app = FastAPI(
    title="Gemini Audio API",
    description=API_DESCRIPTION,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "health", "description": "Liveness"},
        {"name": "analyze", "description": "Audio → timestamped transcript via Gemini"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus metrics
if settings.prometheus_enabled:
    from gemini_audio.middleware.metrics import setup_metrics

    setup_metrics(app)


# Last resort only: runs in ServerErrorMiddleware, outside CORS. Routes map
# their own failures so browser callers can read them.
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    body = AnalyzeFailure(error=PROVIDER_FAILURE_MESSAGE, detail=describe_error(exc))
    return JSONResponse(status_code=500, content=body.model_dump())


# Routers
app.include_router(health.router, tags=["health"])
app.include_router(analyze.router, prefix="/api", tags=["analyze"])
