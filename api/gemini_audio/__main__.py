import sys

import uvicorn

from gemini_audio.config import ConfigurationError, settings


def main() -> int:
    try:
        settings.require_api_key()
    except ConfigurationError as e:
        print(f"Refusing to start: {e}", file=sys.stderr)
        return 1

    print(f"Gemini audio backend on http://{settings.api_host}:{settings.api_port}")
    print(f"Docs: http://{settings.api_host}:{settings.api_port}/docs")
    uvicorn.run(
        "gemini_audio.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
