from pydantic_settings import BaseSettings
from typing import List


class ConfigurationError(RuntimeError):
    """Raised at startup when the service cannot be configured to serve."""


class Settings(BaseSettings):
    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    log_level: str = "info"

    # Gemini API
    gemini_api_key: str = ""
    gemini_timeout_s: float = 60.0

    # Monitoring
    prometheus_enabled: bool = True

    # CORS
    cors_origins: List[str] = ["*"]

    # Uploads
    upload_max_bytes: int = 20 * 1024 * 1024  # 20 MB, Gemini inline-data ceiling
    default_media_type: str = "audio/webm"

    model_config = {
        "env_file": ["../.env", ".env"],
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    def require_api_key(self) -> str:
        key = self.gemini_api_key.strip()
        if not key:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set; export it or add it to .env before starting"
            )
        return key


settings = Settings()
