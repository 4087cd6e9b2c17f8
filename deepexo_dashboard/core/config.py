from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional


DEFAULT_DISPLAY_URL = "https://api.deepexo.eu.org/api"
DEFAULT_REQUEST_URL = "http://127.0.0.1:8000/api"


def sanitize_base(value: Optional[str], fallback: str) -> str:
    """
    Normalize a base URL: absolute URLs lose their trailing slash and
    relative ones become root-relative paths ("api/" -> "/api").
    """
    if not value:
        return fallback
    if not value.startswith("http"):
        path = value if value.startswith("/") else f"/{value}"
        return path.rstrip("/")
    return value.rstrip("/")


class Settings(BaseSettings):
    # Application info
    PROJECT_NAME: str = "DeepEXO-cVAE"
    VERSION: str = "0.0.2"

    # Inference service
    API_BASE_URL: Optional[str] = None
    API_REQUEST_BASE: Optional[str] = None  # takes precedence over API_BASE_URL for requests
    DISPLAY_API_URL: Optional[str] = None
    REQUEST_TIMEOUT: float = 20.0

    # Charts
    HISTOGRAM_BINS: int = 20
    DEFAULT_SAMPLE_TIMES: int = 25

    # Dash server
    DASH_HOST: str = "127.0.0.1"
    DASH_PORT: int = 8050
    DASH_DEBUG: bool = False

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("HISTOGRAM_BINS", "DEFAULT_SAMPLE_TIMES")
    @classmethod
    def must_be_positive(cls, v):
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @property
    def request_base_url(self) -> str:
        return sanitize_base(self.API_REQUEST_BASE or self.API_BASE_URL, DEFAULT_REQUEST_URL)

    @property
    def display_base_url(self) -> str:
        return sanitize_base(self.DISPLAY_API_URL or self.API_BASE_URL, DEFAULT_DISPLAY_URL)


def get_settings() -> Settings:
    return Settings()
