from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RESUME_STRUCTURER_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: str = "Resume Structurer"
    debug: bool = False
    log_level: str = "INFO"

    # Uploads larger than this are rejected with 413
    max_upload_bytes: int = 10 * 1024 * 1024

    # Vertical band (in points) within which text items share a line
    line_y_tolerance: float = 3.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
