from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings
    Loaded from environment variables or the .env file
    """
    # Database
    DATABASE_URL: str = "sqlite:///./field_reports.db"

    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Field Reports Storage"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Report storage
    # Process-wide default used when neither the tenant path nor the legacy
    # shared path is usable
    PDF_BASE_PATH: Optional[str] = None
    ARTIFACT_SAVE_ATTEMPTS: int = 3

    # Project numbering: PREFIX-YYYY-NNNN
    DEFAULT_PROJECT_NUMBER_PREFIX: str = "02"
    PROJECT_NUMBER_DIGITS: int = 4
    PROJECT_NUMBER_BASE_YEAR: int = 2022
    PROJECT_NUMBER_YEAR_BLOCK: int = 400  # numbers reserved per year since the base year

    # Counter store
    COUNTER_MAX_RETRIES: int = 5
    COUNTER_RETRY_DELAY_SECONDS: float = 0.05

    @field_validator("PDF_BASE_PATH", mode="before")
    @classmethod
    def blank_path_is_none(cls, v):
        """Empty strings in .env mean "not configured" """
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("LOG_LEVEL", mode="after")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
