"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, List, Optional, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "MockPrep API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Security
    # Tokens are issued by the auth service; this service only verifies them.
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"

    # Grading service
    OPENAI_API_KEY: str = Field(
        default="",
        description="OpenAI API key for interview grading (empty disables remote grading)",
    )
    GRADING_MODEL: str = "gpt-4o"
    GRADING_TEMPERATURE: float = 0.6
    REFERENCE_ANSWER_TEMPERATURE: float = 0.7
    GRADING_MAX_TOKENS: int = 1200
    GRADING_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    GRADING_MAX_CONCURRENT: int = Field(default=5, ge=1)
    # Neutral midpoint applied when the grading service fails
    GRADING_FALLBACK_SCORE: float = 5.0

    # Grading circuit breaker
    GRADING_CIRCUIT_FAILURE_THRESHOLD: int = Field(default=5, ge=1)
    GRADING_CIRCUIT_RECOVERY_SECONDS: float = Field(default=60.0, gt=0)
    GRADING_CIRCUIT_SUCCESS_THRESHOLD: int = Field(default=2, ge=1)

    # Session setup bounds
    INTERVIEW_MIN_QUESTIONS: int = 5
    INTERVIEW_MAX_QUESTIONS: int = 25
    QUIZ_MIN_QUESTIONS: int = 5
    QUIZ_MAX_QUESTIONS: int = 15
    # Interview time limit labels mapped to seconds; None means unlimited
    INTERVIEW_TIME_LIMITS: Dict[str, Optional[int]] = {
        "nolimit": None,
        "30sec": 30,
        "45sec": 45,
        "1min": 60,
        "2min": 120,
    }
    QUIZ_TIME_LIMITS: List[int] = [15, 30, 45, 60]
    SUBJECT_ALIASES: Dict[str, str] = {
        "ds": "Data Structures",
        "cn": "Computer Networks",
        "dbms": "DBMS",
        "os": "Operating Systems",
        "oops": "OOPs",
    }

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_bounds(self) -> Self:
        """Reject inverted question-count bounds and out-of-range fallback scores."""
        if self.INTERVIEW_MIN_QUESTIONS > self.INTERVIEW_MAX_QUESTIONS:
            raise ValueError(
                "INTERVIEW_MIN_QUESTIONS must not exceed INTERVIEW_MAX_QUESTIONS"
            )
        if self.QUIZ_MIN_QUESTIONS > self.QUIZ_MAX_QUESTIONS:
            raise ValueError("QUIZ_MIN_QUESTIONS must not exceed QUIZ_MAX_QUESTIONS")
        if not 0.0 <= self.GRADING_FALLBACK_SCORE <= 10.0:
            raise ValueError("GRADING_FALLBACK_SCORE must be between 0 and 10")
        return self


settings = Settings()
