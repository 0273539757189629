"""
Application configuration settings.

Two layers live here:

* ``Settings`` - process-level configuration loaded from environment
  variables / ``.env`` via pydantic-settings.
* ``ScoringConfiguration`` - the weights and thresholds the scoring
  strategies read at computation time. It is nested inside ``Settings``
  (override with ``SCORING__team_fit__sigmoid_steepness=12`` style variables)
  and held at runtime by a ``ScoringConfigurationStore`` so operators can
  swap it without restarting the process.
"""

import threading
from typing import List, Optional, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WeightsConfig(BaseModel):
    """Boost multipliers applied to competencies carrying external mappings."""

    model_config = ConfigDict(frozen=True)

    onet_boost: float = Field(
        default=1.2, gt=0.0, description="Boost for competencies with an O*NET code"
    )
    esco_boost: float = Field(
        default=1.15, gt=0.0, description="Boost for competencies with an ESCO URI"
    )
    big_five_boost: float = Field(
        default=1.1,
        gt=0.0,
        description="Boost for competencies mapped to a Big Five trait",
    )
    max_weight_multiplier: float = Field(
        default=3.0,
        ge=1.0,
        description="Cap on any compounded per-competency weight multiplier",
    )


class JobFitThresholds(BaseModel):
    """Thresholds for benchmark-comparison (JobFit) scoring."""

    model_config = ConfigDict(frozen=True)

    base_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    strictness_max_adjustment: float = Field(default=0.3, ge=0.0, le=1.0)
    min_questions_per_competency: int = Field(default=3, ge=1)
    # Margin (as a 0-1 fraction) at which the margin confidence factor saturates
    confidence_margin_saturation: float = Field(default=0.15, gt=0.0, le=1.0)
    high_confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    medium_confidence_threshold: float = Field(default=0.4, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_confidence_bands(self) -> Self:
        """Confidence bands must be ordered MEDIUM <= HIGH."""
        if self.medium_confidence_threshold > self.high_confidence_threshold:
            raise ValueError(
                "medium_confidence_threshold must not exceed high_confidence_threshold, "
                f"got {self.medium_confidence_threshold} > {self.high_confidence_threshold}"
            )
        if self.base_threshold + self.strictness_max_adjustment > 1.0:
            raise ValueError(
                "base_threshold + strictness_max_adjustment must not exceed 1.0"
            )
        return self


class TeamFitThresholds(BaseModel):
    """Thresholds for team gap-analysis (TeamFit) scoring."""

    model_config = ConfigDict(frozen=True)

    saturation_threshold: float = Field(default=0.75, gt=0.0, le=1.0)
    diversity_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    pass_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    min_diversity_ratio: float = Field(default=0.3, ge=0.0, le=1.0)
    min_questions_per_competency: int = Field(default=3, ge=1)

    # Sigmoid multiplier bounds and shape
    diversity_bonus: float = Field(default=1.1, gt=0.0)
    saturation_penalty: float = Field(default=0.9, gt=0.0)
    sigmoid_steepness: float = Field(default=10.0, gt=0.0)
    personality_weight: float = Field(default=0.1, ge=0.0, le=1.0)
    multiplier_floor: float = Field(default=0.8, gt=0.0)
    multiplier_ceiling: float = Field(default=1.2, gt=0.0)

    # Adaptive pass threshold
    small_team_threshold: int = Field(default=5, ge=1)
    small_team_adjustment: float = Field(default=0.1, ge=0.0, le=1.0)
    severe_gap_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    severe_gap_adjustment: float = Field(default=0.1, ge=0.0, le=1.0)
    min_pass_threshold: float = Field(default=0.3, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_bounds(self) -> Self:
        """Penalty must sit below bonus, inside the clamp band."""
        if self.diversity_threshold >= self.saturation_threshold:
            raise ValueError(
                "diversity_threshold must be below saturation_threshold, "
                f"got {self.diversity_threshold} >= {self.saturation_threshold}"
            )
        if self.saturation_penalty >= self.diversity_bonus:
            raise ValueError(
                "saturation_penalty must be below diversity_bonus, "
                f"got {self.saturation_penalty} >= {self.diversity_bonus}"
            )
        if self.multiplier_floor >= self.multiplier_ceiling:
            raise ValueError("multiplier_floor must be below multiplier_ceiling")
        if self.min_pass_threshold > self.pass_threshold:
            raise ValueError("min_pass_threshold must not exceed pass_threshold")
        return self


class OverviewThresholds(BaseModel):
    """Band thresholds for baseline (Overview) scoring, in percentage points."""

    model_config = ConfigDict(frozen=True)

    min_questions_per_competency: int = Field(default=3, ge=1)
    low_evidence_weight_factor: float = Field(default=0.5, gt=0.0, le=1.0)
    strength_threshold: float = Field(default=75.0, ge=0.0, le=100.0)
    development_threshold: float = Field(default=40.0, ge=0.0, le=100.0)
    critical_gap_threshold: float = Field(default=30.0, ge=0.0, le=100.0)
    profile_band_width: float = Field(default=10.0, ge=0.0, le=100.0)

    @model_validator(mode="after")
    def validate_band_order(self) -> Self:
        """Bands must be ordered critical <= development <= strength."""
        if not (
            self.critical_gap_threshold
            <= self.development_threshold
            <= self.strength_threshold
        ):
            raise ValueError(
                "Overview thresholds must satisfy critical_gap <= development <= strength, "
                f"got {self.critical_gap_threshold}, {self.development_threshold}, "
                f"{self.strength_threshold}"
            )
        return self


class ScoringConfiguration(BaseModel):
    """All weights and thresholds read by the scoring strategies."""

    model_config = ConfigDict(frozen=True)

    weights: WeightsConfig = WeightsConfig()
    job_fit: JobFitThresholds = JobFitThresholds()
    team_fit: TeamFitThresholds = TeamFitThresholds()
    overview: OverviewThresholds = OverviewThresholds()


class ScoringConfigurationStore:
    """
    Holder for the live ``ScoringConfiguration``.

    Strategies call ``get()`` at the start of every computation, so an
    ``update()`` takes effect on the next scoring run. The configuration
    objects are frozen; swapping the reference is the only mutation.
    """

    def __init__(self, initial: Optional[ScoringConfiguration] = None):
        self._lock = threading.Lock()
        self._config = initial or ScoringConfiguration()

    def get(self) -> ScoringConfiguration:
        with self._lock:
            return self._config

    def update(self, config: ScoringConfiguration) -> None:
        with self._lock:
            self._config = config


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Competency Assessment Engine"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Database (SQLAlchemy URL). SQLite keeps local development dependency-free.
    DATABASE_URL: str = "sqlite:///./assessment.db"

    # Psychometrics: when disabled, discrimination index no longer orders
    # candidates. RETIRED items stay excluded either way.
    PSYCHOMETRICS_ENABLED: bool = True

    # Assembly progress notifications are dispatched on a small worker pool
    PROGRESS_NOTIFIER_WORKERS: int = Field(
        default=2,
        ge=1,
        le=32,
        description="Worker threads delivering fire-and-forget progress events",
    )

    # Blueprint inventory checks
    MIN_QUESTIONS_PER_COMPETENCY: int = Field(
        default=3,
        ge=1,
        description="Below this many eligible questions a competency gets a warning",
    )

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    # Scoring weights and thresholds (initial values for the runtime store)
    SCORING: ScoringConfiguration = ScoringConfiguration()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_log_level(self) -> Self:
        """Reject log levels the logging module does not know."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.LOG_LEVEL.upper() not in allowed:
            raise ValueError(
                f"LOG_LEVEL must be one of {sorted(allowed)}, got {self.LOG_LEVEL}"
            )
        return self


settings = Settings()

# Process-wide runtime scoring configuration, seeded from settings
scoring_config_store = ScoringConfigurationStore(settings.SCORING)
