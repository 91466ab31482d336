"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, Enum):
    """Key-value backend holding submission history and block state."""

    MEMORY = "memory"
    REDIS = "redis"


class FailurePosture(str, Enum):
    """How a sub-check resolves when its data source is unavailable."""

    OPEN = "open"
    CLOSED = "closed"


class RedisSettings(BaseSettings):
    """Redis configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("")
    db: int = 0
    max_connections: int = 20

    @property
    def url(self) -> str:
        """Generate Redis connection URL."""
        pwd = self.password.get_secret_value()
        if pwd:
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class StoreSettings(BaseSettings):
    """Local persistent store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: StoreBackend = StoreBackend.MEMORY
    key_prefix: str = "fraud_detection"


class FraudApiSettings(BaseSettings):
    """Remote fraud API (duplicate check and account verification)."""

    model_config = SettingsConfigDict(env_prefix="FRAUD_API_")

    base_url: str = "http://localhost:8080/api"
    api_key: SecretStr = SecretStr("")
    timeout_seconds: float = 5.0
    connect_timeout_seconds: float = 2.0
    duplicate_check_path: str = "/social-media/check-duplicate"
    account_verification_path: str = "/social-media/verify-account"


class FraudPolicySettings(BaseSettings):
    """
    Fraud policy knobs.

    Weights, thresholds and windows are reference defaults. Confirm them
    against the backend's enforcement policy before tightening anything.
    """

    model_config = SettingsConfigDict(env_prefix="FRAUD_")

    # Rate limiting
    cooldown_minutes: int = 60
    max_submissions_per_day: int = 3
    max_submissions_per_week: int = 10
    max_submissions_per_month: int = 30
    low_remaining_warning: int = 1

    # Velocity
    burst_window_seconds: float = 10.0
    burst_threshold: int = 3
    automation_sample_size: int = 3
    automation_tolerance_ms: int = 500
    automation_max_interval_seconds: float = 3600.0

    # Account requirements
    min_account_age_days: int = 30
    min_follower_count: int = 100
    min_post_count: int = 10

    # Penalties
    duplicate_penalty: int = 90
    rate_limit_penalty: int = 40
    velocity_penalty: int = 35
    account_too_new_penalty: int = 25
    low_follower_penalty: int = 20
    low_activity_penalty: int = 15
    verification_failed_penalty: int = 25

    # Risk level cut points
    risk_threshold_medium: int = 30
    risk_threshold_high: int = 60
    risk_threshold_critical: int = 80

    # Blocking
    block_duration_minutes: int = 60

    # History retention
    history_retention_days: int = 90

    # Failure postures per sub-check
    duplicate_failure_posture: FailurePosture = FailurePosture.OPEN
    account_failure_posture: FailurePosture = FailurePosture.CLOSED

    @property
    def cooldown_ms(self) -> int:
        """Minimum gap between consecutive submissions."""
        return self.cooldown_minutes * 60 * 1000

    @property
    def block_duration_ms(self) -> int:
        """Penalty length for a persisted block."""
        return self.block_duration_minutes * 60 * 1000

    @property
    def retention_ms(self) -> int:
        """Age after which history records are pruned."""
        return self.history_retention_days * 24 * 60 * 60 * 1000


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:19006"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    fraud_gate_port: int = Field(default=8010, alias="FRAUD_GATE_PORT")

    # Storage
    store: StoreSettings = Field(default_factory=StoreSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    # Fraud engine
    fraud_api: FraudApiSettings = Field(default_factory=FraudApiSettings)
    fraud_policy: FraudPolicySettings = Field(default_factory=FraudPolicySettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
