"""Application settings and configuration.

This module defines all configuration options for the Kettle Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Kettle Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and admin authentication
    secret_key: str = Field(default="change-me-in-production", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    admin_token_expire_minutes: int = Field(default=60 * 12, alias="ADMIN_TOKEN_EXPIRE_MINUTES")

    # Database configuration
    database_url: str = Field(default="sqlite:///./kettle.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Heat and feed behaviour
    post_max_length: int = Field(default=1000, alias="POST_MAX_LENGTH")
    trending_default_limit: int = Field(default=5, alias="TRENDING_DEFAULT_LIMIT")
    trending_max_limit: int = Field(default=20, alias="TRENDING_MAX_LIMIT")
    thread_max_depth: int = Field(default=32, alias="THREAD_MAX_DEPTH")

    # Change feed
    change_log_retention: int = Field(default=500, alias="CHANGE_LOG_RETENTION")
    change_poll_interval_seconds: float = Field(
        default=2.0,
        alias="CHANGE_POLL_INTERVAL_SECONDS",
    )

    # Participant client
    client_base_url: str = Field(default="http://localhost:8000", alias="KETTLE_API_BASE_URL")
    client_http_timeout_seconds: float = Field(
        default=10.0,
        alias="CLIENT_HTTP_TIMEOUT_SECONDS",
    )
    vote_ledger_path: str = Field(default="~/.kettle/tea_votes.json", alias="VOTE_LEDGER_PATH")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
