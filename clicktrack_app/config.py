from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class AnalyticsStoreConfig(BaseModel):
    """
    Connection details for the ClickHouse analytics store.

    Built once at startup from Settings and passed explicitly into the
    store client, click storage and services. Nothing below the
    dependencies module reads settings directly.
    """

    host: str
    port: int = 8443
    database: str
    username: str
    password: str = ""
    timeout: float = 10.0
    ca_bundle: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def url(self) -> str:
        return f"https://{self.host}:{self.port}/"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Application
    app_name: str = "Click Tracker"
    app_version: str = "1.0.0"

    # Database (short URL registry)
    database_url: str = "sqlite:///./clicktrack.db"

    # Short URL registry
    base_url: str = "http://127.0.0.1:8000"
    short_uri_length: int = 5
    max_retries: int = 10

    # ClickHouse analytics store
    # Leaving host/database/username empty disables tracking and stats
    clickhouse_host: Optional[str] = None
    clickhouse_port: int = 8443
    clickhouse_database: Optional[str] = None
    clickhouse_username: Optional[str] = None
    clickhouse_password: str = ""
    clickhouse_timeout: float = 10.0  # seconds, per query
    clickhouse_ca_bundle: Optional[str] = None
    clickhouse_create_table_on_startup: bool = False

    # Click tracking
    click_id_strategy: str = "timestamp_random"  # Options: "timestamp_random", "monotonic"
    track_on_redirect: bool = True
    session_cookie_name: str = "session_id"
    recent_clicks_limit: int = 50

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def analytics_store_config(self) -> Optional[AnalyticsStoreConfig]:
        """
        Build the analytics store config, or None when it is incomplete.

        A missing config is not fatal: click tracking reports failure and
        stats come back empty, but the application keeps serving redirects.
        """
        if not (self.clickhouse_host and self.clickhouse_database and self.clickhouse_username):
            return None

        return AnalyticsStoreConfig(
            host=self.clickhouse_host,
            port=self.clickhouse_port,
            database=self.clickhouse_database,
            username=self.clickhouse_username,
            password=self.clickhouse_password,
            timeout=self.clickhouse_timeout,
            ca_bundle=self.clickhouse_ca_bundle,
        )


# Create settings instance
settings = Settings()
