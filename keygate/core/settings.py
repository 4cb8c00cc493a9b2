"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

DB_POOL_SIZE_DEFAULT = 10
DB_MAX_OVERFLOW_DEFAULT = 10
DB_PORT_DEFAULT = 5432
STORE_TIMEOUT_DEFAULT = 5.0


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="KEYGATE_DB_")

    host: str = "localhost"
    port: int = DB_PORT_DEFAULT
    user: str = "keygate"
    password: str = "keygate"
    database: str = "keygate"
    pool_size: int = DB_POOL_SIZE_DEFAULT
    max_overflow: int = DB_MAX_OVERFLOW_DEFAULT
    use_ssl: bool = False

    @property
    def async_url(self) -> str:
        """Build async PostgreSQL connection URL."""
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class GateSettings(BaseSettings):
    """Entry endpoint and admin API settings."""

    model_config = SettingsConfigDict(env_prefix="KEYGATE_")

    cors_origins: str = ""
    admin_token: str = ""
    secret_encryption_key: str = ""
    store_timeout_seconds: float = STORE_TIMEOUT_DEFAULT
    log_level: str = "INFO"

    def get_cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        if not self.cors_origins:
            return []
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
