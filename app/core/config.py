from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "StudySeat API"
    API_PREFIX: str = "/api"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Admin accounts can only be registered with this code
    ADMIN_VERIFICATION_CODE: str = "libseat"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "studyseat_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Redis cache
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 60 * 60 * 24

    # Reservation rules. Dates and times are naive local values in TIMEZONE.
    TIMEZONE: str = "Asia/Shanghai"
    BOOKING_HORIZON_DAYS: int = 7
    DAILY_RESERVATION_LIMIT: int = 3
    CHECK_IN_WINDOW_MINUTES: int = 15
    NO_SHOW_THRESHOLD: int = 3
    BLACKLIST_DURATION_DAYS: int = 2
    PURGE_RETENTION_DAYS: int = 7

    # Background sweepers
    SCHEDULER_ENABLED: bool = True
    STATUS_SWEEP_INTERVAL_SECONDS: int = 60
    BLACKLIST_SWEEP_INTERVAL_SECONDS: int = 60 * 60
    PURGE_SWEEP_INTERVAL_SECONDS: int = 60 * 60 * 24 * 7

    # Uploads
    UPLOAD_DIR: str = "uploads"
    DEFAULT_ROOM_IMAGE_URL: str = "https://example.com/default-study-room.jpg"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"


settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
