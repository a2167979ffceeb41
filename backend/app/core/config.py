from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./strata.db"

    # CORS origins for the configurator front-end
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    LOG_LEVEL: str = "INFO"

    # Quote requests are kept for this many days after submission
    QUOTE_RETENTION_DAYS: int = 30

    # Attempts at reserving a free quote number before giving up
    QUOTE_NUMBER_MAX_ATTEMPTS: int = 5

    # Floor area above which planning permission may be required
    LARGE_FLOOR_AREA_SQM: float = 50.0


settings = Settings()
