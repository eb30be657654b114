from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PEACHY_", env_file=".env", extra="ignore")
    DATABASE_URL: str = "sqlite:///./peachy.db"

    SECRET_KEY: str = "change-me-in-production-0123456789abcdef"
    ACCESS_TOKEN_MIN: int = 60 * 24
    LOG_LEVEL: str = "INFO"

    # Trailing window used for maxRedemptionsPerWeek
    REDEMPTION_WINDOW_DAYS: int = 7

    # Fixed awards for app activities
    MOOD_UPDATE_POINTS: int = 5
    HOBBY_SHARE_POINTS: int = 5
    QUIZ_CORRECT_POINTS: int = 2

    HISTORY_LIMIT: int = 50


settings = Settings()
