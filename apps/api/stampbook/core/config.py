from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STAMPBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str
    redis_url: str
    jwt_secret: str
    app_env: str = "development"
    timezone: str = "Asia/Tokyo"
    queue_name: str = "stampbook:jobs"
    cors_allowed_origins: str = "http://localhost:5173"
    access_token_minutes: int = 12 * 60
    default_target_stamps: int = 10
    rarity_weight_common: int = 98
    rarity_weight_legendary: int = 1
    rarity_weight_mythical: int = 1
    mythical_roll_odds: int = 100


settings = Settings()
