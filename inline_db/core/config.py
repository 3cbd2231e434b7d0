# File: /inline_db/core/config.py | Version: 2.0 | Title: Central App Settings (Pydantic v2)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Database ---
    DATABASE_URL: str = "sqlite:///./inline_db.db"

    # --- Security / JWT (tokens are minted by the identity service) ---
    SECRET_KEY: str = "CHANGE_ME_FOR_DEV_ONLY"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # --- API behavior toggles ---
    ENABLE_STD_ERRORS: bool = (
        False  # set True in .env to enable standardized error responses
    )

    # --- Engine limits ---
    SNAPSHOT_CACHE_TTL_SECONDS: float = 30.0
    MAX_COLUMNS: int = 50
    MAX_BULK_ENTRIES: int = 1000
    SEARCH_LIMIT_MAX: int = 100

    # v2-style config
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
