from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Car Wash Booking API"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 5000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    # Rotating ERROR log; empty disables it
    LOG_ERROR_FILE: str = "logs/errors.log"
    CORS_ORIGINS: List[str] = ["*"]

    # Storage
    STORE_BACKEND: Literal["supabase", "memory"] = "supabase"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    BOOKINGS_TABLE: str = "bookings"

    # Listing
    DEFAULT_PAGE_LIMIT: int = 10
    SEARCH_RESULT_LIMIT: int = 20

    # Seeding
    SEED_FILE: str = "data/seed_bookings.json"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


class ClientSettings(BaseSettings):
    API_BASE_URL: str = "http://localhost:5000/api"
    REQUEST_TIMEOUT: float = 10.0

    # List view
    PAGE_SIZE: int = 9
    FETCH_BATCH_SIZE: int = 100
    FETCH_MAX_BATCHES: int = 50
    SEARCH_DEBOUNCE_SECONDS: float = 0.3

    model_config = SettingsConfigDict(env_prefix="CARWASH_", env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
client_settings = ClientSettings()
