from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    DB_URL: str = "sqlite+aiosqlite:///./equity_advance.db"
    LOG_LEVEL: str = "INFO"

    # --- Property data provider (ATTOM today, RentCast kept as an alternative) ---
    PROPERTY_DATA_PROVIDER: str = "attom"  # attom|rentcast

    ATTOM_API_KEY: str | None = None
    ATTOM_BASE_URL: str = "https://api.gateway.attomdata.com/propertyapi/v1.0.0"

    RENTCAST_API_KEY: str | None = None
    RENTCAST_BASE_URL: str = "https://api.rentcast.io/v1"

    # Only used to correct addresses ATTOM cannot match
    GOOGLE_MAPS_API_KEY: str | None = None
    GOOGLE_GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"

    # --- Outbound HTTP ---
    HTTP_TIMEOUT_S: float = 20.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BACKOFF_BASE_S: float = 0.5
    HTTP_RATE_LIMIT_RPS: float = 5.0
    HTTP_CIRCUIT_FAIL_THRESHOLD: int = 8
    HTTP_CIRCUIT_RESET_S: float = 60.0

    # Property lookups are expensive; valuations move slowly
    LOOKUP_CACHE_TTL_DAYS: int = 30

    # --- Affiliate tracking links ---
    OFFER_HASH: str = "2CTPL"

    # --- Bulk import ---
    BULK_IMPORT_MAX_ADDRESSES: int = 50
    BULK_IMPORT_ITEM_DELAY_S: float = 0.5  # be polite to the data vendor
    # the scheduler only picks up batches older than this (crashed or restarted workers)
    BULK_IMPORT_STALE_MINUTES: int = 15

    # --- Scheduler tuning ---
    SCHED_BULK_IMPORT_INTERVAL_MINUTES: int = 5


settings = Settings()
