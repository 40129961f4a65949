from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_TIMEZONE: str = "America/New_York"

    RECURRENCE_MAX_OCCURRENCES: int = 366

    HOME_BASE_LATITUDE: float | None = None
    HOME_BASE_LONGITUDE: float | None = None
    TRAVEL_FEE_PER_MILE_CENTS: int = 0
    TRAVEL_FREE_THRESHOLD_MILES: float = 0.0
    TRAVEL_AUTO_CALCULATE: bool = True

    ROUTING_PROVIDER: str = "haversine"
    GOOGLE_MAPS_API_KEY: str | None = None
    GOOGLE_DISTANCE_MATRIX_URL: str = "https://maps.googleapis.com/maps/api/distancematrix/json"
    GOOGLE_GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    # address -> [latitude, longitude], used when no Google key is configured
    STATIC_GEOCODER_ADDRESSES: dict[str, tuple[float, float]] = {}
    ROUTING_AVERAGE_SPEED_MPH: float = 35.0
    ROUTING_ROAD_FACTOR: float = 1.25
    ROUTING_TIMEOUT_SECONDS: float = 10.0

    BOOKING_BUFFER_BEFORE_MINUTES: int = 0
    BOOKING_BUFFER_AFTER_MINUTES: int = 0
    BOOKING_MIN_ADVANCE_HOURS: int = 0
    BOOKING_MAX_ADVANCE_DAYS: int | None = None

    STORE_PROVIDER: str = "memory"
    STORE_DATA_DIR: str = "./data/bookings"


settings = Settings()
