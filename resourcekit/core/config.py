from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Query parameter names read by sort scopes and pagination.
    SORT_PARAM: str = "sort"
    SORT_DESC_PARAM: str = "sort_desc"
    PAGE_PARAM: str = "page"
    PER_PAGE_PARAM: str = "per"

    DEFAULT_PER_PAGE: int = 25
    MAX_PER_PAGE: int = 100

    # Naive datetimes from requests are interpreted in this zone.
    TIME_ZONE: str = "UTC"

settings = Settings()
