from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/coupons.db"

    # Listing defaults
    COUPONS_PAGE_LIMIT: int = 20
    COUPONS_LIST_SORT: str = "id desc"
    COUPONS_HISTORY_SORT: str = "created_at desc"

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()


settings = Settings()
