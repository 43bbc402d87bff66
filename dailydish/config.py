from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    google_credentials_path: str = Field(
        "./credentials/google_service_account.json",
        alias="GOOGLE_CREDENTIALS_PATH",
    )
    google_credentials_json: Optional[str] = Field(
        None, alias="GOOGLE_CREDENTIALS_JSON"
    )
    # Without a spreadsheet the catalog is empty
    google_spreadsheet_id: Optional[str] = Field(None, alias="GOOGLE_SPREADSHEET_ID")

    preferences_path: str = Field("./data/preferences.json", alias="PREFERENCES_PATH")
    timezone: Optional[str] = Field(None, alias="DAILYDISH_TIMEZONE")
    locale: Optional[str] = Field(None, alias="DAILYDISH_LOCALE")
    recent_history_size: int = Field(14, alias="RECENT_HISTORY_SIZE", ge=1)

    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(8000, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = {"env_file": ".env", "populate_by_name": True}


settings = Settings()
