from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    kura_env: str = "dev"

    # --- Snapshot source (Apps Script web app published from the sheet) ---
    kura_sheet_script_url: str | None = None
    # link shown to the user for editing the sheet; never fetched
    kura_spreadsheet_url: str | None = None
    kura_fetch_timeout_seconds: float = 30.0

    # --- Dashboard defaults ---
    kura_default_grouping: Literal["individual", "name", "owner"] = "name"
    kura_trend_top_n: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",  # don't crash on other future vars
    }


settings = Settings()
