from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Remote ledger API
    api_base_url: str = "http://localhost:8000/api"
    api_token: str = ""  # Bearer token, sent only when set
    api_timeout_seconds: float = 30.0

    # Display
    default_currency: str = "USD"

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        """Currency codes are compared upper-case"""
        return v.strip().upper()

    # PDF report
    report_title: str = "FinSight AI - Expense Report"
    report_logo_path: Optional[Path] = None
    export_prefix: str = "finsight"

    # Delivery: native writes go to documents_dir, fallback downloads to downloads_dir
    native_filesystem: bool = False
    documents_dir: Path = Path.home() / "Documents"
    downloads_dir: Path = Path("./downloads")

    # Start of the "all" period when the account creation date is unknown
    all_time_floor: date = date(2000, 1, 1)

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "FINSIGHT_"
        case_sensitive = False


settings = Settings()
