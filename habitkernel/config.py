from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage: "file" reads config_dir/{habits,log}, "sql" reads database_url
    storage_backend: str = "file"
    config_dir: str = "~/.config/habitkernel"
    database_url: str = "postgresql+asyncpg://localhost:5432/habitkernel"

    default_tz: str = "UTC"  # decides what "today" is
    kernel_api_key: str | None = None
    log_level: str = "INFO"

    # Rendering
    count_back: int = 100  # graph shows count_back + 1 days
    todo_days_back: int = 1
    colorless: bool = False
    graph_workers: int | None = None  # None = one per habit, capped at 32

    # At-risk look-ahead in days; None = interval // 7 + 1 per habit
    warning_days: int | None = None

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("default_tz")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        if value.upper() == "UTC":
            return "UTC"
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {value}") from None
        return value


settings = Settings()
