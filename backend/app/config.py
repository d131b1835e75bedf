from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/ledger.db"
    database_echo: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Carryover
    carryover_auto_check: bool = True
    carryover_general_name: str = "Balance Carryover"
    carryover_concept_name: str = "Carried Balance"

    # Scheduler (monthly carryover job)
    scheduler_enabled: bool = True
    carryover_cron_day: int = 1
    carryover_cron_hour: int = 0
    carryover_cron_minute: int = 15

    # Report labels for transactions without catalog references
    label_no_general: str = "Uncategorized"
    label_no_concept: str = "No concept"
    label_no_subconcept: str = "No subconcept"
    label_no_provider: str = "No provider"
    label_missing_path: str = "N/A"

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url
