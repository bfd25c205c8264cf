# backend/infplatform/config.py

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/inf.db"
    redis_url: str | None = None

    # Store round trips
    db_timeout_seconds: float = 5.0
    store_retry_attempts: int = 1

    # Background phase sync (0 = disabled)
    phase_sync_interval_seconds: int = 60

    # Booking policy
    enforce_time_conflicts: bool = True
    one_booking_per_company: bool = True
    strict_regeneration: bool = True

    # Defaults for newly created events
    default_phase1_max_bookings: int = 3
    default_phase2_max_bookings: int = 6

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative SQLite paths are anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()

