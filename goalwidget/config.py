"""Application configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Stores
    goals_db_path: str = "data/goals.db"
    snapshot_db_path: str = "data/widget.db"

    # Renderer "refresh now" channel (websocket URL, unset at cold start)
    notify_url: Optional[str] = None
    notify_timeout_seconds: float = 5.0

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8000

    # Scheduler
    debounce_seconds: float = 0.3
    rotation_interval_minutes: int = 30  # keeps the CTA rotation fresh

    # Daily transitions
    end_of_day_start_hour: int = 23
    end_of_day_end_hour: int = 5
    long_term_focus_hours: list[int] = [14, 20]

    # How old a snapshot may get before the renderer stops trusting it
    snapshot_stale_minutes: int = 30

    # Logging
    log_level: str = "INFO"

    def transition_hours(self) -> list[int]:
        """Hours of the day at which the display context may change on its own."""
        hours = {self.end_of_day_start_hour, self.end_of_day_end_hour}
        for hour in self.long_term_focus_hours:
            hours.add(hour % 24)
            hours.add((hour + 1) % 24)
        return sorted(hours)


settings = Settings()
