"""Application settings loaded from environment variables."""

from pathlib import Path
from typing import Self

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Tutordesk"
    APP_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    DATA_DIR: Path = BASE_DIR / "data"
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'data' / 'tutordesk.db'}"

    # Weighted progress policy, shared by overall, subject and monthly scores
    PROGRESS_ATTENDANCE_WEIGHT: float = 0.4
    PROGRESS_SCORE_WEIGHT: float = 0.6

    DEFAULT_TIME_RANGE: str = "last_3_months"
    EMPTY_TREND_PROGRESS: int = 50

    @model_validator(mode="after")
    def check_weights(self) -> Self:
        """Reject weightings that cannot produce a 0-100 blend."""
        if self.PROGRESS_ATTENDANCE_WEIGHT < 0 or self.PROGRESS_SCORE_WEIGHT < 0:
            raise ValueError("Progress weights must be non-negative")
        total = self.PROGRESS_ATTENDANCE_WEIGHT + self.PROGRESS_SCORE_WEIGHT
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Progress weights must sum to 1 (got {total})")
        return self


settings = Settings()
