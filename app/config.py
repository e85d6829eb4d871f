from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "Dust2 Tactics Simulator"
    debug: bool = False
    api_version: str = "v1"

    # Tick loop
    tick_seconds: float = 1.0  # simulated seconds per tick
    tick_interval_ms: int = 1000  # wall-clock pacing of the async loop
    combat_interval_ms: int = 1000  # simulated ms between combat passes (>= 500)

    # Round timers (seconds)
    warmup_time: int = 15
    freeze_time: int = 15
    round_time: int = 115
    bomb_timer: int = 40
    post_round_time: int = 5
    mid_round_call_duration: int = 10

    # Match
    team_size: int = 5
    default_max_rounds: int = 30
    starting_money: int = 800
    event_log_size: int = 200

    @field_validator("combat_interval_ms")
    @classmethod
    def _combat_cadence_floor(cls, value: int) -> int:
        if value < 500:
            raise ValueError("combat_interval_ms must be at least 500")
        return value

    @field_validator("tick_seconds")
    @classmethod
    def _positive_tick(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("tick_seconds must be positive")
        return value

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
