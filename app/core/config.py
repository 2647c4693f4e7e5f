from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",  # variáveis a mais no .env não quebram o boot
    )

    # app
    app_name: str = "Croquetia Fleet"
    app_env: str = "dev"
    log_level: str = "INFO"

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # retry (toda chamada de rede para um controller)
    retry_max_retries: int = 5
    retry_initial_delay_s: float = 0.05
    retry_delay_s: float = 0.1

    # settle: o reload do controller é assíncrono e não avisa quando termina
    settle_strategy: Literal["fixed", "poll"] = "fixed"
    settle_delay_s: float = 0.25
    settle_poll_interval_s: float = 0.1
    settle_timeout_s: float = 2.0
    settle_stable_polls: int = 2

    # programs
    controls_suffix: str = ".c"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
