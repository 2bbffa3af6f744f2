"""Settings, read from environment variables"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Self

ENV_PREFIX = "CHESS_DUEL_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)
    default_session_id: str = "default"

    @classmethod
    def from_env(cls) -> Self:
        return cls(
            host=_env("HOST", cls.host),
            port=int(_env("PORT", str(cls.port))),
            log_level=_env("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=tuple(
                origin.strip()
                for origin in _env("CORS_ORIGINS", ",".join(cls.cors_origins)).split(",")
                if origin.strip()
            ),
            default_session_id=_env("DEFAULT_SESSION", cls.default_session_id),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """One Settings instance per process"""
    return Settings.from_env()
