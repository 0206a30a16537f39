"""Process level configuration. Read once from the environment at startup."""

import logging
import os
from dataclasses import dataclass, field
from typing import Self

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> Self:
        """Every setting can be overridden with a CHESS_* environment variable."""
        return cls(
            host=os.getenv("CHESS_HOST", "0.0.0.0"),
            port=int(os.getenv("CHESS_PORT", "3001")),
            log_level=os.getenv("CHESS_LOG_LEVEL", "INFO").upper(),
            cors_origins=_split_origins(os.getenv("CHESS_CORS_ORIGINS", "*")),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
