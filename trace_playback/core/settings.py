"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_SPEEDS = ("slow", "medium", "fast")


@dataclass(frozen=True)
class Settings:
    """Process-wide defaults for the player and the demos.

    Algorithm safety limits are not configurable; they live next to the
    code that enforces them.
    """

    default_speed: str = "medium"
    log_level: str = "INFO"
    port: int = 8050

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        speed = env.get("TRACE_PLAYBACK_SPEED", cls.default_speed).lower()
        if speed not in _SPEEDS:
            raise ValueError(
                f"TRACE_PLAYBACK_SPEED must be one of {', '.join(_SPEEDS)}, got {speed!r}"
            )
        return cls(
            default_speed=speed,
            log_level=env.get("TRACE_PLAYBACK_LOG_LEVEL", cls.log_level).upper(),
            port=int(env.get("PORT", cls.port)),
        )


def configure_logging(level: str | int = "INFO") -> None:
    """Install a basic stderr handler on the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
