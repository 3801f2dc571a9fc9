"""Application settings, read from the environment (a local .env file is loaded first)."""

import os
from dataclasses import dataclass
from typing import Self

from dotenv import load_dotenv

from src.core.exceptions import InvalidConfigurationError
from src.core.shared_types import TimeoutPolicy

TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in TRUTHY:
        return True
    if value in FALSY:
        return False
    raise InvalidConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_int(name: str, raw: str, minimum: int) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise InvalidConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise InvalidConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./amazons.db"
    default_board_size: int = 10
    default_turn_timer_ms: int = 0
    timeout_policy: TimeoutPolicy = TimeoutPolicy.FORFEIT_MATCH
    allow_origin_burn: bool = True
    log_level: str = "INFO"
    debug: bool = False

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> Self:
        """Build settings from AMAZONS_* environment variables, falling back to the defaults above."""
        if load_env_file:
            load_dotenv()

        env = os.environ
        policy_raw = env.get("AMAZONS_TIMEOUT_POLICY", cls.timeout_policy.value)
        if policy_raw not in {policy.value for policy in TimeoutPolicy}:
            raise InvalidConfigurationError(
                f"AMAZONS_TIMEOUT_POLICY must be one of {', '.join(TimeoutPolicy)}, got {policy_raw!r}"
            )

        return cls(
            database_url=env.get("AMAZONS_DATABASE_URL", cls.database_url),
            default_board_size=_parse_int(
                "AMAZONS_DEFAULT_BOARD_SIZE",
                env.get("AMAZONS_DEFAULT_BOARD_SIZE", str(cls.default_board_size)),
                minimum=1,
            ),
            default_turn_timer_ms=_parse_int(
                "AMAZONS_DEFAULT_TURN_TIMER_MS",
                env.get("AMAZONS_DEFAULT_TURN_TIMER_MS", str(cls.default_turn_timer_ms)),
                minimum=0,
            ),
            timeout_policy=TimeoutPolicy(policy_raw),
            allow_origin_burn=_parse_bool(
                "AMAZONS_ALLOW_ORIGIN_BURN",
                env.get("AMAZONS_ALLOW_ORIGIN_BURN", str(cls.allow_origin_burn)),
            ),
            log_level=env.get("AMAZONS_LOG_LEVEL", cls.log_level).upper(),
            debug=_parse_bool("AMAZONS_DEBUG", env.get("AMAZONS_DEBUG", str(cls.debug))),
        )
