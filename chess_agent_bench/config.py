"""Configuration: .env loading, environment-derived agent context, run settings."""

import math
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from chess_agent_bench.types import (
    DRAW_RULE_STATUSES,
    AgentContext,
    GameStatus,
    Provider,
)

# Track whether environment has been loaded
_ENV_LOADED = False

CLOUD_PROVIDERS: tuple[Provider, ...] = ("openai", "anthropic", "google")

DEFAULT_GAMES = 5
DEFAULT_ENGINE_DEPTH = 15
DEFAULT_API_DELAY_SECONDS = 1.0
DEFAULT_AGENT_TIMEOUT_SECONDS = 60.0
DEFAULT_ENGINE_SKILL_LEVEL = 1000


def load_env(filename: str | None = None, override: bool = False) -> Path | None:
    """Load environment variables from .env file.

    Once loaded, subsequent calls are skipped unless override=True.
    Tests should use override=True to reload different configs.

    Args:
        filename: Optional .env filename. Defaults to ENV_FILE env var or '.env'.
        override: Whether to override existing environment variables.

    Returns:
        Path to the .env file that was loaded, or None if not found.
    """
    global _ENV_LOADED

    if _ENV_LOADED and not override:
        return None

    env_file = filename or os.environ.get("ENV_FILE", ".env")
    dotenv_path = find_dotenv(env_file, usecwd=True)

    if dotenv_path:
        load_dotenv(dotenv_path, override=override)
        _ENV_LOADED = True
        logger.debug(f"Loaded environment from: {dotenv_path}")
        return Path(dotenv_path)
    else:
        logger.debug(f"No .env file found: {env_file}")
        return None


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def agent_context_from_env(use_ccp: bool = True) -> AgentContext:
    """Build the model invocation context from AGENT_* environment variables.

    Args:
        use_ccp: Whether prompts carry positional/tactical commentary. Selects
            the 'bench' or 'bench-no-ccp' mode tag.

    Returns:
        Frozen context threaded through every model call.
    """
    provider = os.environ.get("AGENT_PROVIDER") or "google"
    api_key = os.environ.get("AGENT_API_KEY", "")

    if provider in CLOUD_PROVIDERS and not api_key:
        logger.warning(
            f"No API key found in environment variables! "
            f"Please set AGENT_API_KEY in your .env file for {provider} provider."
        )

    ollama_base_url = None
    if provider == "ollama":
        ollama_base_url = os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")

    return AgentContext(
        provider=provider,
        model=os.environ.get("AGENT_MODEL") or "gemini-2.5-flash",
        api_key=api_key,
        language=os.environ.get("AGENT_LANGUAGE") or "English",
        mode="bench" if use_ccp else "bench-no-ccp",
        is_routed=_env_flag("AGENT_ROUTED"),
        ollama_base_url=ollama_base_url,
    )


class BenchmarkConfig(BaseModel):
    """Settings for one benchmark run."""

    games: int = Field(default=DEFAULT_GAMES, ge=1)
    engine_depth: int = Field(default=DEFAULT_ENGINE_DEPTH, ge=1)
    api_delay_seconds: float = Field(default=DEFAULT_API_DELAY_SECONDS, ge=0)
    agent_timeout_seconds: float = Field(default=DEFAULT_AGENT_TIMEOUT_SECONDS, gt=0)
    engine_skill_level: int = Field(default=DEFAULT_ENGINE_SKILL_LEVEL, ge=0)
    max_moves: int = Field(default=200, ge=1)
    max_consecutive_errors: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=5.0, ge=0)
    use_ccp: bool = True
    display_board: bool = True
    results_dir: Path = Path(".")
    # Applied when the rules engine reports several draw conditions at once
    draw_priority: tuple[GameStatus, ...] = DRAW_RULE_STATUSES

    model_config = ConfigDict(frozen=True)

    @field_validator("draw_priority", mode="after")
    def validate_draw_priority(
        cls, v: tuple[GameStatus, ...]
    ) -> tuple[GameStatus, ...]:
        """Require every draw rule exactly once."""
        if (
            not all(status.is_draw_rule for status in v)
            or len(set(v)) != len(v)
            or len(v) != len(DRAW_RULE_STATUSES)
        ):
            raise ValueError(
                f"`draw_priority` must order exactly these statuses: "
                f"{[s.value for s in DRAW_RULE_STATUSES]}, got {[s.value for s in v]}"
            )
        return v


def parse_positional_number(
    raw: str | None,
    default: int | float,
    number_type: type[int] | type[float] = int,
) -> int | float:
    """Parse a positional CLI value, falling back to the default.

    Absent, unparsable, non-finite and zero values all yield the default.

    Args:
        raw: Raw argument text or None when the argument was omitted.
        default: Value used when raw is unusable.
        number_type: int for counts, float for durations in seconds.

    Returns:
        The parsed number or the default.
    """
    if raw is None:
        return default
    try:
        value = number_type(raw.strip())
    except ValueError:
        logger.warning(
            f"Could not parse '{raw}' as {number_type.__name__}, using {default}"
        )
        return default
    if not math.isfinite(value):
        logger.warning(f"'{raw}' is not a finite number, using {default}")
        return default
    return value or default
