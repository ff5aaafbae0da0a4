from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from guru_insight.core.errors import ConfigError
from guru_insight.core.expand.expand_hint import DEFAULT_CAPACITY


ENV_TABLE = "GURU_INSIGHT_TABLE"
ENV_TOKENS = "GURU_INSIGHT_TOKENS"
ENV_BUFFER = "GURU_INSIGHT_BUFFER"
ENV_LOG_LEVEL = "GURU_INSIGHT_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class InsightConfig:
    table_file: Optional[str] = None  # None: bundled data/alerts.yaml
    token_file: Optional[str] = None  # None: built-in token table only
    buffer_capacity: int = DEFAULT_CAPACITY
    log_level: str = "WARNING"


def load_config(
    *,
    table_file: Optional[str] = None,
    token_file: Optional[str] = None,
    log_level: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> InsightConfig:
    """Resolve settings: explicit arguments, then environment, then defaults."""
    environ = os.environ if env is None else env

    capacity = DEFAULT_CAPACITY
    raw_capacity = environ.get(ENV_BUFFER)
    if raw_capacity:
        try:
            capacity = int(raw_capacity)
        except ValueError:
            capacity = 0
        if capacity < 1:
            raise ConfigError(
                code="E_CONFIG_INVALID",
                message=f"{ENV_BUFFER} must be a positive integer, got {raw_capacity!r}",
                path=ENV_BUFFER,
            )

    level = (log_level or environ.get(ENV_LOG_LEVEL) or "WARNING").upper()
    if level not in LOG_LEVELS:
        raise ConfigError(
            code="E_CONFIG_INVALID",
            message=f"unknown log level: {level} (choose one of: {', '.join(LOG_LEVELS)})",
            path="log_level",
        )

    return InsightConfig(
        table_file=table_file or environ.get(ENV_TABLE) or None,
        token_file=token_file or environ.get(ENV_TOKENS) or None,
        buffer_capacity=capacity,
        log_level=level,
    )
