"""Analysis defaults and environment-driven configuration."""

import math
import os
from dataclasses import dataclass


# The ideal input response latency: the time between the input task and the
# first frame of the response.
BASE_RESPONSE_LATENCY = 16

SCHEDULABLE_TASK_TITLE = "TaskQueueManager::ProcessTaskFromWorkQueue"
SCHEDULABLE_TASK_TITLE_ALT = "ThreadControllerImpl::DoWork"

DEFAULT_PERCENTILES = (0.5, 0.75, 0.9, 0.99, 1.0)

PERCENTILES_ENV = "TRACING_PROCESSOR_PERCENTILES"
LOG_LEVEL_ENV = "TRACING_PROCESSOR_LOG_LEVEL"


def parse_percentiles(value: str) -> tuple[float, ...]:
    """
    Parse a comma-separated percentile list such as "0.5,0.9,1".

    Returns:
        Percentiles sorted in ascending order

    Raises:
        ValueError: if a value is not a number in (0, 1]
    """
    percentiles = []
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        percentile = float(token)
        if not 0 < percentile <= 1:
            raise ValueError(f"Percentile must be in (0, 1], got {token}")
        percentiles.append(percentile)
    if not percentiles:
        raise ValueError("At least one percentile is required")
    return tuple(sorted(percentiles))


@dataclass
class AnalysisConfig:
    percentiles: tuple[float, ...] = DEFAULT_PERCENTILES
    start_time: float = 0
    end_time: float = math.inf
    log_level: str = "WARNING"


def load_config(
    percentiles: str | None = None,
    start_time: float | None = None,
    end_time: float | None = None,
    log_level: str | None = None,
) -> AnalysisConfig:
    """
    Build an AnalysisConfig, letting explicit arguments win over env vars.
    """
    config = AnalysisConfig()

    raw_percentiles = percentiles or os.getenv(PERCENTILES_ENV)
    if raw_percentiles:
        config.percentiles = parse_percentiles(raw_percentiles)

    if start_time is not None:
        config.start_time = start_time
    if end_time is not None:
        config.end_time = end_time
    if config.end_time < config.start_time:
        raise ValueError(
            f"Window end ({config.end_time}) is before window start ({config.start_time})"
        )

    config.log_level = (log_level or os.getenv(LOG_LEVEL_ENV) or config.log_level).upper()
    return config
