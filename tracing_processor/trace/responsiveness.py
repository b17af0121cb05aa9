"""Estimate input queueing delay from main-thread top-level tasks.

The model treats idle time in a window as riskless and walks the sorted task
durations as a cumulative distribution over elapsed time. Each unresolved
task counts towards the height of a CDF step because, in the worst case, all
of them could be queued ahead of a hypothetical high-priority input.
"""

import logging
import math
from typing import NamedTuple, Sequence

from tracing_processor.config import (
    BASE_RESPONSE_LATENCY,
    DEFAULT_PERCENTILES,
    SCHEDULABLE_TASK_TITLE,
    SCHEDULABLE_TASK_TITLE_ALT,
)
from tracing_processor.errors import NoTopLevelEventsError
from tracing_processor.trace.events import TraceEvent
from tracing_processor.trace.tab_trace import TabTrace


logger = logging.getLogger(__name__)


class ToplevelEvent(NamedTuple):
    """A scheduler macrotask, in ms relative to navigation start."""

    start: float
    end: float
    duration: float


class TopLevelDurations(NamedTuple):
    durations: list[float]
    clipped_length: float


class RiskPercentile(NamedTuple):
    percentile: float
    time: float


class _WalkStep(NamedTuple):
    """
    One step of the CDF walk.

    A "clip" step stands for the part of the window-overlapping task that
    lies beyond the window end; it is consumed before that task's full
    duration is resolved.
    """

    kind: str
    length: float


_TASK = "task"
_CLIP = "clip"


def is_scheduleable_task(event: TraceEvent) -> bool:
    return event.name in (SCHEDULABLE_TASK_TITLE, SCHEDULABLE_TASK_TITLE_ALT)


def get_main_thread_top_level_events(
    tab_trace: TabTrace,
    start_time: float = 0,
    end_time: float = math.inf,
) -> list[ToplevelEvent]:
    """
    Top-level scheduler tasks overlapping [start_time, end_time].

    Raises:
        NoTopLevelEventsError: if no task overlaps the window; a page load
            always has at least one, so none means the trace is broken
    """
    navigation_start_ts = tab_trace.navigation_start_evt.ts
    top_level_events = []
    # main_thread_events is already sorted by start
    for event in tab_trace.main_thread_events:
        if not is_scheduleable_task(event) or not event.dur:
            continue

        start = (event.ts - navigation_start_ts) / 1000
        end = (event.ts + event.dur - navigation_start_ts) / 1000
        if start > end_time or end < start_time:
            continue

        top_level_events.append(ToplevelEvent(start, end, event.dur / 1000))

    if not top_level_events:
        raise NoTopLevelEventsError(
            f"Could not find any top level events between {start_time}ms and {end_time}ms"
        )

    logger.debug("Found %d top level events", len(top_level_events))
    return top_level_events


def get_main_thread_top_level_event_durations(
    top_level_events: Sequence[ToplevelEvent],
    start_time: float = 0,
    end_time: float = math.inf,
) -> TopLevelDurations:
    """
    Durations (ms, ascending) of top-level events within a window.

    The part of a task before the window is discarded. The part of a task
    after the window stays in its duration and is reported as clipped_length.
    """
    durations = []
    clipped_length = 0

    for event in top_level_events:
        if event.end < start_time or event.start > end_time:
            continue

        duration = event.duration
        event_start = event.start
        if event_start < start_time:
            event_start = start_time
            duration = event.end - start_time

        if event.end > end_time:
            clipped_length = duration - (end_time - event_start)

        durations.append(duration)

    durations.sort()
    return TopLevelDurations(durations, clipped_length)


def _risk_percentiles(
    durations: Sequence[float],
    total_time: float,
    percentiles: Sequence[float],
    clipped_length: float = 0,
) -> list[RiskPercentile]:
    """
    Queueing time at each percentile for a population of task durations.

    If one duration overlaps the end of the window, its full length belongs in
    durations and the length outside the window in clipped_length: a 50ms
    task starting 10ms before the window end contributes 50 to durations and
    40 to clipped_length.

    Args:
        durations: Task durations in ms, ascending
        total_time: Length of the window in ms
        percentiles: Percentiles of interest, ascending
        clipped_length: Length clipped from a task overlapping the window end

    Returns:
        One RiskPercentile per requested percentile, in the same order
    """
    busy_time = sum(durations) - clipped_length

    # Idle time is already complete.
    completed_time = total_time - busy_time
    step = _WalkStep(_TASK, 0)
    cdf_time = completed_time
    results = []

    duration_index = -1
    remaining_count = len(durations) + 1
    if clipped_length > 0:
        # The clipped task has not started yet.
        remaining_count -= 1

    for percentile in percentiles:
        percentile_time = percentile * total_time
        while cdf_time < percentile_time and duration_index < len(durations) - 1:
            if step.kind == _CLIP:
                completed_time -= step.length
                remaining_count += 1
            else:
                completed_time += step.length
                remaining_count -= 1

            if 0 < clipped_length < durations[duration_index + 1]:
                step = _WalkStep(_CLIP, clipped_length)
                clipped_length = 0
            else:
                duration_index += 1
                step = _WalkStep(_TASK, durations[duration_index])

            # CDF value (scaled by total_time) at the end of this step.
            cdf_time = completed_time + step.length * remaining_count

        # Negative values fall in idle time: no wait by definition.
        wait = max(0, (percentile_time - completed_time) / remaining_count)
        results.append(RiskPercentile(percentile, wait + BASE_RESPONSE_LATENCY))

    return results


def get_risk_to_responsiveness(
    top_level_events: Sequence[ToplevelEvent],
    start_time: float,
    end_time: float,
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
) -> list[RiskPercentile]:
    """
    Maximum queueing time (ms) of a high priority input within a window.

    Args:
        top_level_events: Main thread top-level events, ms relative to navstart
        start_time: Window start, ms relative to navstart
        end_time: Window end, ms relative to navstart
        percentiles: Percentiles to compute, in any order

    Returns:
        RiskPercentile list sorted by percentile
    """
    total_time = end_time - start_time
    sorted_percentiles = sorted(percentiles)

    window = get_main_thread_top_level_event_durations(top_level_events, start_time, end_time)
    return _risk_percentiles(
        window.durations,
        total_time,
        sorted_percentiles,
        window.clipped_length
    )
