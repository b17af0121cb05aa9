"""Run the main-thread analysis pipeline over a Chrome trace."""

import json
import logging
import math
from typing import Any, Sequence

from tracing_processor.config import DEFAULT_PERCENTILES
from tracing_processor.errors import TraceFileError
from tracing_processor.trace.responsiveness import (
    get_main_thread_top_level_events,
    get_risk_to_responsiveness,
)
from tracing_processor.trace.tab_trace import build_tab_trace
from tracing_processor.trace.task_tree import TaskNode, get_main_thread_tasks


logger = logging.getLogger(__name__)


def _set_assumption(assumptions: dict, key: str, note: str) -> None:
    if key not in assumptions:
        assumptions[key] = note


def load_trace_events(trace_path: str) -> list[dict]:
    """
    Read trace events from a JSON trace file.

    Accepts either a {"traceEvents": [...]} object or a bare event list.
    """
    try:
        with open(trace_path, "r") as f:
            trace_json = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise TraceFileError(f"Unable to read trace file {trace_path}: {exc}") from exc

    if isinstance(trace_json, dict):
        trace_json = trace_json.get("traceEvents")
    if not isinstance(trace_json, list):
        raise TraceFileError(f"No trace events found in {trace_path}")
    return trace_json


def _self_time_by_group(tasks: list[TaskNode]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for task in tasks:
        totals[task.group.id] = totals.get(task.group.id, 0.0) + task.self_time
    return totals


def _self_time_by_url(tasks: list[TaskNode], top_n: int) -> list[dict]:
    totals: dict[str, float] = {}
    for task in tasks:
        if not task.attributable_url:
            continue
        totals[task.attributable_url] = totals.get(task.attributable_url, 0.0) + task.self_time
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:top_n]
    return [{"url": url, "self_time_ms": total} for url, total in ranked]


def _dominant_group(group_totals: dict[str, float]) -> tuple[str | None, str | None]:
    if not group_totals:
        return None, "No main thread tasks to rank"
    max_value = max(group_totals.values())
    if max_value <= 0:
        return None, "All group totals are zero"
    winners = [name for name, value in group_totals.items() if value == max_value]
    if len(winners) != 1:
        return None, "Group totals have a tie"
    return winners[0], None


def analyze_events(
    trace_events: list[Any],
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
    start_time: float = 0,
    end_time: float | None = None,
    top_n: int = 5,
) -> dict:
    """
    Analyze decoded trace events and return a JSON-serializable result.

    Args:
        trace_events: Trace events in original trace order
        percentiles: Percentiles of interest for input queueing delay
        start_time: Window start in ms relative to navigation start
        end_time: Window end in ms relative to navigation start; defaults to
            the end of the trace
        top_n: Number of longest tasks and URLs to report

    Raises:
        TraceProcessingError: if the trace cannot be analyzed
    """
    assumptions: dict = {}

    tasks = get_main_thread_tasks(trace_events)
    tab_trace = build_tab_trace(trace_events)

    if end_time is None or not math.isfinite(end_time):
        end_time = tab_trace.trace_end_ms
        _set_assumption(
            assumptions,
            "window",
            f"Window end defaulted to trace end ({end_time:.2f}ms after navigationStart)"
        )

    top_level_events = get_main_thread_top_level_events(tab_trace, start_time, end_time)
    risk = get_risk_to_responsiveness(top_level_events, start_time, end_time, percentiles)

    root_tasks = [task for task in tasks if task.parent is None]
    longest = sorted(root_tasks, key=lambda task: task.duration, reverse=True)[:top_n]
    group_totals = _self_time_by_group(tasks)
    dominant_group, dominant_reason = _dominant_group(group_totals)
    if dominant_reason:
        _set_assumption(assumptions, "dominant_group", dominant_reason)

    _set_assumption(
        assumptions,
        "tasks",
        "Task times are in ms relative to the first main thread task"
    )
    _set_assumption(
        assumptions,
        "top_level_events",
        "Top level events are scheduler macrotasks, in ms relative to navigationStart"
    )

    total_self_time = sum(task.self_time for task in tasks)
    logger.info(
        "Analyzed %d tasks (%.2fms self time), %d top level events",
        len(tasks),
        total_self_time,
        len(top_level_events)
    )

    return {
        "tracing_started": {
            "pid": tab_trace.tracing_started_evt.pid,
            "tid": tab_trace.tracing_started_evt.tid,
            "frame_id": tab_trace.frame_id
        },
        "tasks": {
            "count": len(tasks),
            "top_level_count": len(root_tasks),
            "total_self_time_ms": total_self_time,
            "self_time_by_group_ms": group_totals,
            "self_time_by_url": _self_time_by_url(tasks, top_n),
            "longest": [task.to_dict() for task in longest]
        },
        "responsiveness": {
            "window": {
                "start_ms": start_time,
                "end_ms": end_time
            },
            "top_level_event_count": len(top_level_events),
            "risk_percentiles": [
                {"percentile": item.percentile, "time_ms": item.time} for item in risk
            ]
        },
        "summary": {
            "dominant_group": dominant_group,
            "longest_task_name": longest[0].event.name if longest else None
        },
        "assumptions": assumptions
    }


def analyze_trace(
    trace_path: str,
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
    start_time: float = 0,
    end_time: float | None = None,
    top_n: int = 5,
) -> dict:
    """
    Analyze a JSON trace file and return structured results.

    Args:
        trace_path: Path to the trace file
    """
    trace_events = load_trace_events(trace_path)
    logger.debug("Loaded %d trace events from %s", len(trace_events), trace_path)
    result = analyze_events(trace_events, percentiles, start_time, end_time, top_n)
    result["trace_path"] = trace_path
    return result
