"""Main-thread task tree reconstruction and responsiveness estimation."""

from tracing_processor.trace.events import TraceEvent
from tracing_processor.trace.responsiveness import (
    RiskPercentile,
    ToplevelEvent,
    get_main_thread_top_level_event_durations,
    get_main_thread_top_level_events,
    get_risk_to_responsiveness,
    is_scheduleable_task
)
from tracing_processor.trace.tab_trace import TabTrace, build_tab_trace
from tracing_processor.trace.task_groups import TASK_GROUPS, TaskGroup
from tracing_processor.trace.task_tree import TaskNode, get_main_thread_tasks
from tracing_processor.trace.tracing_start import find_tracing_started_evt

__all__ = [
    "RiskPercentile",
    "TASK_GROUPS",
    "TabTrace",
    "TaskGroup",
    "TaskNode",
    "ToplevelEvent",
    "TraceEvent",
    "build_tab_trace",
    "find_tracing_started_evt",
    "get_main_thread_tasks",
    "get_main_thread_top_level_event_durations",
    "get_main_thread_top_level_events",
    "get_risk_to_responsiveness",
    "is_scheduleable_task"
]
