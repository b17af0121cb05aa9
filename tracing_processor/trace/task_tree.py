"""Reconstruct the main-thread task tree from a flat trace event stream."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from tracing_processor.errors import FatalTraceLogicError, InvalidTaskTimingError
from tracing_processor.trace.events import (
    PHASE_BEGIN,
    PHASE_COMPLETE,
    PHASE_END,
    TraceEvent,
    to_trace_events,
)
from tracing_processor.trace.task_groups import OTHER, TASK_NAME_TO_GROUP, TaskGroup
from tracing_processor.trace.tracing_start import find_tracing_started_evt


logger = logging.getLogger(__name__)

_TASK_PHASES = (PHASE_COMPLETE, PHASE_BEGIN, PHASE_END)


@dataclass(eq=False)
class TaskNode:
    """
    A contiguous span of main-thread work.

    Times are in microseconds while the tree is built, then milliseconds
    relative to the first task once get_main_thread_tasks returns.
    """

    event: TraceEvent
    start_time: float
    end_time: float
    parent: "TaskNode | None" = field(default=None, repr=False)
    children: list["TaskNode"] = field(default_factory=list, repr=False)
    group: TaskGroup = OTHER
    attributable_url: str | None = None
    duration: float = math.nan
    self_time: float = math.nan

    def to_dict(self) -> dict:
        return {
            "name": self.event.name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "self_time": self.self_time,
            "group": self.group.id,
            "attributable_url": self.attributable_url,
            "child_count": len(self.children),
        }


def _create_new_task_node(event: TraceEvent, parent: TaskNode | None = None) -> TaskNode:
    if event.ph == PHASE_COMPLETE:
        end_time = event.ts + (event.dur or 0)
    else:
        end_time = math.nan

    task = TaskNode(event=event, start_time=event.ts, end_time=end_time, parent=parent)
    if parent is not None:
        parent.children.append(task)
    return task


def create_tasks_from_events(events: list[TraceEvent]) -> list[TaskNode]:
    """
    Build task nodes for the traced main thread.

    Returns every node (roots and descendants) in creation order; roots are
    the nodes without a parent.

    Raises:
        FatalTraceLogicError: on an End event that cannot close the open task
    """
    started_in_page = find_tracing_started_evt(events).started_in_page_evt

    tasks: list[TaskNode] = []
    current_task: TaskNode | None = None

    for event in events:
        if event.pid != started_in_page.pid or event.tid != started_in_page.tid:
            continue
        if event.ph not in _TASK_PHASES:
            continue

        # Complete events have no End marker, so close any task whose known
        # end time has already passed.
        while (
            current_task is not None
            and math.isfinite(current_task.end_time)
            and current_task.end_time <= event.ts
        ):
            current_task = current_task.parent

        if current_task is None:
            if event.ph == PHASE_END:
                raise FatalTraceLogicError(
                    f"Fatal trace logic error: '{event.name}' ended at {event.ts} with no open task"
                )
            current_task = _create_new_task_node(event)
            tasks.append(current_task)
            continue

        if event.ph in (PHASE_COMPLETE, PHASE_BEGIN):
            current_task = _create_new_task_node(event, current_task)
            tasks.append(current_task)
        else:
            if current_task.event.ph != PHASE_BEGIN:
                raise FatalTraceLogicError(
                    f"Fatal trace logic error: '{event.name}' ended at {event.ts} "
                    f"while '{current_task.event.name}' was not a Begin event"
                )
            current_task.end_time = event.ts
            current_task = current_task.parent

    return tasks


def _compute_self_times(root: TaskNode) -> None:
    stack = [(root, False)]
    while stack:
        task, children_done = stack.pop()
        if not children_done:
            stack.append((task, True))
            stack.extend((child, False) for child in task.children)
            continue
        child_time = sum(child.duration for child in task.children)
        task.duration = task.end_time - task.start_time
        task.self_time = task.duration - child_time


def _task_url(task: TaskNode) -> str | None:
    data = task.event.data
    stack_frames = data.get("stackTrace") or [{"url": None}]
    return data.get("url") or stack_frames[0].get("url")


def _compute_attributable_urls(root: TaskNode) -> None:
    stack: list[tuple[TaskNode, str | None]] = [(root, None)]
    while stack:
        task, parent_url = stack.pop()
        task.attributable_url = parent_url or _task_url(task)
        stack.extend((child, task.attributable_url) for child in reversed(task.children))


def _compute_task_groups(root: TaskNode, name_to_group: Mapping[str, TaskGroup]) -> None:
    stack: list[tuple[TaskNode, TaskGroup | None]] = [(root, None)]
    while stack:
        task, parent_group = stack.pop()
        task.group = name_to_group.get(task.event.name) or parent_group or OTHER
        stack.extend((child, task.group) for child in reversed(task.children))


def get_main_thread_tasks(
    trace_events: list[Any],
    name_to_group: Mapping[str, TaskGroup] | None = None,
) -> list[TaskNode]:
    """
    Reconstruct and annotate the main-thread task tree.

    Args:
        trace_events: Time-ordered trace events (TraceEvent or decoded dicts)
        name_to_group: Event name to work category table

    Returns:
        Flat list of every task, with timings in ms relative to the first task

    Raises:
        TraceProcessingError: if the trace is structurally broken
    """
    if name_to_group is None:
        name_to_group = TASK_NAME_TO_GROUP

    events = to_trace_events(trace_events)
    tasks = create_tasks_from_events(events)

    for task in tasks:
        if task.parent is not None:
            continue
        _compute_self_times(task)
        _compute_attributable_urls(task)
        _compute_task_groups(task, name_to_group)

    # The first task is assumed to be the earliest since events are time-ordered.
    first_ts = tasks[0].start_time if tasks else 0
    for task in tasks:
        task.start_time = (task.start_time - first_ts) / 1000
        task.end_time = (task.end_time - first_ts) / 1000
        task.duration /= 1000
        task.self_time /= 1000

        if not math.isfinite(task.self_time) or not math.isfinite(task.duration):
            raise InvalidTaskTimingError(
                f"Invalid task timing data for '{task.event.name}'"
            )

    logger.debug(
        "Built %d main thread tasks (%d top level)",
        len(tasks),
        sum(1 for task in tasks if task.parent is None)
    )
    return tasks
