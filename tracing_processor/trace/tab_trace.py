"""Summarize the parts of a trace that belong to the traced tab."""

import logging
from dataclasses import dataclass
from typing import Any

from tracing_processor.errors import NoNavigationStartError
from tracing_processor.trace.events import TraceEvent, to_trace_events
from tracing_processor.trace.tracing_start import find_tracing_started_evt


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TabTrace:
    main_thread_events: list[TraceEvent]
    navigation_start_evt: TraceEvent
    tracing_started_evt: TraceEvent
    frame_id: str | None
    trace_end_ts: float

    @property
    def trace_end_ms(self) -> float:
        """Trace end in ms relative to navigation start."""
        return (self.trace_end_ts - self.navigation_start_evt.ts) / 1000


def build_tab_trace(trace_events: list[Any]) -> TabTrace:
    """
    Collect the traced renderer's main thread events and navigation start.

    Raises:
        NoTracingStartedError: if the traced thread cannot be located
        NoNavigationStartError: if the frame has no navigationStart event
    """
    events = to_trace_events(trace_events)
    started_in_page, frame_id = find_tracing_started_evt(events)

    # sorted() is stable, so events sharing a timestamp keep their order.
    main_thread_events = sorted(
        (
            event for event in events
            if event.pid == started_in_page.pid and event.tid == started_in_page.tid
        ),
        key=lambda event: event.ts
    )

    navigation_start = next(
        (
            event for event in events
            if event.name == "navigationStart" and event.args.get("frame") == frame_id
        ),
        None
    )
    if navigation_start is None:
        raise NoNavigationStartError()

    trace_end_ts = max(
        (event.ts + (event.dur or 0) for event in events if event.ts),
        default=navigation_start.ts
    )

    logger.debug(
        "Tab trace has %d main thread events; navigationStart at %s",
        len(main_thread_events),
        navigation_start.ts
    )
    return TabTrace(
        main_thread_events=main_thread_events,
        navigation_start_evt=navigation_start,
        tracing_started_evt=started_in_page,
        frame_id=frame_id,
        trace_end_ts=trace_end_ts,
    )
