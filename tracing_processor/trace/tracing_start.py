"""Locate the renderer main thread a trace was recorded for."""

import logging
from typing import NamedTuple

from tracing_processor.errors import NoTracingStartedError
from tracing_processor.trace.events import PHASE_METADATA, TraceEvent


logger = logging.getLogger(__name__)


class TracingStarted(NamedTuple):
    started_in_page_evt: TraceEvent
    frame_id: str | None


def _is_renderer_main_thread_name(event: TraceEvent, pid: int | None) -> bool:
    return (
        event.pid == pid
        and event.ph == PHASE_METADATA
        and event.cat == "__metadata"
        and event.name == "thread_name"
        and event.args.get("name") == "CrRendererMain"
    )


def _from_started_in_browser(events: list[TraceEvent]) -> TraceEvent | None:
    started_in_browser = next(
        (event for event in events if event.name == "TracingStartedInBrowser"),
        None
    )
    if started_in_browser is None:
        return None

    frames = started_in_browser.data.get("frames")
    if not frames:
        return None

    main_frame = next((frame for frame in frames if not frame.get("parent")), None)
    if main_frame is None:
        return None

    pid = main_frame.get("processId")
    thread_name_evt = next(
        (event for event in events if _is_renderer_main_thread_name(event, pid)),
        None
    )
    if thread_name_evt is None:
        logger.debug("No CrRendererMain thread found for main frame pid=%s", pid)
        return None

    return started_in_browser.with_changes(
        pid=pid,
        tid=thread_name_evt.tid,
        name="TracingStartedInPage",
        args={"data": {"page": main_frame.get("frame")}},
    )


def find_tracing_started_evt(events: list[TraceEvent]) -> TracingStarted:
    """
    Find the bootstrap event identifying the traced renderer main thread.

    Prefers TracingStartedInBrowser (newer Chrome) and falls back to the first
    TracingStartedInPage event for older versions.

    Raises:
        NoTracingStartedError: if neither bootstrap event is usable
    """
    started_in_page = _from_started_in_browser(events)

    if started_in_page is None:
        # The first TracingStartedInPage is the renderer thread of interest; it
        # can appear slightly after navigationStart.
        started_in_page = next(
            (event for event in events if event.name == "TracingStartedInPage"),
            None
        )

    if started_in_page is None:
        raise NoTracingStartedError()

    frame_id = started_in_page.data.get("page")
    logger.debug(
        "Tracing started for pid=%s tid=%s frame=%s",
        started_in_page.pid,
        started_in_page.tid,
        frame_id
    )
    return TracingStarted(started_in_page, frame_id)
