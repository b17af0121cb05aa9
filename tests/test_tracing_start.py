import unittest

from tracing_processor.errors import NoTracingStartedError
from tracing_processor.trace.events import TraceEvent, to_trace_events
from tracing_processor.trace.tracing_start import find_tracing_started_evt


def _started_in_browser(frames):
    return {
        "name": "TracingStartedInBrowser", "ph": "I", "pid": 1, "tid": 1, "ts": 100,
        "args": {"data": {"frames": frames}}
    }


def _thread_name(pid, tid, name="CrRendererMain"):
    return {
        "name": "thread_name", "ph": "M", "cat": "__metadata", "pid": pid, "tid": tid,
        "ts": 0, "args": {"name": name}
    }


def _started_in_page(pid, tid, page):
    return {
        "name": "TracingStartedInPage", "ph": "I", "pid": pid, "tid": tid, "ts": 50,
        "args": {"data": {"page": page}}
    }


class TestFindTracingStartedEvt(unittest.TestCase):
    def test_prefers_started_in_browser_main_frame(self):
        events = to_trace_events([
            _thread_name(11, 21),
            _thread_name(10, 19, name="Compositor"),
            _thread_name(10, 20),
            _started_in_browser([
                {"frame": "child", "parent": "main", "processId": 11},
                {"frame": "main", "processId": 10},
            ]),
            _started_in_page(99, 98, "legacy"),
        ])

        started, frame_id = find_tracing_started_evt(events)
        self.assertEqual(started.name, "TracingStartedInPage")
        self.assertEqual(started.pid, 10)
        self.assertEqual(started.tid, 20)
        self.assertEqual(started.ts, 100)
        self.assertEqual(frame_id, "main")

    def test_synthesized_event_leaves_source_untouched(self):
        events = to_trace_events([
            _started_in_browser([{"frame": "main", "processId": 10}]),
            _thread_name(10, 20),
        ])
        find_tracing_started_evt(events)
        self.assertEqual(events[0].name, "TracingStartedInBrowser")
        self.assertEqual(events[0].pid, 1)

    def test_falls_back_to_started_in_page_without_renderer_thread(self):
        events = to_trace_events([
            _started_in_browser([{"frame": "main", "processId": 10}]),
            _started_in_page(5, 6, "legacy-frame"),
            _started_in_page(7, 8, "second"),
        ])
        started, frame_id = find_tracing_started_evt(events)
        self.assertEqual((started.pid, started.tid), (5, 6))
        self.assertEqual(frame_id, "legacy-frame")

    def test_falls_back_when_browser_event_has_no_frames(self):
        events = to_trace_events([
            {"name": "TracingStartedInBrowser", "ph": "I", "pid": 1, "tid": 1, "ts": 0, "args": {}},
            _started_in_page(5, 6, "legacy-frame"),
        ])
        started, _ = find_tracing_started_evt(events)
        self.assertEqual((started.pid, started.tid), (5, 6))

    def test_missing_bootstrap_events_raise(self):
        events = [TraceEvent(name="navigationStart", ph="R", ts=0, pid=1, tid=1)]
        with self.assertRaises(NoTracingStartedError) as ctx:
            find_tracing_started_evt(events)
        self.assertEqual(ctx.exception.code, "NO_TRACING_STARTED")


if __name__ == "__main__":
    unittest.main()
