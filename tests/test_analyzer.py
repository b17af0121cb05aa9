import json
import os
import tempfile
import unittest

from typer.testing import CliRunner

from tracing_processor.analyzer import analyze_events, analyze_trace, load_trace_events
from tracing_processor.cli import app
from tracing_processor.errors import NoTopLevelEventsError, TraceFileError

PID = 10
TID = 20


def _sample_trace_events():
    return [
        {"name": "TracingStartedInBrowser", "ph": "I", "pid": 1, "tid": 1, "ts": 0,
         "args": {"data": {"frames": [{"frame": "F1", "processId": PID}]}}},
        {"name": "thread_name", "ph": "M", "cat": "__metadata", "pid": PID, "tid": TID,
         "ts": 0, "args": {"name": "CrRendererMain"}},
        {"name": "navigationStart", "ph": "R", "pid": PID, "tid": TID, "ts": 1000,
         "args": {"frame": "F1"}},
        {"name": "ThreadControllerImpl::DoWork", "ph": "X", "pid": PID, "tid": TID,
         "ts": 2000, "dur": 10000, "args": {}},
        {"name": "EvaluateScript", "ph": "X", "pid": PID, "tid": TID, "ts": 3000, "dur": 5000,
         "args": {"data": {"url": "https://example.com/app.js"}}},
        {"name": "ThreadControllerImpl::DoWork", "ph": "X", "pid": PID, "tid": TID,
         "ts": 20000, "dur": 30000, "args": {}},
        {"name": "Layout", "ph": "B", "pid": PID, "tid": TID, "ts": 21000, "args": {}},
        {"name": "Layout", "ph": "E", "pid": PID, "tid": TID, "ts": 41000, "args": {}},
    ]


class TestAnalyzeEvents(unittest.TestCase):
    def test_summarizes_tasks_and_risk(self):
        result = analyze_events(_sample_trace_events(), percentiles=[0.5, 1])

        self.assertEqual(result["tracing_started"], {"pid": PID, "tid": TID, "frame_id": "F1"})
        tasks = result["tasks"]
        self.assertEqual(tasks["count"], 4)
        self.assertEqual(tasks["top_level_count"], 2)
        self.assertEqual(tasks["self_time_by_group_ms"], {
            "other": 15.0,
            "scriptEvaluation": 5.0,
            "styleLayout": 20.0
        })
        self.assertEqual(tasks["self_time_by_url"], [
            {"url": "https://example.com/app.js", "self_time_ms": 5.0}
        ])
        self.assertEqual(tasks["longest"][0]["duration"], 30.0)

        responsiveness = result["responsiveness"]
        self.assertEqual(responsiveness["window"], {"start_ms": 0, "end_ms": 49.0})
        self.assertEqual(responsiveness["top_level_event_count"], 2)
        times = [item["time_ms"] for item in responsiveness["risk_percentiles"]]
        self.assertEqual(len(times), 2)
        self.assertLessEqual(times[0], times[1])

        self.assertEqual(result["summary"]["dominant_group"], "styleLayout")
        self.assertEqual(result["summary"]["longest_task_name"], "ThreadControllerImpl::DoWork")
        self.assertIn("window", result["assumptions"])

    def test_explicit_window_without_tasks_raises(self):
        with self.assertRaises(NoTopLevelEventsError):
            analyze_events(_sample_trace_events(), start_time=500, end_time=600)

    def test_repeated_runs_are_identical(self):
        events = _sample_trace_events()
        self.assertEqual(analyze_events(events), analyze_events(events))


class TestTraceFiles(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def _write(self, name, payload):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w") as f:
            if isinstance(payload, str):
                f.write(payload)
            else:
                json.dump(payload, f)
        return path

    def test_load_trace_events_accepts_both_layouts(self):
        events = _sample_trace_events()
        wrapped = self._write("wrapped.json", {"traceEvents": events})
        bare = self._write("bare.json", events)
        self.assertEqual(load_trace_events(wrapped), events)
        self.assertEqual(load_trace_events(bare), events)

    def test_load_trace_events_rejects_bad_files(self):
        with self.assertRaises(TraceFileError):
            load_trace_events(self._write("broken.json", "{not json"))
        with self.assertRaises(TraceFileError):
            load_trace_events(self._write("empty.json", {"metadata": {}}))
        with self.assertRaises(TraceFileError):
            load_trace_events(os.path.join(self.tmpdir.name, "missing.json"))

    def test_analyze_trace_records_path(self):
        path = self._write("trace.json", {"traceEvents": _sample_trace_events()})
        result = analyze_trace(path)
        self.assertEqual(result["trace_path"], path)
        self.assertEqual(len(result["responsiveness"]["risk_percentiles"]), 5)


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.trace_path = os.path.join(self.tmpdir.name, "trace.json")
        with open(self.trace_path, "w") as f:
            json.dump({"traceEvents": _sample_trace_events()}, f)

    def test_analyze_writes_output(self):
        out = os.path.join(self.tmpdir.name, "analysis.json")
        result = self.runner.invoke(app, [
            "analyze", "--trace", self.trace_path, "--out", out, "--percentiles", "1,0.5"
        ])
        self.assertEqual(result.exit_code, 0, result.output)
        with open(out) as f:
            analysis = json.load(f)
        percentiles = [item["percentile"] for item in analysis["responsiveness"]["risk_percentiles"]]
        self.assertEqual(percentiles, [0.5, 1.0])

    def test_tasks_writes_task_list(self):
        out = os.path.join(self.tmpdir.name, "tasks.json")
        result = self.runner.invoke(app, ["tasks", "--trace", self.trace_path, "--out", out])
        self.assertEqual(result.exit_code, 0, result.output)
        with open(out) as f:
            tasks = json.load(f)
        self.assertEqual([task["name"] for task in tasks], [
            "ThreadControllerImpl::DoWork",
            "EvaluateScript",
            "ThreadControllerImpl::DoWork",
            "Layout"
        ])
        self.assertEqual(tasks[1]["attributable_url"], "https://example.com/app.js")

    def test_missing_trace_exits_with_error(self):
        result = self.runner.invoke(app, [
            "analyze", "--trace", os.path.join(self.tmpdir.name, "nope.json")
        ])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Trace file not found", result.output)

    def test_invalid_percentiles_exit_with_error(self):
        result = self.runner.invoke(app, [
            "analyze", "--trace", self.trace_path, "--percentiles", "0,1.5"
        ])
        self.assertEqual(result.exit_code, 1)

    def test_broken_trace_reports_analysis_error(self):
        with open(self.trace_path, "w") as f:
            json.dump({"traceEvents": []}, f)
        out = os.path.join(self.tmpdir.name, "analysis.json")
        result = self.runner.invoke(app, ["analyze", "--trace", self.trace_path, "--out", out])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error during analysis", result.output)


if __name__ == "__main__":
    unittest.main()
