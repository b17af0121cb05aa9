"""Trace event records decoded from the Chrome trace event format."""

from dataclasses import dataclass, field, replace
from typing import Any, Mapping


PHASE_COMPLETE = "X"
PHASE_BEGIN = "B"
PHASE_END = "E"
PHASE_METADATA = "M"


@dataclass(frozen=True)
class TraceEvent:
    """One record of a trace. Times are in microseconds on the trace clock."""

    name: str
    ph: str
    ts: float
    pid: int | None = None
    tid: int | None = None
    cat: str = ""
    dur: float | None = None
    args: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TraceEvent":
        return cls(
            name=raw.get("name", ""),
            ph=raw.get("ph", ""),
            ts=raw.get("ts", 0),
            pid=raw.get("pid"),
            tid=raw.get("tid"),
            cat=raw.get("cat", ""),
            dur=raw.get("dur"),
            args=raw.get("args") or {},
        )

    @property
    def data(self) -> Mapping[str, Any]:
        """The `args.data` payload, or an empty mapping."""
        data = self.args.get("data")
        return data if isinstance(data, Mapping) else {}

    def with_changes(self, **changes: Any) -> "TraceEvent":
        return replace(self, **changes)


def to_trace_events(events) -> list[TraceEvent]:
    """Accept decoded JSON dicts or TraceEvent objects and return TraceEvents."""
    return [
        event if isinstance(event, TraceEvent) else TraceEvent.from_dict(event)
        for event in events
    ]
