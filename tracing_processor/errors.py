"""Errors raised while analyzing a trace.

Every error is fatal for the trace being analyzed: callers should report
"cannot analyze this trace" rather than attempt recovery.
"""


class TraceProcessingError(RuntimeError):
    """Base class for trace analysis failures, tagged with a stable code."""

    code = "TRACE_PROCESSING_ERROR"
    default_message = "Unable to process trace"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class NoTracingStartedError(TraceProcessingError):
    code = "NO_TRACING_STARTED"
    default_message = "No TracingStartedInBrowser or TracingStartedInPage event found in trace"


class NoNavigationStartError(TraceProcessingError):
    code = "NO_NAVSTART"
    default_message = "No navigationStart event found for the traced frame"


class FatalTraceLogicError(TraceProcessingError):
    code = "FATAL_TRACE_LOGIC"
    default_message = "Fatal trace logic error"


class InvalidTaskTimingError(TraceProcessingError):
    code = "INVALID_TASK_TIMING"
    default_message = "Invalid task timing data"


class NoTopLevelEventsError(TraceProcessingError):
    code = "NO_TOP_LEVEL_EVENTS"
    default_message = "Could not find any top level events"


class TraceFileError(TraceProcessingError):
    code = "TRACE_FILE_ERROR"
    default_message = "Unable to read trace file"
