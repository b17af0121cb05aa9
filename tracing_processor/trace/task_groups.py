"""Work categories for main-thread trace events."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TaskGroup:
    id: str
    label: str
    trace_event_names: tuple[str, ...]


PARSE_HTML = TaskGroup(
    "parseHTML",
    "Parse HTML & CSS",
    ("ParseHTML", "ParseAuthorStyleSheet"),
)
STYLE_LAYOUT = TaskGroup(
    "styleLayout",
    "Style & Layout",
    (
        "ScheduleStyleRecalculation",
        "RecalculateStyles",
        "UpdateLayoutTree",
        "InvalidateLayout",
        "Layout",
    ),
)
PAINT_COMPOSITE_RENDER = TaskGroup(
    "paintCompositeRender",
    "Rendering",
    (
        "Animation",
        "RequestMainThreadFrame",
        "ActivateLayerTree",
        "DrawFrame",
        "HitTest",
        "PaintSetup",
        "Paint",
        "PaintImage",
        "Rasterize",
        "RasterTask",
        "ScrollLayer",
        "UpdateLayer",
        "UpdateLayerTree",
        "CompositeLayers",
    ),
)
SCRIPT_PARSE_COMPILE = TaskGroup(
    "scriptParseCompile",
    "Script Parsing & Compilation",
    ("v8.compile", "v8.compileModule", "v8.parseOnBackground"),
)
SCRIPT_EVALUATION = TaskGroup(
    "scriptEvaluation",
    "Script Evaluation",
    (
        "EventDispatch",
        "EvaluateScript",
        "v8.evaluateModule",
        "FunctionCall",
        "TimerFire",
        "FireIdleCallback",
        "FireAnimationFrame",
        "RunMicrotasks",
        "V8.Execute",
    ),
)
GARBAGE_COLLECTION = TaskGroup(
    "garbageCollection",
    "Garbage Collection",
    (
        "GCEvent",
        "MinorGC",
        "MajorGC",
        "ThreadState::performIdleLazySweep",
        "ThreadState::completeSweep",
        "BlinkGCMarking",
    ),
)
OTHER = TaskGroup(
    "other",
    "Other",
    (
        "MessageLoop::RunTask",
        "TaskQueueManager::ProcessTaskFromWorkQueue",
        "ThreadControllerImpl::DoWork",
    ),
)

TASK_GROUPS = (
    PARSE_HTML,
    STYLE_LAYOUT,
    PAINT_COMPOSITE_RENDER,
    SCRIPT_PARSE_COMPILE,
    SCRIPT_EVALUATION,
    GARBAGE_COLLECTION,
    OTHER,
)


def build_name_to_group(groups=TASK_GROUPS) -> dict[str, TaskGroup]:
    """Index groups by each of their trace event names."""
    name_to_group: dict[str, TaskGroup] = {}
    for group in groups:
        for name in group.trace_event_names:
            name_to_group[name] = group
    return name_to_group


TASK_NAME_TO_GROUP = build_name_to_group()
