"""CLI entry point for the main-thread trace analyzer."""

import json
import typer
from typing import Optional
from pathlib import Path
from rich.console import Console
from tracing_processor.analyzer import analyze_trace, load_trace_events
from tracing_processor.config import load_config
from tracing_processor.logging_config import setup_logging
from tracing_processor.trace import get_main_thread_tasks

app = typer.Typer(
    help="Tracing Processor - Main thread task trees and input responsiveness from Chrome traces",
    no_args_is_help=True
)
console = Console()


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Tracing Processor - Main thread task trees and input responsiveness from Chrome traces."""
    if ctx.invoked_subcommand is None:
        # Show help if no subcommand is provided
        pass


def _check_trace_path(trace: Path) -> None:
    if not trace.exists():
        console.print(f"[red]Error:[/red] Trace file not found: {trace}")
        raise typer.Exit(code=1)

    if not trace.is_file():
        console.print(f"[red]Error:[/red] Path is not a file: {trace}")
        raise typer.Exit(code=1)


@app.command()
def analyze(
    trace: Path = typer.Option(..., "--trace", help="Path to a Chrome JSON trace file"),
    out: Path = typer.Option("analysis.json", "--out", help="Output JSON file path"),
    percentiles: Optional[str] = typer.Option(None, "--percentiles", help="Comma-separated percentiles, e.g. 0.5,0.9,1"),
    start_ms: Optional[float] = typer.Option(None, "--start-ms", help="Window start in ms after navigationStart"),
    end_ms: Optional[float] = typer.Option(None, "--end-ms", help="Window end in ms after navigationStart (default: trace end)"),
    top_n: int = typer.Option(5, "--top-n", help="Number of longest tasks and URLs to report"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level for diagnostics"),
):
    """Analyze a trace and generate analysis.json."""
    _check_trace_path(trace)

    try:
        config = load_config(percentiles, start_ms, end_ms, log_level)
        setup_logging(config.log_level)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[blue]Analyzing trace:[/blue] {trace}")
    console.print(f"[blue]Output file:[/blue] {out}")
    console.print(f"[blue]Percentiles:[/blue] {', '.join(str(p) for p in config.percentiles)}")
    console.print(f"[blue]Window start:[/blue] {config.start_time}ms")
    console.print(f"[blue]Window end:[/blue] {end_ms if end_ms is not None else 'trace end'}")

    try:
        result = analyze_trace(
            trace_path=str(trace),
            percentiles=config.percentiles,
            start_time=config.start_time,
            end_time=config.end_time,
            top_n=top_n
        )

        with open(out, 'w') as f:
            json.dump(result, f, indent=2)

        console.print(f"[green]✓[/green] Analysis complete: {out}")
        for item in result["responsiveness"]["risk_percentiles"]:
            console.print(f"  p{item['percentile'] * 100:g}: {item['time_ms']:.1f}ms")

    except Exception as e:
        console.print(f"[red]Error during analysis:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def tasks(
    trace: Path = typer.Option(..., "--trace", help="Path to a Chrome JSON trace file"),
    out: Path = typer.Option("tasks.json", "--out", help="Output JSON file path"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level for diagnostics"),
):
    """Write the main thread task list with self time, URL and group."""
    _check_trace_path(trace)

    try:
        setup_logging(load_config(log_level=log_level).log_level)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    try:
        task_nodes = get_main_thread_tasks(load_trace_events(str(trace)))
        with open(out, 'w') as f:
            json.dump([task.to_dict() for task in task_nodes], f, indent=2)
    except Exception as e:
        console.print(f"[red]Error during analysis:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Wrote {len(task_nodes)} tasks to: {out}")


if __name__ == "__main__":
    app()
