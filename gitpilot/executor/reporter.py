"""Summaries of batch results."""

from rich.console import Console

from .models import ExecutionResult, ExecutionSummary, ResultKind


def summarize_results(results: list[ExecutionResult]) -> ExecutionSummary:
    counts = {kind: 0 for kind in ResultKind}
    for result in results:
        counts[result.kind] += 1

    return ExecutionSummary(
        total=len(results),
        succeeded=counts[ResultKind.SUCCEEDED],
        failed=counts[ResultKind.FAILED],
        cancelled=counts[ResultKind.CANCELLED],
        skipped=counts[ResultKind.SKIPPED],
        previewed=counts[ResultKind.PREVIEWED],
    )


def print_execution_summary(results: list[ExecutionResult], console: Console | None = None) -> ExecutionSummary:
    """Print per-kind counts for a batch and return the summary."""
    console = console or Console()
    summary = summarize_results(results)

    if summary.total == 0:
        console.print("[yellow]📋 No commands were executed.[/yellow]")
        return summary

    console.print("\n[bold blue]📊 Execution summary[/bold blue]")
    console.print(f"[dim]{summary.total} command(s) in total[/dim]")
    if summary.succeeded:
        console.print(f"[green]✅ Succeeded: {summary.succeeded}[/green]")
    if summary.failed:
        console.print(f"[red]❌ Failed: {summary.failed}[/red]")
    if summary.cancelled:
        console.print(f"[yellow]⚠️  Cancelled: {summary.cancelled}[/yellow]")
    if summary.skipped:
        console.print(f"[dim]⏭️  Skipped: {summary.skipped}[/dim]")
    if summary.previewed:
        console.print(f"[blue]🧪 Previewed: {summary.previewed}[/blue]")
    return summary
