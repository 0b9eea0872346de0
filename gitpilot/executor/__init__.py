"""
Command execution and recovery engine for gitpilot.

This package is organized into the following submodules:
- models: Data classes and enums (ExecutionMode, ExecutionResult, etc.)
- tokenizer: Quote-aware argv splitting
- danger: Destructive-pattern classification
- prompter: Blocking confirmation and selection prompts
- runner: CommandRunner for a single command
- batch: BatchExecutor for ordered command lists
- recovery: RecoveryOrchestrator and its response parsers
- reporter: Result summaries
"""

from collections.abc import Callable

from rich.console import Console

from .batch import STEP_DELAY_SECONDS, BatchExecutor
from .danger import DANGEROUS_PATTERNS, find_danger, is_dangerous
from .models import (
    ExecutionMode,
    ExecutionResult,
    ExecutionSummary,
    RecoveryContext,
    RecoveryOutcome,
    RecoveryStatus,
    ResultKind,
    SolutionOption,
    StepAction,
)
from .prompter import ConsolePrompter, Prompter
from .recovery import (
    RecoveryOrchestrator,
    build_commands_prompt,
    build_options_prompt,
    extract_git_commands,
    parse_solution_options,
)
from .reporter import print_execution_summary, summarize_results
from .runner import CommandRunner
from .tokenizer import tokenize


def build_engine(
    generate: Callable[[str], str] | None,
    prompter: Prompter | None = None,
    console: Console | None = None,
    recovery_enabled: bool = True,
    process_timeout: float | None = None,
    step_delay: float = STEP_DELAY_SECONDS,
    capture_stderr: bool = False,
) -> BatchExecutor:
    """Wire runner, batch executor and recovery orchestrator together.

    Without a generate callable no recovery handler is attached, so failures
    are reported as-is.
    """
    console = console or Console()
    prompter = prompter or ConsolePrompter(console)

    runner = CommandRunner(
        prompter,
        console=console,
        recovery_enabled=recovery_enabled,
        process_timeout=process_timeout,
        capture_stderr=capture_stderr,
    )
    batch = BatchExecutor(runner, prompter, console=console, step_delay=step_delay)

    if generate is not None:
        orchestrator = RecoveryOrchestrator(generate, batch, prompter, console=console)
        runner.attach_recovery(orchestrator.recover)

    return batch


__all__ = [
    # Models
    "ExecutionMode",
    "ExecutionResult",
    "ExecutionSummary",
    "RecoveryContext",
    "RecoveryOutcome",
    "RecoveryStatus",
    "ResultKind",
    "SolutionOption",
    "StepAction",
    # Tokenizer / danger
    "tokenize",
    "DANGEROUS_PATTERNS",
    "find_danger",
    "is_dangerous",
    # Prompts
    "ConsolePrompter",
    "Prompter",
    # Execution
    "CommandRunner",
    "BatchExecutor",
    "STEP_DELAY_SECONDS",
    "build_engine",
    # Recovery
    "RecoveryOrchestrator",
    "build_commands_prompt",
    "build_options_prompt",
    "extract_git_commands",
    "parse_solution_options",
    # Reporting
    "print_execution_summary",
    "summarize_results",
]
