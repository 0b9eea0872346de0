"""Ordered execution of a command batch under one mode."""

import logging
import time

from rich.console import Console
from rich.markup import escape

from gitpilot.errors import UserSkipped

from .models import ExecutionMode, ExecutionResult, ResultKind, StepAction
from .prompter import Prompter
from .runner import CommandRunner

logger = logging.getLogger(__name__)

# Pause between automatic commands so the invoked tool can flush its output
STEP_DELAY_SECONDS = 0.5

STEP_CHOICES = [
    ("✅ Execute", StepAction.EXECUTE),
    ("⏭️  Skip", StepAction.SKIP),
    ("❌ Quit", StepAction.QUIT),
]


class BatchExecutor:
    """
    Executes an ordered list of commands, one at a time.

    Commands often depend on the side effects of earlier ones (staging
    before committing), so nothing in a batch ever runs concurrently.
    Results keep the input order; a batch may stop early, in which case the
    remaining commands have no result.
    """

    def __init__(
        self,
        runner: CommandRunner,
        prompter: Prompter,
        console: Console | None = None,
        step_delay: float = STEP_DELAY_SECONDS,
    ):
        self.runner = runner
        self.prompter = prompter
        self.console = console or Console()
        self.step_delay = step_delay

    def run_batch(
        self,
        commands: list[str],
        mode: ExecutionMode,
        suppress_recovery: bool = False,
    ) -> list[ExecutionResult]:
        """Run commands under mode and return their results in order."""
        logger.debug(
            "Running batch of %d command(s) in %s mode (suppress_recovery=%s)",
            len(commands),
            mode.value,
            suppress_recovery,
        )

        if mode == ExecutionMode.PREVIEW:
            return self._run_preview(commands)
        if mode == ExecutionMode.AUTOMATIC:
            return self._run_automatic(commands, suppress_recovery)
        if mode == ExecutionMode.STEP_CONFIRM:
            return self._run_step_confirm(commands, suppress_recovery)

        raise ValueError(f"Unsupported execution mode: {mode}")

    def _run_preview(self, commands: list[str]) -> list[ExecutionResult]:
        self.console.print("\n[yellow]🧪 Preview mode: commands will not be executed.[/yellow]")
        for index, command in enumerate(commands, start=1):
            self.console.print(f"[cyan]{index}. {escape(command)}[/cyan]")
        return [ExecutionResult.previewed(command) for command in commands]

    def _run_automatic(self, commands: list[str], suppress_recovery: bool) -> list[ExecutionResult]:
        self.console.print("\n[blue]🚀 Automatic mode: running all commands in order.[/blue]")
        results: list[ExecutionResult] = []
        total = len(commands)

        for index, command in enumerate(commands):
            self.console.print(f"\n[bold]📋 {index + 1}/{total}[/bold]")
            result = self.runner.run(command, ExecutionMode.AUTOMATIC, suppress_recovery)
            results.append(result)

            if result.halts_automatic_run:
                remaining = total - index - 1
                if result.kind == ResultKind.CANCELLED:
                    self.console.print(
                        f"[yellow]⚠ Command cancelled. Skipping {remaining} remaining command(s).[/yellow]"
                    )
                else:
                    self.console.print(
                        f"[red]✗ Command failed. Skipping {remaining} remaining command(s).[/red]"
                    )
                break

            if index < total - 1:
                time.sleep(self.step_delay)

        return results

    def _run_step_confirm(self, commands: list[str], suppress_recovery: bool) -> list[ExecutionResult]:
        self.console.print("\n[blue]🔍 Step mode: confirm each command before it runs.[/blue]")
        results: list[ExecutionResult] = []
        total = len(commands)

        for index, command in enumerate(commands, start=1):
            self.console.print(f"\n[bold]📋 {index}/{total}:[/bold] [cyan]{escape(command)}[/cyan]")
            action = self.prompter.choose("Run this command?", STEP_CHOICES)

            if action == StepAction.QUIT:
                self.console.print("[yellow]🛑 Stopped by user.[/yellow]")
                break

            if action == StepAction.SKIP:
                self.console.print("[dim]⏭️  Skipped.[/dim]")
                results.append(ExecutionResult.from_error(UserSkipped(command, "Skipped by user")))
                continue

            if action != StepAction.EXECUTE:
                raise ValueError(f"Unsupported step action: {action}")

            result = self.runner.run(command, ExecutionMode.STEP_CONFIRM, suppress_recovery)
            results.append(result)

            if result.is_failure and not self.prompter.confirm(
                "The command failed. Continue with the remaining commands?", default=False
            ):
                self.console.print("[red]✗ Stopped by user after failure.[/red]")
                break

        return results
