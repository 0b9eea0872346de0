"""Execution of a single command: danger gate, preview short-circuit, spawn."""

import logging
import os
import subprocess
import sys
import time
from collections.abc import Callable

from rich.console import Console
from rich.markup import escape

from gitpilot.errors import NonZeroExit, RecoveryUnavailable, SpawnError, UserCancelled

from .danger import find_danger
from .models import ExecutionMode, ExecutionResult
from .prompter import Prompter
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

RecoveryHandler = Callable[[str, str], object]


class CommandRunner:
    """
    Runs one command and reports exactly one ExecutionResult.

    This handles:
    - Asking for confirmation before dangerous commands
    - Returning a preview result without spawning in preview mode
    - Spawning the tokenized command with the standard streams inherited
      (stderr can be captured instead to feed its text into recovery)
    - Handing failures to the recovery handler unless suppressed
    """

    def __init__(
        self,
        prompter: Prompter,
        console: Console | None = None,
        recovery_enabled: bool = True,
        process_timeout: float | None = None,
        capture_stderr: bool = False,
    ):
        self.prompter = prompter
        self.console = console or Console()
        self.recovery_enabled = recovery_enabled
        self.process_timeout = process_timeout
        self.capture_stderr = capture_stderr
        self._recovery_handler: RecoveryHandler | None = None

    def attach_recovery(self, handler: RecoveryHandler | None) -> None:
        """Set the callable invoked with (command, error) after a failure."""
        self._recovery_handler = handler

    def run(
        self,
        command: str,
        mode: ExecutionMode,
        suppress_recovery: bool = False,
    ) -> ExecutionResult:
        self.console.print(f"[cyan]$ {escape(command)}[/cyan]")

        try:
            self._check_danger(command)
        except UserCancelled as e:
            self.console.print("[yellow]⚠ Execution cancelled.[/yellow]")
            logger.info("Dangerous command declined: %s", command)
            return ExecutionResult.from_error(e)

        if mode == ExecutionMode.PREVIEW:
            self.console.print("[dim]Preview only, not executed.[/dim]")
            return ExecutionResult.previewed(command)
        if mode not in (ExecutionMode.AUTOMATIC, ExecutionMode.STEP_CONFIRM):
            raise ValueError(f"Unsupported execution mode: {mode}")

        result = self._spawn(command)

        if result.is_failure:
            self.console.print(f"[red]✗ {escape(result.error or '')}[/red]")
            if self.recovery_enabled and not suppress_recovery:
                self._attempt_recovery(command, result.error or "")
        else:
            self.console.print("[green]✓ Command completed successfully[/green]")

        return result

    def _check_danger(self, command: str) -> None:
        """Ask before running a destructive command. Raises UserCancelled."""
        danger = find_danger(command)
        if danger is None:
            return
        self.console.print("\n[yellow]⚠ Warning: this command may be destructive.[/yellow]")
        self.console.print(f"[red]  {escape(command)}[/red]")
        self.console.print(f"[dim]  Reason: {danger}[/dim]")
        if not self.prompter.confirm("Do you really want to run it?", default=False):
            raise UserCancelled(command, f"Declined dangerous command ({danger})")

    def _spawn(self, command: str) -> ExecutionResult:
        start_time = time.time()
        try:
            self._execute(command)
        except (SpawnError, NonZeroExit) as e:
            logger.debug("Command failed: %s", e.message)
            return ExecutionResult.from_error(e, duration_seconds=time.time() - start_time)
        return ExecutionResult.succeeded(command, duration_seconds=time.time() - start_time)

    def _execute(self, command: str) -> None:
        """Spawn the command and wait. Raises SpawnError or NonZeroExit."""
        argv = tokenize(command)
        if not argv:
            raise SpawnError(command, "Empty command")

        logger.debug("Spawning %s", argv)
        try:
            completed = subprocess.run(
                argv,
                cwd=os.getcwd(),
                stderr=subprocess.PIPE if self.capture_stderr else None,
                text=True,
                timeout=self.process_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise SpawnError(command, f"Command timed out after {self.process_timeout} seconds") from e
        except OSError as e:
            raise SpawnError(command, str(e)) from e

        stderr = completed.stderr or ""
        if stderr:
            sys.stderr.write(stderr)
            sys.stderr.flush()

        if completed.returncode != 0:
            raise NonZeroExit(command, completed.returncode, stderr)

    def _attempt_recovery(self, command: str, error: str) -> None:
        if self._recovery_handler is None:
            return
        try:
            self._recovery_handler(command, error)
        except RecoveryUnavailable as e:
            logger.warning("Recovery unavailable for %r: %s", command, e)
        except Exception as e:
            # Recovery never turns a failed command into a crashed batch
            logger.warning("Recovery aborted for %r: %s", command, e)
            self.console.print(f"[yellow]⚠ Recovery aborted: {escape(str(e))}[/yellow]")
