"""
AI-assisted recovery after a failed command.

A recovery dialogue has two phases:
1. Ask the text generator for three general remediation directions and let
   the user pick one (or describe their own, or cancel).
2. Ask the generator to turn the chosen direction into concrete git
   commands and run them through the BatchExecutor.

The inner batch always runs with suppress_recovery=True, so a failing
replacement command never opens a second dialogue. Generator and parse
failures end the dialogue quietly; they are logged and never raised.
"""

import logging
import re
from collections.abc import Callable

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .batch import BatchExecutor
from .models import (
    ExecutionMode,
    RecoveryContext,
    RecoveryOutcome,
    RecoveryStatus,
    SolutionOption,
)
from .prompter import Prompter

logger = logging.getLogger(__name__)

OPTION_LINE_PATTERN = re.compile(r"^[ \t]*\d+\.[ \t]*(.+)$", re.MULTILINE)
TITLE_SPLIT_PATTERN = re.compile(r"^\*{0,2}(?P<title>[^:*][^:]*?)\*{0,2}\s*:\s*(?P<description>.+)$")
GIT_COMMAND_PATTERN = re.compile(r"`{0,3}\s*(git\s+[^\n`]+)")
# List markers and shell prompts allowed before a command on its line
COMMAND_LINE_PREFIX = re.compile(r"^\s*(?:\d+[.)]\s*|[-*]\s+|\$\s+)?")

TITLE_MAX_CHARS = 40
MAX_ERROR_CHARS = 2000

# Sentinel values for the two extra phase-2 choices
DIRECT_INPUT = "__direct_input__"
CANCEL = "__cancel__"

MODE_CHOICES = [
    ("🚀 Run all automatically", ExecutionMode.AUTOMATIC),
    ("🔍 Confirm each command", ExecutionMode.STEP_CONFIRM),
    ("🧪 Preview only", ExecutionMode.PREVIEW),
    ("❌ Cancel", None),
]


def build_options_prompt(failed_command: str, error_message: str) -> str:
    """First-phase prompt: three general directions, no concrete commands."""
    return f"""You are a git expert helping a user recover from a failed command.

Failed command:
{failed_command}

Error output:
{_truncate(error_message)}

Suggest exactly three different directions the user could take to resolve this.
Do not write concrete commands. Describe each direction in one line using this format:
1. Title: short description
2. Title: short description
3. Title: short description"""


def build_commands_prompt(context: RecoveryContext) -> str:
    """Second-phase prompt: concrete, ordered replacement commands."""
    return f"""You are a git expert helping a user recover from a failed command.

Failed command:
{context.failed_command}

Error output:
{_truncate(context.error_message)}

The user chose this approach:
{context.chosen_solution_text}

Write the git commands that carry out this approach, in the order they must run.
Put each command on its own line, starting with "git".
Keep explanations to a minimum and do not number the commands."""


def parse_solution_options(text: str) -> list[SolutionOption]:
    """Parse numbered lines (``^\\d+\\.\\s*(.+)``) into solution options.

    A ``title: description`` line is split on the first colon, with optional
    markdown bold around the title. Other lines get the first 40 characters
    plus an ellipsis as title and the whole line as description.
    """
    options: list[SolutionOption] = []
    for match in OPTION_LINE_PATTERN.finditer(text):
        body = match.group(1).strip()
        if not body:
            continue

        split = TITLE_SPLIT_PATTERN.match(body)
        if split:
            title = split.group("title").strip()
            description = split.group("description").strip().strip("*").strip()
        else:
            title = body if len(body) <= TITLE_MAX_CHARS else f"{body[:TITLE_MAX_CHARS]}..."
            description = body

        try:
            options.append(SolutionOption(title=title, description=description, full_text=body))
        except ValidationError as e:
            logger.debug("Skipping unparseable option %r: %s", body, e)
    return options


def extract_git_commands(text: str) -> list[str]:
    """Pull git commands out of a response, one per line, in order.

    Each line may be plain, inside a fenced block, wrapped in backticks, or
    start with a list marker or ``$`` prompt.
    """
    commands: list[str] = []
    for line in text.splitlines():
        remainder = COMMAND_LINE_PREFIX.sub("", line, count=1)
        match = GIT_COMMAND_PATTERN.match(remainder)
        if not match:
            continue
        command = match.group(1).replace("`", "").strip()
        if command:
            commands.append(command)
    return commands


def _truncate(text: str, limit: int = MAX_ERROR_CHARS) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "\n... [truncated]"


class RecoveryOrchestrator:
    """Drives the two-phase recovery dialogue for one failed command."""

    def __init__(
        self,
        generate: Callable[[str], str],
        batch_executor: BatchExecutor,
        prompter: Prompter,
        console: Console | None = None,
    ):
        self.generate = generate
        self.batch_executor = batch_executor
        self.prompter = prompter
        self.console = console or Console()

    def recover(self, failed_command: str, error_message: str) -> RecoveryOutcome:
        self.console.print("\n[cyan]🔧 Looking for ways to fix this failure...[/cyan]")
        context = RecoveryContext(failed_command=failed_command, error_message=error_message)

        # Phase 1: option discovery
        try:
            response = self.generate(build_options_prompt(failed_command, error_message))
        except Exception as e:
            return self._unavailable(f"Text generation failed: {e}")

        options = parse_solution_options(response)
        if not options:
            logger.debug("Unparseable recovery options response: %r", response)
            return self._unavailable("Could not parse solution options")

        # Phase 2: selection and concretization
        choice = self.prompter.choose("How would you like to fix it?", self._option_choices(options))
        if choice == CANCEL:
            self.console.print("[dim]Recovery cancelled.[/dim]")
            return RecoveryOutcome(status=RecoveryStatus.CANCELLED, options=options)

        if choice == DIRECT_INPUT:
            context.chosen_solution_text = self.prompter.ask_text("Describe what you want to do instead")
            if not context.chosen_solution_text:
                self.console.print("[dim]Recovery cancelled.[/dim]")
                return RecoveryOutcome(status=RecoveryStatus.CANCELLED, options=options)
        else:
            context.chosen_solution_text = choice.full_text

        try:
            response = self.generate(build_commands_prompt(context))
        except Exception as e:
            return self._unavailable(f"Text generation failed: {e}", options)

        commands = extract_git_commands(response)
        if not commands:
            self.console.print("[yellow]⚠ No executable commands found in the suggestion.[/yellow]")
            logger.debug("No git commands in recovery response: %r", response)
            return RecoveryOutcome(
                status=RecoveryStatus.NO_COMMANDS,
                options=options,
                reason="No executable commands found",
            )

        self._show_commands(commands)
        mode = self.prompter.choose("How should these commands run?", MODE_CHOICES)
        if mode is None:
            self.console.print("[dim]Recovery cancelled.[/dim]")
            return RecoveryOutcome(status=RecoveryStatus.CANCELLED, options=options, commands=commands)

        results = self.batch_executor.run_batch(commands, mode, suppress_recovery=True)
        status = RecoveryStatus.PREVIEWED if mode == ExecutionMode.PREVIEW else RecoveryStatus.EXECUTED
        return RecoveryOutcome(
            status=status,
            options=options,
            commands=commands,
            mode=mode,
            results=results,
        )

    def _option_choices(self, options: list[SolutionOption]) -> list[tuple[str, object]]:
        choices: list[tuple[str, object]] = [
            (f"{escape(option.title)} [dim]- {escape(option.description)}[/dim]", option)
            for option in options
        ]
        choices.append(("✏️  Describe my own fix", DIRECT_INPUT))
        choices.append(("❌ Cancel", CANCEL))
        return choices

    def _show_commands(self, commands: list[str]) -> None:
        body = "\n".join(f"{index}. {escape(command)}" for index, command in enumerate(commands, start=1))
        self.console.print(Panel(body, title="[bold]Suggested commands[/bold]", style="cyan"))

    def _unavailable(self, reason: str, options: list[SolutionOption] | None = None) -> RecoveryOutcome:
        logger.warning("Recovery unavailable: %s", reason)
        self.console.print(f"[yellow]⚠ {reason}. Recovery skipped.[/yellow]")
        return RecoveryOutcome(status=RecoveryStatus.UNAVAILABLE, options=options or [], reason=reason)
