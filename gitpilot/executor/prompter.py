"""Blocking user prompts used by the execution engine."""

from collections.abc import Sequence
from typing import Any, Protocol

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt


class Prompter(Protocol):
    """Yes/no questions, enumerated choices and free text.

    The last entry of every choice list is the cancel or quit option; it is
    what an exhausted input (EOF) selects. ask_text returns "" on EOF.
    """

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def choose(self, message: str, choices: Sequence[tuple[str, Any]]) -> Any: ...

    def ask_text(self, message: str) -> str: ...


class ConsolePrompter:
    """Prompter backed by rich prompts on the terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def confirm(self, message: str, default: bool = False) -> bool:
        try:
            return Confirm.ask(message, default=default, console=self.console)
        except EOFError:
            return False

    def choose(self, message: str, choices: Sequence[tuple[str, Any]]) -> Any:
        """Show a numbered list of (label, value) pairs and return the chosen value."""
        if not choices:
            raise ValueError("choose() needs at least one choice")

        self.console.print(f"\n[bold]{message}[/bold]")
        for index, (label, _) in enumerate(choices, start=1):
            self.console.print(f"  [cyan]{index}.[/cyan] {label}")

        try:
            selection = IntPrompt.ask(
                "Select",
                choices=[str(i) for i in range(1, len(choices) + 1)],
                default=1,
                show_choices=False,
                console=self.console,
            )
        except EOFError:
            return choices[-1][1]
        return choices[selection - 1][1]

    def ask_text(self, message: str) -> str:
        while True:
            try:
                answer = Prompt.ask(message, console=self.console).strip()
            except EOFError:
                return ""
            if answer:
                return answer
            self.console.print("[yellow]Please enter a description.[/yellow]")
