import argparse
import logging
import sys

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from gitpilot.config import ConfigManager, Settings
from gitpilot.errors import ConfigError, GenerationError
from gitpilot.executor import (
    ExecutionMode,
    ExecutionResult,
    ResultKind,
    build_engine,
    print_execution_summary,
)
from gitpilot.git_context import display_git_status, get_git_status
from gitpilot.llm import TextGenerator
from gitpilot.prompt_template import build_prompt, parse_commands, validate_commands

console = Console()
logger = logging.getLogger("gitpilot")

NOISY_LOGGERS = ("anthropic", "openai", "httpx", "httpcore", "urllib3")


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def exit_code_for(results: list[ExecutionResult]) -> int:
    return 1 if any(r.kind == ResultKind.FAILED for r in results) else 0


class GitPilotCLI:
    def __init__(self, config_manager: ConfigManager | None = None):
        self.config_manager = config_manager or ConfigManager()
        self._settings: Settings | None = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = self.config_manager.effective()
        return self._settings

    def _print_error(self, message: str):
        console.print(f"[red]❌ Error: {escape(message)}[/red]")

    def _resolve_mode(self, args: argparse.Namespace) -> ExecutionMode:
        if getattr(args, "mode", None):
            return ExecutionMode.from_string(args.mode)
        return self.settings.execution_mode

    def _generator(self) -> TextGenerator:
        settings = self.settings
        return TextGenerator(api_key=settings.api_key, provider=settings.provider, model=settings.model)

    def _run_commands(self, commands: list[str], mode: ExecutionMode, recovery: bool) -> int:
        settings = self.settings
        recovery_enabled = recovery and settings.recovery_enabled
        batch = build_engine(
            self._generator() if recovery_enabled else None,
            console=console,
            recovery_enabled=recovery_enabled,
            process_timeout=settings.process_timeout,
            capture_stderr=settings.capture_stderr,
        )
        results = batch.run_batch(commands, mode)
        print_execution_summary(results, console)
        return exit_code_for(results)

    def run(self, args: argparse.Namespace) -> int:
        """Generate commands for a natural-language request and execute them."""
        mode = self._resolve_mode(args)
        git_status = get_git_status()
        if self.settings.output_mode == "detail":
            display_git_status(git_status, console)

        request = " ".join(args.request).strip() if args.request else ""
        if not request:
            request = Prompt.ask("[bold]What would you like to do with git?[/bold]", console=console).strip()
        if not request:
            self._print_error("Please describe what you want to do.")
            return 1

        prompt = build_prompt(request, mode, git_status)
        logger.debug("Generation prompt:\n%s", prompt)

        try:
            with console.status("[cyan]Generating commands...[/cyan]"):
                response = self._generator().generate(prompt)
        except GenerationError as e:
            self._print_error(str(e))
            return 1

        commands = parse_commands(response)
        if not commands:
            console.print("[yellow]⚠️  Could not generate any commands. Try describing it differently.[/yellow]")
            return 1

        console.print("\n[green]✅ Generated commands:[/green]")
        for index, command in enumerate(commands, start=1):
            console.print(f"[cyan]{index}. {escape(command)}[/cyan]")

        report = validate_commands(commands)
        for warning in report.warnings:
            console.print(f"[yellow]⚠️  {escape(warning)}[/yellow]")
        for issue in report.issues:
            console.print(f"[dim]ℹ️  {escape(issue)}[/dim]")

        return self._run_commands(commands, mode, recovery=not args.no_recovery)

    def exec_commands(self, args: argparse.Namespace) -> int:
        """Execute commands given on the command line."""
        mode = self._resolve_mode(args)
        commands = [c.strip() for c in args.commands if c.strip()]
        if not commands:
            self._print_error("No commands given.")
            return 1
        return self._run_commands(commands, mode, recovery=not args.no_recovery)

    def status(self) -> int:
        display_git_status(get_git_status(), console)
        return 0

    def config(self, args: argparse.Namespace) -> int:
        if args.config_action == "path":
            console.print(str(self.config_manager.config_path))
            return 0

        if args.config_action == "set":
            try:
                self.config_manager.set(args.key, args.value)
                path = self.config_manager.save()
            except ConfigError as e:
                self._print_error(str(e))
                return 1
            console.print(f"[green]✅ {escape(args.key)} updated ({path})[/green]")
            return 0

        settings = self.config_manager.effective()
        for key, value in settings.to_dict().items():
            if key == "api_key" and value:
                value = f"{value[:4]}...{value[-4:]}" if len(value) > 8 else "****"
            console.print(f"[bold]{key}[/bold]: {escape(str(value))}")
        return 0


def _add_mode_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-a", "--auto", dest="mode", action="store_const", const="auto", help="Run all commands in order")
    group.add_argument(
        "-i", "--interactive", dest="mode", action="store_const", const="interactive", help="Confirm each command"
    )
    group.add_argument(
        "-d", "--dry-run", dest="mode", action="store_const", const="preview", help="Only show the commands"
    )
    parser.add_argument("--no-recovery", action="store_true", help="Do not offer AI recovery after a failure")


def main():
    parser = argparse.ArgumentParser(
        prog="gitpilot",
        description="Turn natural-language requests into git commands and run them safely",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Generate and run commands for a request")
    run_parser.add_argument("request", nargs="*", help="What you want to do, in plain language")
    _add_mode_arguments(run_parser)

    exec_parser = subparsers.add_parser("exec", help="Run the given commands")
    exec_parser.add_argument("commands", nargs="+", help="Commands to run, each quoted as one argument")
    _add_mode_arguments(exec_parser)

    subparsers.add_parser("status", help="Show repository status")

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_subs = config_parser.add_subparsers(dest="config_action")
    config_subs.add_parser("show", help="Show effective settings")
    config_subs.add_parser("path", help="Show the config file location")
    set_parser = config_subs.add_parser("set", help="Change a setting")
    set_parser.add_argument("key")
    set_parser.add_argument("value")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    cli = GitPilotCLI()
    try:
        setup_logging(args.debug or cli.settings.debug)
        if args.command == "run":
            return cli.run(args)
        elif args.command == "exec":
            return cli.exec_commands(args)
        elif args.command == "status":
            return cli.status()
        elif args.command == "config":
            return cli.config(args)
        else:
            parser.print_help()
            return 1
    except (ConfigError, ValueError) as e:
        cli._print_error(str(e))
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
