"""Exception hierarchy for gitpilot."""


class GitPilotError(Exception):
    """Base class for every gitpilot failure."""


class ConfigError(GitPilotError):
    """Raised for unreadable config files and invalid settings."""


class GenerationError(GitPilotError):
    """Raised when the text-generation provider cannot produce a response."""


class CommandError(GitPilotError):
    """Base class for outcomes of a single command that are not a success."""

    def __init__(self, command: str, message: str):
        super().__init__(message)
        self.command = command
        self.message = message


class SpawnError(CommandError):
    """The executable is missing or could not be started."""


class NonZeroExit(CommandError):
    """The process ran but reported failure."""

    def __init__(self, command: str, exit_code: int, stderr: str = ""):
        message = f"Command failed with exit code {exit_code}: {command}"
        if stderr.strip():
            message = f"{message}\n{stderr.strip()}"
        super().__init__(command, message)
        self.exit_code = exit_code
        self.stderr = stderr


class UserCancelled(CommandError):
    """The user declined the danger confirmation."""


class UserSkipped(CommandError):
    """The user skipped the command in step-confirm mode."""


class RecoveryUnavailable(GitPilotError):
    """A recovery dialogue could not continue (parse or generator failure)."""
