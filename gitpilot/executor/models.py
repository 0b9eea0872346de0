"""Data models and enums for the execution engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from gitpilot.errors import CommandError, UserCancelled, UserSkipped


class ExecutionMode(str, Enum):
    """How a batch of commands is run."""

    PREVIEW = "preview"
    AUTOMATIC = "auto"
    STEP_CONFIRM = "interactive"

    @classmethod
    def from_string(cls, value: str) -> "ExecutionMode":
        """
        Convert user/config input into ExecutionMode.
        Raises ValueError for invalid modes.
        """
        normalized = value.strip().lower()
        normalized = _MODE_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as exc:
            valid = ", ".join([m.value for m in cls])
            raise ValueError(f"Invalid execution mode '{value}'. Valid modes are: {valid}") from exc


_MODE_ALIASES = {
    "dry": "preview",
    "dry-run": "preview",
    "dry_run": "preview",
    "automatic": "auto",
    "step": "interactive",
    "step-confirm": "interactive",
    "step_confirm": "interactive",
}


class ResultKind(str, Enum):
    """Outcome of a single command."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    PREVIEWED = "previewed"


class StepAction(str, Enum):
    """Choice offered for each command in step-confirm mode."""

    EXECUTE = "execute"
    SKIP = "skip"
    QUIT = "quit"


@dataclass
class ExecutionResult:
    """Result of one command. Exactly one kind, always tied to its command."""

    command: str
    kind: ResultKind
    error: str | None = None
    exit_code: int | None = None
    duration_seconds: float = 0.0

    @classmethod
    def succeeded(cls, command: str, duration_seconds: float = 0.0) -> "ExecutionResult":
        return cls(command=command, kind=ResultKind.SUCCEEDED, exit_code=0, duration_seconds=duration_seconds)

    @classmethod
    def failed(
        cls,
        command: str,
        error: str,
        exit_code: int | None = None,
        duration_seconds: float = 0.0,
    ) -> "ExecutionResult":
        return cls(
            command=command,
            kind=ResultKind.FAILED,
            error=error,
            exit_code=exit_code,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def cancelled(cls, command: str) -> "ExecutionResult":
        return cls(command=command, kind=ResultKind.CANCELLED)

    @classmethod
    def skipped(cls, command: str) -> "ExecutionResult":
        return cls(command=command, kind=ResultKind.SKIPPED)

    @classmethod
    def previewed(cls, command: str) -> "ExecutionResult":
        return cls(command=command, kind=ResultKind.PREVIEWED)

    @classmethod
    def from_error(cls, error: CommandError, duration_seconds: float = 0.0) -> "ExecutionResult":
        """Map a command-level exception onto its result kind."""
        if isinstance(error, UserCancelled):
            return cls(command=error.command, kind=ResultKind.CANCELLED, error=error.message)
        if isinstance(error, UserSkipped):
            return cls(command=error.command, kind=ResultKind.SKIPPED, error=error.message)
        return cls.failed(
            error.command,
            error.message,
            exit_code=getattr(error, "exit_code", None),
            duration_seconds=duration_seconds,
        )

    @property
    def is_failure(self) -> bool:
        return self.kind == ResultKind.FAILED

    @property
    def halts_automatic_run(self) -> bool:
        """Failed and cancelled results stop an automatic batch."""
        return self.kind in (ResultKind.FAILED, ResultKind.CANCELLED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "kind": self.kind.value,
            "error": self.error,
            "exit_code": self.exit_code,
            "duration_seconds": self.duration_seconds,
        }


class SolutionOption(BaseModel):
    """One remediation direction parsed from the first recovery response."""

    title: str = Field(description="Short label shown in the selection list")
    description: str = Field(description="Explanation of the direction")
    full_text: str = Field(description="The whole numbered line, sent back in the second prompt")

    @field_validator("full_text")
    @classmethod
    def validate_full_text_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("full_text cannot be empty")
        return v


@dataclass
class RecoveryContext:
    """Everything the second recovery prompt needs."""

    failed_command: str
    error_message: str
    chosen_solution_text: str = ""


class RecoveryStatus(str, Enum):
    """How a recovery dialogue ended."""

    UNAVAILABLE = "unavailable"
    CANCELLED = "cancelled"
    NO_COMMANDS = "no_commands"
    PREVIEWED = "previewed"
    EXECUTED = "executed"


@dataclass
class RecoveryOutcome:
    """Record of one recovery dialogue. Never alters the original result."""

    status: RecoveryStatus
    options: list[SolutionOption] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    mode: ExecutionMode | None = None
    results: list[ExecutionResult] = field(default_factory=list)
    reason: str = ""


@dataclass(frozen=True)
class ExecutionSummary:
    """Counts of a batch's results by kind."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    skipped: int = 0
    previewed: int = 0

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0 and self.cancelled == 0
