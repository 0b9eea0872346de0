"""Prompt construction and command extraction for command generation."""

import re
from dataclasses import dataclass, field

from gitpilot.executor.danger import find_danger
from gitpilot.executor.models import ExecutionMode
from gitpilot.git_context import GitStatus

CODE_BLOCK_PATTERN = re.compile(r"```(?:bash|shell|sh)?[ \t]*\n(.*?)```", re.DOTALL)
INLINE_GIT_PATTERN = re.compile(r"git\s+[\w\s\-./]+")
COMMAND_PREFIXES = ("git ", "gh ")

MODE_INSTRUCTIONS = {
    ExecutionMode.PREVIEW: "List the commands ready to run, with no explanation in between.",
    ExecutionMode.AUTOMATIC: "The commands will run automatically, so keep them safe and in executable order.",
    ExecutionMode.STEP_CONFIRM: (
        "Make each step clearly separate and ordered; the user will confirm every command."
    ),
}


def build_prompt(user_request: str, mode: ExecutionMode, git_status: GitStatus | None = None) -> str:
    """Build the command-generation prompt for a natural-language request."""
    if mode not in MODE_INSTRUCTIONS:
        raise ValueError(f"Unsupported execution mode: {mode}")

    base = f"""You are a git expert.
The user's goal is: {user_request}

Output only the git commands the user can run in a terminal to reach this goal.
- Print one command per line, with no explanations
- Do not put numbers or symbols in front of the commands
- GitHub CLI (gh) commands are allowed when needed"""

    return f"{base}\n{_context_lines(git_status)}\n\n{MODE_INSTRUCTIONS[mode]}"


def _context_lines(git_status: GitStatus | None) -> str:
    if git_status is None:
        return ""

    lines = ["", "Current environment:"]
    if not git_status.is_git_repository:
        lines.append("- Not a git repository")
        lines.append(f"- Current directory: {git_status.current_dir}")
        lines.append("- The repository may need to be initialized first")
        return "\n".join(lines)

    lines.append(f"- Repository: {git_status.repository_name}")
    lines.append(f"- Repository root: {git_status.repo_root}")
    lines.append(f"- Current directory: {git_status.current_dir}")
    lines.append(f"- Remote: {git_status.remote_url or 'local only'}")
    if git_status.current_branch:
        lines.append(f"- Current branch: {git_status.current_branch}")
    if git_status.total_commits:
        lines.append(f"- Total commits: {git_status.total_commits}")
    if not git_status.is_in_repo_root:
        lines.append("- The current directory is not the repository root")
    if git_status.has_uncommitted_changes:
        lines.append(f"- Uncommitted changes in {git_status.changed_file_count} file(s)")
    else:
        lines.append("- Working tree is clean")
    if git_status.has_unpushed_commits:
        lines.append("- There are unpushed commits")
    return "\n".join(lines)


def parse_commands(response: str) -> list[str]:
    """Extract commands from a generation response.

    Fenced bash/sh/shell blocks win; otherwise lines starting with ``git``
    or ``gh``; otherwise inline ``git ...`` fragments. Duplicates are
    dropped, keeping first occurrence order.
    """
    commands: list[str] = []

    for block in CODE_BLOCK_PATTERN.findall(response):
        for line in block.splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                commands.append(line)

    if not commands:
        for line in response.splitlines():
            line = line.strip()
            if line.startswith(COMMAND_PREFIXES):
                commands.append(line)

    if not commands:
        commands = [match.strip() for match in INLINE_GIT_PATTERN.findall(response)]

    return [command for command in dict.fromkeys(commands) if command]


@dataclass
class ValidationReport:
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    command_count: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.issues


def validate_commands(commands: list[str]) -> ValidationReport:
    """Flag non git/gh commands as issues and dangerous commands as warnings."""
    report = ValidationReport(command_count=len(commands))
    for index, command in enumerate(commands, start=1):
        danger = find_danger(command)
        if danger:
            report.warnings.append(f'Command {index}: "{command}" may be destructive ({danger})')
        if not command.startswith(COMMAND_PREFIXES):
            report.issues.append(f'Command {index}: "{command}" is not a git or gh command')
    return report
