"""Repository status used to enrich prompts and console output."""

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 5


@dataclass
class GitStatus:
    current_dir: str
    is_git_repository: bool = False
    current_branch: str | None = None
    repository_name: str = ""
    remote_url: str = ""
    repo_root: str = ""
    has_uncommitted_changes: bool = False
    has_unpushed_commits: bool = False
    working_tree: str = ""
    total_commits: int = 0
    is_in_repo_root: bool = False
    error: str | None = None

    @property
    def changed_file_count(self) -> int:
        return len(self.working_tree.splitlines()) if self.working_tree else 0


def _git(args: list[str], cwd: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=GIT_TIMEOUT,
    )


def _repository_name(remote_url: str, repo_root: str) -> str:
    if remote_url:
        match = re.search(r"([^/:]+?)(?:\.git)?/?$", remote_url)
        if match:
            return match.group(1)
    return Path(repo_root).name


def get_git_status(cwd: str | None = None) -> GitStatus:
    """Inspect the repository containing cwd. Never raises."""
    current_dir = cwd or os.getcwd()
    status = GitStatus(current_dir=current_dir)

    try:
        check = _git(["rev-parse", "--show-toplevel"], current_dir)
        if check.returncode != 0:
            status.error = check.stderr.strip() or "Not a git repository"
            return status

        status.is_git_repository = True
        status.repo_root = check.stdout.strip()
        status.is_in_repo_root = Path(current_dir).resolve() == Path(status.repo_root).resolve()

        branch = _git(["branch", "--show-current"], current_dir)
        status.current_branch = branch.stdout.strip() or None

        working_tree = _git(["status", "--porcelain"], current_dir)
        status.working_tree = working_tree.stdout.strip()
        status.has_uncommitted_changes = bool(status.working_tree)

        remote = _git(["remote", "get-url", "origin"], current_dir)
        if remote.returncode == 0:
            status.remote_url = remote.stdout.strip()
        status.repository_name = _repository_name(status.remote_url, status.repo_root)

        # Fails when there is no upstream branch
        unpushed = _git(["log", "@{u}..", "--oneline"], current_dir)
        if unpushed.returncode == 0:
            status.has_unpushed_commits = bool(unpushed.stdout.strip())

        # Fails when there are no commits yet
        commits = _git(["rev-list", "--count", "HEAD"], current_dir)
        if commits.returncode == 0 and commits.stdout.strip().isdigit():
            status.total_commits = int(commits.stdout.strip())

    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("git status lookup failed: %s", e)
        status.is_git_repository = False
        status.error = str(e)

    return status


def display_git_status(status: GitStatus, console: Console | None = None) -> None:
    console = console or Console()
    console.print("[bold blue]📍 Location[/bold blue]")

    if not status.is_git_repository:
        console.print("[red]❌ Not a git repository[/red]")
        console.print(f"[dim]📁 Current directory: {escape(status.current_dir)}[/dim]")
        console.print('[dim]💡 Run "git init" or change into a repository first[/dim]')
        return

    console.print(f"[green]✅ Repository: {escape(status.repository_name)}[/green]")
    console.print(f"[dim]🔗 Remote: {escape(status.remote_url) if status.remote_url else 'local only'}[/dim]")
    console.print(f"[dim]📁 Root: {escape(status.repo_root)}[/dim]")
    if not status.is_in_repo_root:
        console.print(f"[yellow]⚠️  Current directory: {escape(status.current_dir)} (not the repository root)[/yellow]")
    if status.current_branch:
        console.print(f"[cyan]🌿 Branch: {escape(status.current_branch)}[/cyan]")
    if status.total_commits:
        console.print(f"[dim]📊 Commits: {status.total_commits}[/dim]")

    states = []
    if status.has_uncommitted_changes:
        states.append("[yellow]📝 uncommitted changes[/yellow]")
    if status.has_unpushed_commits:
        states.append("[blue]📤 unpushed commits[/blue]")
    if not states:
        states.append("[green]✨ clean[/green]")
    console.print(f"[dim]📋 State:[/dim] {', '.join(states)}")
