"""Tests for the two-phase recovery dialogue and its response parsers."""

import unittest
from unittest.mock import MagicMock, patch

import pytest

from gitpilot.errors import GenerationError
from gitpilot.executor import build_engine
from gitpilot.executor.models import (
    ExecutionMode,
    ExecutionResult,
    RecoveryContext,
    RecoveryStatus,
    ResultKind,
)
from gitpilot.executor.recovery import (
    CANCEL,
    DIRECT_INPUT,
    RecoveryOrchestrator,
    build_commands_prompt,
    build_options_prompt,
    extract_git_commands,
    parse_solution_options,
)

OPTIONS_RESPONSE = """Here are some options:
1. Pull first: Fetch and merge the remote changes before pushing
2. **Rebase**: Replay your commits on top of the remote branch
3. Force push: Overwrite the remote branch with your local history
"""


class TestParseSolutionOptions(unittest.TestCase):
    def test_title_and_description_split(self) -> None:
        options = parse_solution_options(OPTIONS_RESPONSE)
        self.assertEqual(len(options), 3)
        self.assertEqual(options[0].title, "Pull first")
        self.assertEqual(options[0].description, "Fetch and merge the remote changes before pushing")
        self.assertEqual(options[0].full_text, "Pull first: Fetch and merge the remote changes before pushing")

    def test_bold_title_is_unwrapped(self) -> None:
        options = parse_solution_options(OPTIONS_RESPONSE)
        self.assertEqual(options[1].title, "Rebase")
        self.assertEqual(options[1].description, "Replay your commits on top of the remote branch")

    def test_bold_title_with_colon_inside(self) -> None:
        options = parse_solution_options("1. **Stash changes:** Put local edits aside")
        self.assertEqual(options[0].title, "Stash changes")
        self.assertEqual(options[0].description, "Put local edits aside")

    def test_line_without_colon_uses_truncated_title(self) -> None:
        long_line = "Stash your local changes and then pull the latest commits from origin"
        options = parse_solution_options(f"1. {long_line}\n2. Short one")
        self.assertEqual(options[0].title, long_line[:40] + "...")
        self.assertEqual(options[0].description, long_line)
        self.assertEqual(options[1].title, "Short one")
        self.assertEqual(options[1].description, "Short one")

    def test_no_numbered_lines(self) -> None:
        self.assertEqual(parse_solution_options("I am not sure what went wrong."), [])
        self.assertEqual(parse_solution_options(""), [])

    def test_indented_numbers_are_accepted(self) -> None:
        options = parse_solution_options("  1. Retry: Run the command again")
        self.assertEqual(options[0].title, "Retry")


class TestExtractGitCommands(unittest.TestCase):
    def test_plain_lines(self) -> None:
        text = "git fetch origin\ngit rebase origin/main\ngit push"
        self.assertEqual(extract_git_commands(text), ["git fetch origin", "git rebase origin/main", "git push"])

    def test_fenced_block_and_prose(self) -> None:
        text = "First update your branch:\n```bash\ngit pull --rebase origin main\n```\nThen push with `git push`."
        self.assertEqual(extract_git_commands(text), ["git pull --rebase origin main"])

    def test_inline_backticks_at_line_start(self) -> None:
        self.assertEqual(extract_git_commands("`git stash`"), ["git stash"])

    def test_list_markers_and_prompts(self) -> None:
        text = "1. git stash\n- git pull\n$ git stash pop\n* git status"
        self.assertEqual(extract_git_commands(text), ["git stash", "git pull", "git stash pop", "git status"])

    def test_no_commands(self) -> None:
        self.assertEqual(extract_git_commands("Just delete the lock file manually."), [])
        self.assertEqual(extract_git_commands("gitk --all"), [])


class TestPrompts(unittest.TestCase):
    def test_options_prompt_mentions_command_and_error(self) -> None:
        prompt = build_options_prompt("git push", "rejected: non-fast-forward")
        self.assertIn("git push", prompt)
        self.assertIn("rejected: non-fast-forward", prompt)
        self.assertIn("1. Title: short description", prompt)

    def test_commands_prompt_includes_chosen_solution(self) -> None:
        context = RecoveryContext("git push", "rejected", chosen_solution_text="Pull first: merge remote")
        prompt = build_commands_prompt(context)
        self.assertIn("Pull first: merge remote", prompt)
        self.assertIn("git push", prompt)

    def test_long_error_is_truncated(self) -> None:
        prompt = build_options_prompt("git push", "x" * 5000)
        self.assertIn("[truncated]", prompt)
        self.assertLess(len(prompt), 5000)


@pytest.fixture
def make_orchestrator(make_prompter, console):
    def factory(responses, choices=None, texts=None):
        generate = MagicMock(side_effect=responses)
        batch = MagicMock()
        batch.run_batch.side_effect = lambda commands, mode, suppress_recovery=False: [
            ExecutionResult.succeeded(c) for c in commands
        ]
        prompter = make_prompter(choices=choices, texts=texts)
        orchestrator = RecoveryOrchestrator(generate, batch, prompter, console=console)
        return orchestrator, generate, batch, prompter

    return factory


def test_full_dialogue_runs_inner_batch_with_suppressed_recovery(make_orchestrator):
    orchestrator, generate, batch, _ = make_orchestrator(
        [OPTIONS_RESPONSE, "git pull --rebase\ngit push"],
        choices=[0, ExecutionMode.AUTOMATIC],
    )

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.EXECUTED
    assert outcome.commands == ["git pull --rebase", "git push"]
    batch.run_batch.assert_called_once_with(
        ["git pull --rebase", "git push"], ExecutionMode.AUTOMATIC, suppress_recovery=True
    )
    second_prompt = generate.call_args_list[1][0][0]
    assert "Pull first: Fetch and merge the remote changes before pushing" in second_prompt


def test_choices_include_direct_input_and_cancel(make_orchestrator):
    orchestrator, _, _, prompter = make_orchestrator([OPTIONS_RESPONSE], choices=[CANCEL])

    orchestrator.recover("git push", "rejected")

    _, choices = prompter.choose_calls[0]
    values = [value for _, value in choices]
    assert len(values) == 5
    assert values[-2:] == [DIRECT_INPUT, CANCEL]


def test_cancel_at_option_selection(make_orchestrator):
    orchestrator, generate, batch, _ = make_orchestrator([OPTIONS_RESPONSE], choices=[CANCEL])

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.CANCELLED
    assert generate.call_count == 1
    batch.run_batch.assert_not_called()


def test_direct_input_is_sent_as_solution(make_orchestrator):
    orchestrator, generate, _, prompter = make_orchestrator(
        [OPTIONS_RESPONSE, "git stash"],
        choices=[DIRECT_INPUT, ExecutionMode.PREVIEW],
        texts=["stash everything and try again"],
    )

    outcome = orchestrator.recover("git checkout main", "local changes would be overwritten")

    assert outcome.status == RecoveryStatus.PREVIEWED
    assert len(prompter.ask_text_calls) == 1
    assert "stash everything and try again" in generate.call_args_list[1][0][0]


def test_cancel_at_mode_selection(make_orchestrator):
    orchestrator, _, batch, _ = make_orchestrator([OPTIONS_RESPONSE, "git pull"], choices=[1, None])

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.CANCELLED
    assert outcome.commands == ["git pull"]
    batch.run_batch.assert_not_called()


def test_unparseable_options_end_quietly(make_orchestrator):
    orchestrator, _, batch, prompter = make_orchestrator(["I cannot help with that."])

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.UNAVAILABLE
    assert prompter.choose_calls == []
    batch.run_batch.assert_not_called()


def test_no_commands_in_second_response(make_orchestrator):
    orchestrator, _, batch, _ = make_orchestrator(
        [OPTIONS_RESPONSE, "Just wait a moment and retry."], choices=[0]
    )

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.NO_COMMANDS
    assert outcome.reason == "No executable commands found"
    batch.run_batch.assert_not_called()


@pytest.mark.parametrize("failing_call", [0, 1])
def test_generation_failure_ends_quietly(make_orchestrator, failing_call):
    responses = [OPTIONS_RESPONSE, "git pull"]
    responses[failing_call] = GenerationError("401 Unauthorized")
    orchestrator, _, batch, _ = make_orchestrator(responses, choices=[0])

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.UNAVAILABLE
    assert "401 Unauthorized" in outcome.reason
    batch.run_batch.assert_not_called()


@patch("gitpilot.executor.batch.time.sleep")
@patch("gitpilot.executor.runner.subprocess.run")
def test_failing_recovery_command_never_recurses(mock_run, mock_sleep, make_prompter, console):
    mock_run.return_value = MagicMock(returncode=1, stderr="fatal: boom\n")
    generate = MagicMock(side_effect=[OPTIONS_RESPONSE, "git pull\ngit push"])
    prompter = make_prompter(choices=[0, ExecutionMode.AUTOMATIC])
    batch = build_engine(generate, prompter=prompter, console=console)

    results = batch.run_batch(["git push"], ExecutionMode.AUTOMATIC)

    assert [r.kind for r in results] == [ResultKind.FAILED]
    assert results[0].command == "git push"
    # One dialogue only: options + commands, no third generation for the failed "git pull"
    assert generate.call_count == 2
    assert len(prompter.choose_calls) == 2


@patch("gitpilot.executor.runner.subprocess.run")
def test_engine_without_generator_reports_failure_only(mock_run, make_prompter, console):
    mock_run.return_value = MagicMock(returncode=1, stderr="")
    prompter = make_prompter()
    batch = build_engine(None, prompter=prompter, console=console)

    results = batch.run_batch(["git push"], ExecutionMode.AUTOMATIC)

    assert results[0].kind == ResultKind.FAILED
    assert prompter.choose_calls == []


@pytest.mark.parametrize("failing_call", [0, 1])
def test_transport_error_from_any_generator_ends_quietly(make_orchestrator, failing_call):
    responses = [OPTIONS_RESPONSE, "git pull"]
    responses[failing_call] = ConnectionError("network down")
    orchestrator, _, batch, _ = make_orchestrator(responses, choices=[0])

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.UNAVAILABLE
    assert "network down" in outcome.reason
    batch.run_batch.assert_not_called()


@patch("gitpilot.executor.runner.subprocess.run")
def test_engine_survives_plain_exception_from_generator(mock_run, make_prompter, console):
    mock_run.return_value = MagicMock(returncode=1, stderr=None)
    generate = MagicMock(side_effect=ConnectionError("network down"))
    batch = build_engine(generate, prompter=make_prompter(), console=console)

    results = batch.run_batch(["git push", "git status"], ExecutionMode.AUTOMATIC)

    assert [r.kind for r in results] == [ResultKind.FAILED]
    generate.assert_called_once()


@patch("gitpilot.executor.runner.subprocess.run")
def test_engine_survives_prompt_eof_during_recovery(mock_run, make_prompter, console):
    mock_run.return_value = MagicMock(returncode=1, stderr=None)
    prompter = make_prompter()
    prompter.choose = MagicMock(side_effect=EOFError())
    batch = build_engine(MagicMock(return_value=OPTIONS_RESPONSE), prompter=prompter, console=console)

    results = batch.run_batch(["git push"], ExecutionMode.AUTOMATIC)

    assert [r.kind for r in results] == [ResultKind.FAILED]


def test_empty_direct_input_cancels(make_orchestrator):
    orchestrator, generate, batch, _ = make_orchestrator([OPTIONS_RESPONSE], choices=[DIRECT_INPUT], texts=[""])

    outcome = orchestrator.recover("git push", "rejected")

    assert outcome.status == RecoveryStatus.CANCELLED
    assert generate.call_count == 1
    batch.run_batch.assert_not_called()
