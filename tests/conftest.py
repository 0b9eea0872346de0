"""Shared fixtures for the gitpilot test suite."""

from __future__ import annotations

from collections import deque
from io import StringIO

import pytest
from rich.console import Console


class ScriptedPrompter:
    """Prompter that replays pre-recorded answers and records every question."""

    def __init__(self, confirms=None, choices=None, texts=None):
        self.confirms = deque(confirms or [])
        self.choices = deque(choices or [])
        self.texts = deque(texts or [])
        self.confirm_calls: list[str] = []
        self.choose_calls: list[tuple[str, list]] = []
        self.ask_text_calls: list[str] = []

    def confirm(self, message, default=False):
        self.confirm_calls.append(message)
        return self.confirms.popleft() if self.confirms else default

    def choose(self, message, choices):
        self.choose_calls.append((message, list(choices)))
        answer = self.choices.popleft()
        # An int picks the value at that position, anything else is returned as-is
        if isinstance(answer, int) and not isinstance(answer, bool):
            return choices[answer][1]
        return answer

    def ask_text(self, message):
        self.ask_text_calls.append(message)
        return self.texts.popleft()


def quiet_console() -> Console:
    return Console(file=StringIO(), force_terminal=False, width=120)


@pytest.fixture
def console():
    return quiet_console()


@pytest.fixture
def make_prompter():
    return ScriptedPrompter
