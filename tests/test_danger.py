import pytest

from gitpilot.executor.danger import DANGEROUS_PATTERNS, find_danger, is_dangerous


@pytest.mark.parametrize(
    "command",
    [
        "git reset --hard HEAD~1",
        "git reset --hard",
        "git clean -fd",
        "git clean -df",
        "git push --force origin main",
        "git push origin main --force-with-lease",
        "git push -f",
        "git rebase -i HEAD~3",
        "git rebase --interactive main",
        "git branch -D feature",
        "git tag -d v1.0",
        "rm -rf build",
        "rm -fr build",
        "rm -rfv build",
        "rm -Rf build",
        "rm -r -f build",
        "rm -f -r build",
        "rm --recursive --force build",
        "git clean --force",
        "git clean -d --force",
        "git filter-branch --tree-filter 'rm secrets' HEAD",
        "git filter-repo --path secrets --invert-paths",
    ],
)
def test_dangerous_commands(command):
    assert is_dangerous(command)


@pytest.mark.parametrize(
    "command",
    [
        "git status",
        "git reset --soft HEAD~1",
        "git reset HEAD file.txt",
        "git clean -n",
        "git push origin main",
        "git rebase main",
        "git branch -d merged-feature",
        "git tag v1.0",
        "rm file.txt",
        "rm -f file.txt",
        "rm -r empty_dir",
        "git commit -m 'force it'",
    ],
)
def test_safe_commands(command):
    assert not is_dangerous(command)


def test_find_danger_returns_first_matching_description():
    assert find_danger("git reset --hard HEAD~1") == DANGEROUS_PATTERNS[0][1]
    assert find_danger("git status") is None


def test_patterns_compile():
    import re

    for pattern, description in DANGEROUS_PATTERNS:
        re.compile(pattern)
        assert description
