from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from ghrelease.changelog import Change
from ghrelease.git import CommandError, CommandResult
from ghrelease.project import Project


ENV_VARS = (
    "GH_RELEASE_DEFAULT_BRANCH",
    "GH_RELEASE_REMOTE",
    "GH_RELEASE_CHANGELOG_PATH",
    "GH_RELEASE_PR_LABEL",
    "GH_RELEASE_VERSION_TOOL",
    "GH_RELEASE_LOG_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeGit:
    """In-memory stand-in for GitClient recording every mutating call."""

    def __init__(self, cwd: Optional[Path] = None) -> None:
        self.cwd = cwd
        self.available = True
        self.work_tree = True
        self.top = cwd
        self.branch = "main"
        self.head = "abc123"
        self.remote_head = "abc123"
        self.url = "https://github.com/org/repo"
        self.default = "main"
        self.tags: List[str] = []
        self.remote_tags: List[str] = []
        self.branches: List[str] = ["main"]
        self.remote_branches: List[str] = ["main"]
        self.uncommitted = False
        self.staged = False
        self.commits: List[Change] = []
        self.tag_dates: Dict[str, date] = {}
        self.calls: List[tuple] = []
        self.fail_on: Optional[str] = None

    def _record(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise CommandError(["git", name], 1, f"{name} failed")

    def is_available(self) -> bool:
        return self.available

    def in_work_tree(self) -> bool:
        return self.work_tree

    def toplevel(self) -> Path:
        return self.top

    def current_branch(self) -> str:
        return self.branch

    def head_commit(self) -> str:
        return self.head

    def remote_commit(self, remote: str, branch: str) -> str:
        return self.remote_head

    def remote_url(self, remote: str) -> str:
        return self.url

    def default_branch(self, remote: str) -> str:
        return self.default

    def tag_exists(self, tag: str) -> bool:
        return tag in self.tags

    def remote_tag_exists(self, remote: str, tag: str) -> bool:
        return tag in self.remote_tags

    def branch_exists(self, branch: str) -> bool:
        return branch in self.branches

    def remote_branch_exists(self, remote: str, branch: str) -> bool:
        return branch in self.remote_branches

    def has_uncommitted_changes(self) -> bool:
        return self.uncommitted

    def has_staged_changes(self) -> bool:
        return self.staged

    def list_commits(self, since_tag: Optional[str] = None) -> List[Change]:
        self.calls.append(("list_commits", since_tag))
        if since_tag is not None and since_tag not in self.tags:
            raise CommandError(["git", "log", f"^{since_tag}"], 128, f"bad revision '^{since_tag}'")
        return list(self.commits)

    def tag_date(self, tag: str) -> date:
        return self.tag_dates[tag]

    def create_branch(self, branch: str) -> None:
        self._record("create_branch", branch)

    def add(self, *paths: str) -> None:
        self._record("add", *paths)

    def add_tracked(self) -> None:
        self._record("add_tracked")

    def commit(self, message: str) -> None:
        self._record("commit", message)

    def create_tag(self, tag: str) -> None:
        self._record("create_tag", tag)

    def push(self, remote: str, branch: str) -> None:
        self._record("push", remote, branch)


class FakeGitHub:
    def __init__(self) -> None:
        self.available = True
        self.authenticated = True
        self.label_names: List[str] = []
        self.calls: List[tuple] = []
        self.fail_on: Optional[str] = None

    def is_available(self) -> bool:
        return self.available

    def auth_status(self) -> CommandResult:
        if self.authenticated:
            return CommandResult(0, "Logged in to github.com", "")
        return CommandResult(1, "", "You are not logged into any GitHub hosts.")

    def labels(self) -> List[str]:
        return list(self.label_names)

    def create_release(
        self, tag: str, notes_path: Path, target: str, prerelease: bool = False
    ) -> None:
        self.calls.append(
            ("create_release", tag, Path(notes_path).read_text(encoding="utf-8"), target, prerelease)
        )
        if self.fail_on == "create_release":
            raise CommandError(["gh", "release", "create"], 1, "release failed")

    def create_pull_request(
        self, title: str, body_path: Path, base: str, label: Optional[str] = None
    ) -> None:
        self.calls.append(
            ("create_pull_request", title, Path(body_path).read_text(encoding="utf-8"), base, label)
        )


class FakeVersions:
    def __init__(self, current: str = "0.1.0") -> None:
        self._current = current
        self.bumped: List[str] = []

    def current(self) -> str:
        return self._current

    def bump(self, new_version: str) -> None:
        self.bumped.append(new_version)


@pytest.fixture
def fake_git(tmp_path: Path) -> FakeGit:
    return FakeGit(cwd=tmp_path)


@pytest.fixture
def fake_gh() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def fake_versions() -> FakeVersions:
    return FakeVersions()


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(
        release_type="major",
        remote="origin",
        default_branch="main",
        last_release_version="0.1.0",
        next_release_version="1.0.0",
        next_release_date=date(2022, 11, 7),
        release_branch="release-v1.0.0",
        remote_url="https://github.com/org/repo",
        changelog_path=str(tmp_path / "CHANGELOG.md"),
        changes=[
            Change("e718690", "Release v1.0.0 (#3)"),
            Change("ab598f3", "Fix Rubocop offenses (#2)"),
        ],
        last_release_changelog="# Changelog\n\n## v0.1.0 (2022-10-31)\n\n* 07a1167 Release v0.1.0 (#1)\n",
    )
