from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List

from .git import CommandError, GitClient, GitHubClient
from .project import Project
from .versions import VersionTool


class TaskFailed(RuntimeError):
    pass


@contextmanager
def _temp_text_file(text: str) -> Iterator[Path]:
    """Write text to a temporary file that is removed on exit."""
    try:
        fd, name = tempfile.mkstemp(prefix="ghrelease-", suffix=".md")
    except OSError as exc:
        raise TaskFailed(f"Could not create a temporary file: {exc}") from exc
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        yield path
    finally:
        path.unlink(missing_ok=True)


class ReleaseTasks:
    """Run the release steps in order, stopping at the first failure.

    Nothing already done is undone when a step fails.
    """

    def __init__(
        self, project: Project, git: GitClient, gh: GitHubClient, versions: VersionTool
    ) -> None:
        self.project = project
        self.git = git
        self.gh = gh
        self.versions = versions

    @property
    def steps(self) -> List[Callable[[], None]]:
        return [
            self.create_release_branch,
            self.update_changelog,
            self.update_version,
            self.commit_release,
            self.create_release_tag,
            self.push_release,
            self.create_github_release,
            self.create_release_pull_request,
        ]

    def run(self) -> None:
        for step in self.steps:
            step()

    def create_release_branch(self) -> None:
        branch = self.project.release_branch
        logging.info(f"Creating branch '{branch}'...")
        try:
            self.git.create_branch(branch)
        except CommandError as exc:
            raise TaskFailed(f"Could not create branch '{branch}': {exc}") from exc
        logging.info("OK")

    def update_changelog(self) -> None:
        path = self.project.changelog_path
        logging.info(f"Updating {path}...")
        try:
            Path(path).write_text(self.project.next_release_changelog, encoding="utf-8")
        except OSError as exc:
            raise TaskFailed(f"Could not update {path}: {exc}") from exc
        logging.info("OK")

        logging.info(f"Staging {path}...")
        try:
            self.git.add(path)
        except CommandError as exc:
            raise TaskFailed(f"Could not stage changes to {path}: {exc}") from exc
        logging.info("OK")

    def update_version(self) -> None:
        if self.project.first_release:
            logging.info("First release, keeping the current version")
            return
        logging.info(f"Updating version to {self.project.next_release_version}...")
        try:
            self.versions.bump(self.project.next_release_version)
        except CommandError as exc:
            raise TaskFailed(f"Could not bump version: {exc}") from exc
        try:
            self.git.add_tracked()
        except CommandError as exc:
            raise TaskFailed(f"Could not stage version changes: {exc}") from exc
        logging.info("OK")

    def commit_release(self) -> None:
        logging.info("Making release commit...")
        try:
            self.git.commit(f"chore: release {self.project.next_release_tag}")
        except CommandError as exc:
            raise TaskFailed(f"Could not make release commit: {exc}") from exc
        logging.info("OK")

    def create_release_tag(self) -> None:
        tag = self.project.next_release_tag
        logging.info(f"Creating tag '{tag}'...")
        try:
            self.git.create_tag(tag)
        except CommandError as exc:
            raise TaskFailed(f"Could not create tag '{tag}': {exc}") from exc
        logging.info("OK")

    def push_release(self) -> None:
        branch = self.project.release_branch
        logging.info(f"Pushing branch '{branch}' to remote...")
        try:
            self.git.push(self.project.remote, branch)
        except CommandError as exc:
            raise TaskFailed(f"Could not push release commit: {exc}") from exc
        logging.info("OK")

    def create_github_release(self) -> None:
        tag = self.project.next_release_tag
        logging.info(f"Creating GitHub release '{tag}'...")
        with _temp_text_file(self.project.next_release_description) as notes_path:
            try:
                self.gh.create_release(
                    tag, notes_path, self.project.default_branch, prerelease=self.project.prerelease
                )
            except CommandError as exc:
                raise TaskFailed(f"Could not create release: {exc}") from exc
        logging.info("OK")

    def create_release_pull_request(self) -> None:
        logging.info("Creating GitHub pull request...")
        body = f"# Release PR\n\n{self.project.next_release_description}"
        with _temp_text_file(body) as body_path:
            try:
                self.gh.create_pull_request(
                    title=f"Release {self.project.next_release_tag}",
                    body_path=body_path,
                    base=self.project.default_branch,
                    label=self.project.release_pr_label,
                )
            except CommandError as exc:
                raise TaskFailed(f"Could not create release pull request: {exc}") from exc
        logging.info("OK")
