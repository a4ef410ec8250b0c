from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List

from .git import GitClient, GitHubClient
from .project import Project


class AssertionFailed(RuntimeError):
    pass


def _check(description: str) -> None:
    logging.info(f"Checking that {description}...")


def _ok() -> None:
    logging.info("OK")


# Environment checks, run before anything about the release is resolved

def git_command_exists(git: GitClient, gh: GitHubClient) -> None:
    _check("the git command exists")
    if not git.is_available():
        raise AssertionFailed("The git command was not found")
    _ok()


def gh_command_exists(git: GitClient, gh: GitHubClient) -> None:
    _check("the gh command exists")
    if not gh.is_available():
        raise AssertionFailed("The gh command was not found")
    _ok()


def in_git_repo(git: GitClient, gh: GitHubClient) -> None:
    _check("you are in a git repo")
    if not git.in_work_tree():
        raise AssertionFailed("You are not in a git repo")
    _ok()


def in_repo_root_directory(git: GitClient, gh: GitHubClient) -> None:
    _check("you are in the repo's root directory")
    cwd = Path(git.cwd) if git.cwd else Path.cwd()
    if git.toplevel().resolve() != cwd.resolve():
        raise AssertionFailed("You are not in the repo's root directory")
    _ok()


def gh_authenticated(git: GitClient, gh: GitHubClient) -> None:
    _check("the gh command is authenticated")
    result = gh.auth_status()
    if not result.ok:
        output = (result.stdout + result.stderr).strip()
        raise AssertionFailed(f"gh not authenticated:\n{output}")
    _ok()


# Checks that need the resolved release details

def on_default_branch(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check("you are on the default branch")
    if git.current_branch() != project.default_branch:
        raise AssertionFailed(f"You are not on the default branch '{project.default_branch}'")
    _ok()


def no_uncommitted_changes(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check("there are no uncommitted changes")
    if git.has_uncommitted_changes():
        raise AssertionFailed("There are uncommitted changes")
    _ok()


def no_staged_changes(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check("there are no staged changes")
    if git.has_staged_changes():
        raise AssertionFailed("There are staged changes")
    _ok()


def local_and_remote_on_same_commit(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check("local and remote are on the same commit")
    local_commit = git.head_commit()
    remote_commit = git.remote_commit(project.remote, project.default_branch)
    if local_commit != remote_commit:
        raise AssertionFailed("Local and remote are not on the same commit")
    _ok()


def last_release_tag_exists(project: Project, git: GitClient, gh: GitHubClient) -> None:
    if project.first_release:
        return
    _check(f"last release tag '{project.last_release_tag}' exists")
    if not git.tag_exists(project.last_release_tag):
        raise AssertionFailed(f"Last release tag '{project.last_release_tag}' does not exist")
    _ok()


def local_release_tag_does_not_exist(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check(f"local tag '{project.next_release_tag}' does not exist")
    if git.tag_exists(project.next_release_tag):
        raise AssertionFailed(f"Local tag '{project.next_release_tag}' already exists")
    _ok()


def remote_release_tag_does_not_exist(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check(f"remote tag '{project.next_release_tag}' does not exist")
    if git.remote_tag_exists(project.remote, project.next_release_tag):
        raise AssertionFailed(f"Remote tag '{project.next_release_tag}' already exists")
    _ok()


def local_release_branch_does_not_exist(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check(f"local branch '{project.release_branch}' does not exist")
    if git.branch_exists(project.release_branch):
        raise AssertionFailed(f"Local branch '{project.release_branch}' already exists")
    _ok()


def remote_release_branch_does_not_exist(project: Project, git: GitClient, gh: GitHubClient) -> None:
    _check(f"remote branch '{project.release_branch}' does not exist")
    if git.remote_branch_exists(project.remote, project.release_branch):
        raise AssertionFailed(f"Remote branch '{project.release_branch}' already exists")
    _ok()


def release_pr_label_exists(project: Project, git: GitClient, gh: GitHubClient) -> None:
    if project.release_pr_label is None:
        return
    _check(f"release pr label '{project.release_pr_label}' exists")
    if project.release_pr_label not in gh.labels():
        raise AssertionFailed(f"Release pr label '{project.release_pr_label}' does not exist")
    _ok()


ENVIRONMENT_ASSERTIONS: List[Callable[[GitClient, GitHubClient], None]] = [
    git_command_exists,
    gh_command_exists,
    in_git_repo,
    in_repo_root_directory,
    gh_authenticated,
]

PROJECT_ASSERTIONS: List[Callable[[Project, GitClient, GitHubClient], None]] = [
    on_default_branch,
    no_uncommitted_changes,
    no_staged_changes,
    local_and_remote_on_same_commit,
    last_release_tag_exists,
    local_release_tag_does_not_exist,
    remote_release_tag_does_not_exist,
    local_release_branch_does_not_exist,
    remote_release_branch_does_not_exist,
    release_pr_label_exists,
]


def check_environment(git: GitClient, gh: GitHubClient) -> None:
    for assertion in ENVIRONMENT_ASSERTIONS:
        assertion(git, gh)


def check_project(project: Project, git: GitClient, gh: GitHubClient) -> None:
    for assertion in PROJECT_ASSERTIONS:
        assertion(project, git, gh)
