from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit

from .changelog import Change, ChangelogMerger, build_release_description
from .config import Config
from .git import GitClient
from .versions import VersionTool, increment_version, is_prerelease


def read_changelog(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logging.info(f"{path} does not exist, starting a new changelog")
        return ""
    except (OSError, UnicodeDecodeError) as exc:
        raise RuntimeError(f"Could not read the changelog file {path}: {exc}") from exc


@dataclass(frozen=True)
class Project:
    """Everything known about the release being created.

    Built in two steps: `resolve` gathers what the precondition checks need,
    `load_history` then adds the commit list and the existing changelog, which
    are only readable once those checks have passed.
    """

    release_type: str
    remote: str
    default_branch: str
    last_release_version: str
    next_release_version: str
    next_release_date: date
    release_branch: str
    remote_url: str
    changelog_path: str
    changes: List[Change] = field(default_factory=list)
    last_release_changelog: str = ""
    release_pr_label: Optional[str] = None
    @classmethod
    def resolve(cls, cfg: Config, git: GitClient, versions: VersionTool) -> "Project":
        logging.info("Resolving release details...")
        remote = cfg.remote
        default_branch = cfg.default_branch or git.default_branch(remote)
        last_version = cfg.last_release_version or versions.current()
        next_version = cfg.next_release_version or increment_version(
            last_version, cfg.release_type, pre=cfg.pre, pre_type=cfg.pre_type
        )
        next_tag = f"v{next_version}"
        if git.tag_exists(next_tag):
            next_date = git.tag_date(next_tag)
        else:
            next_date = date.today()

        project = cls(
            release_type=cfg.release_type,
            remote=remote,
            default_branch=default_branch,
            last_release_version=last_version,
            next_release_version=next_version,
            next_release_date=next_date,
            release_branch=cfg.release_branch or f"release-{next_tag}",
            remote_url=git.remote_url(remote),
            changelog_path=cfg.changelog_path,
            release_pr_label=cfg.release_pr_label,
        )
        logging.debug(f"Release details:\n{project.describe()}")
        return project

    def load_history(self, git: GitClient) -> "Project":
        if self.first_release:
            changes = git.list_commits()
        else:
            changes = git.list_commits(since_tag=self.last_release_tag)
        logging.info(f"Found {len(changes)} changes for {self.next_release_tag}")
        return replace(
            self,
            changes=changes,
            last_release_changelog=read_changelog(self.changelog_path),
        )

    @property
    def first_release(self) -> bool:
        return self.release_type == "first"

    @property
    def prerelease(self) -> bool:
        return is_prerelease(self.next_release_version)

    @property
    def last_release_tag(self) -> str:
        return f"v{self.last_release_version}"

    @property
    def next_release_tag(self) -> str:
        return f"v{self.next_release_version}"

    @property
    def remote_base_url(self) -> str:
        parts = urlsplit(self.remote_url)
        if not parts.scheme:
            return ""
        return f"{parts.scheme}://{parts.netloc}/"

    @property
    def remote_repository(self) -> str:
        parts = urlsplit(self.remote_url)
        path = parts.path
        if not parts.scheme and ":" in path:
            # scp-like remote, e.g. git@github.com:org/repo
            path = path.split(":", 1)[1]
        path = path.lstrip("/")
        if path.endswith(".git"):
            path = path[: -len(".git")]
        return path

    @property
    def release_url(self) -> str:
        return f"{self.remote_url}/releases/tag/{self.next_release_tag}"

    @property
    def release_log_url(self) -> str:
        if self.first_release:
            return self.release_url
        return f"{self.remote_url}/compare/{self.last_release_tag}..{self.next_release_tag}"

    @property
    def next_release_description(self) -> str:
        return build_release_description(
            tag=self.next_release_tag,
            date=self.next_release_date,
            compare_url=self.release_log_url,
            changes=self.changes,
            first_release=self.first_release,
            last_release_tag=self.last_release_tag,
        )

    @property
    def next_release_changelog(self) -> str:
        return ChangelogMerger(self.last_release_changelog, self.next_release_description).render()

    def describe(self) -> str:
        rows = [
            ("default_branch", self.default_branch),
            ("next_release_tag", self.next_release_tag),
            ("next_release_date", self.next_release_date.isoformat()),
            ("next_release_version", self.next_release_version),
            ("prerelease", self.prerelease),
            ("last_release_tag", self.last_release_tag),
            ("last_release_version", self.last_release_version),
            ("release_branch", self.release_branch),
            ("release_log_url", self.release_log_url),
            ("release_type", self.release_type),
            ("release_url", self.release_url),
            ("remote", self.remote),
            ("remote_base_url", self.remote_base_url),
            ("remote_repository", self.remote_repository),
            ("remote_url", self.remote_url),
            ("changelog_path", self.changelog_path),
        ]
        return "\n".join(f"{key}: {value}" for key, value in rows)
