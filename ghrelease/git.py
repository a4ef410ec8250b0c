from __future__ import annotations

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .changelog import Change


HEAD_BRANCH_RE = re.compile(r"HEAD branch: (?P<branch>.*?)$", re.MULTILINE)


class CommandError(RuntimeError):
    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"Command failed: {' '.join(self.args_list)}: {detail}")


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    args: Sequence[str], cwd: Optional[Path] = None, check: bool = True
) -> CommandResult:
    logging.debug(f"COMMAND: {' '.join(args)}")
    try:
        proc = subprocess.run(list(args), cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise CommandError(args, 127, str(exc)) from exc
    result = CommandResult(proc.returncode, proc.stdout or "", proc.stderr or "")
    for line in result.stdout.splitlines():
        logging.debug(f"OUTPUT: {line}")
    logging.debug(f"EXITSTATUS: {result.returncode}")
    if check and not result.ok:
        raise CommandError(args, result.returncode, result.stderr)
    return result


class GitClient:
    def __init__(self, cwd: Optional[Path] = None) -> None:
        self.cwd = cwd

    def _git(self, *args: str, check: bool = True) -> CommandResult:
        return run_command(["git", *args], cwd=self.cwd, check=check)

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def in_work_tree(self) -> bool:
        return self._git("rev-parse", "--is-inside-work-tree", "--quiet", check=False).ok

    def toplevel(self) -> Path:
        return Path(self._git("rev-parse", "--show-toplevel").stdout.strip())

    def current_branch(self) -> str:
        return self._git("branch", "--show-current").stdout.strip()

    def head_commit(self) -> str:
        return self._git("rev-parse", "HEAD").stdout.strip()

    def remote_commit(self, remote: str, branch: str) -> str:
        output = self._git("ls-remote", remote, branch).stdout
        first_line = output.splitlines()[0] if output.strip() else ""
        return first_line.split("\t")[0].strip()

    def remote_url(self, remote: str) -> str:
        url = self._git("remote", "get-url", remote).stdout.strip()
        if url.endswith(".git"):
            url = url[: -len(".git")]
        return url

    def default_branch(self, remote: str) -> str:
        output = self._git("remote", "show", remote).stdout
        match = HEAD_BRANCH_RE.search(output)
        if not match:
            raise RuntimeError(f"Could not determine default branch for remote '{remote}'")
        return match.group("branch").strip()

    def tag_exists(self, tag: str) -> bool:
        return self._git("tag", "--list", tag).stdout.strip() != ""

    def remote_tag_exists(self, remote: str, tag: str) -> bool:
        # --exit-code makes ls-remote return 2 when nothing matched
        result = self._git("ls-remote", "--tags", "--exit-code", remote, tag, check=False)
        return result.ok

    def branch_exists(self, branch: str) -> bool:
        return self._git("branch", "--list", branch).stdout.strip() != ""

    def remote_branch_exists(self, remote: str, branch: str) -> bool:
        result = self._git("ls-remote", "--heads", "--exit-code", remote, branch, check=False)
        return result.ok

    def has_uncommitted_changes(self) -> bool:
        return self._git("status", "--porcelain").stdout.strip() != ""

    def has_staged_changes(self) -> bool:
        return not self._git("diff", "--staged", "--quiet", check=False).ok

    def list_commits(self, since_tag: Optional[str] = None) -> List[Change]:
        """Commits reachable from HEAD, newest first.

        With ``since_tag`` only commits not reachable from that tag are listed.
        """
        args = ["log", "HEAD", "--format=format:%h%x09%s"]
        if since_tag:
            args.insert(2, f"^{since_tag}")
        output = self._git(*args).stdout
        changes = []
        for line in output.splitlines():
            if not line.partition("\t")[0].strip():
                if line.strip():
                    logging.warning(f"Skipping git log line without a commit sha: {line!r}")
                continue
            changes.append(Change.from_log_line(line))
        return changes

    def tag_date(self, tag: str) -> date:
        output = self._git("show", "--format=format:%aI", "--quiet", tag).stdout
        return datetime.fromisoformat(output.strip().splitlines()[0]).date()

    def create_branch(self, branch: str) -> None:
        self._git("checkout", "-b", branch)

    def add(self, *paths: str) -> None:
        self._git("add", *paths)

    def add_tracked(self) -> None:
        self._git("add", "--update")

    def commit(self, message: str) -> None:
        self._git("commit", "-s", "-m", message)

    def create_tag(self, tag: str) -> None:
        self._git("tag", tag)

    def push(self, remote: str, branch: str) -> None:
        self._git("push", "--tags", "--set-upstream", remote, branch)


class GitHubClient:
    def __init__(self, cwd: Optional[Path] = None) -> None:
        self.cwd = cwd

    def _gh(self, *args: str, check: bool = True) -> CommandResult:
        return run_command(["gh", *args], cwd=self.cwd, check=check)

    def is_available(self) -> bool:
        return shutil.which("gh") is not None

    def auth_status(self) -> CommandResult:
        return self._gh("auth", "status", check=False)

    def labels(self) -> List[str]:
        output = self._gh("label", "list").stdout
        return [line.split("\t")[0] for line in output.splitlines() if line.strip()]

    def create_release(
        self, tag: str, notes_path: Path, target: str, prerelease: bool = False
    ) -> None:
        args = [
            "release", "create", tag,
            "--title", f"Release {tag}",
            "--notes-file", str(notes_path),
            "--target", target,
        ]
        if prerelease:
            args.append("--prerelease")
        self._gh(*args)

    def create_pull_request(
        self, title: str, body_path: Path, base: str, label: Optional[str] = None
    ) -> None:
        args = ["pr", "create", "--title", title, "--body-file", str(body_path), "--base", base]
        if label:
            args += ["--label", label]
        self._gh(*args)

