from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from .git import run_command


SEMVER_RE = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<pre_type>[0-9A-Za-z]+)\.(?P<pre_number>\d+))?$"
)
DEFAULT_PRE_TYPE = "alpha"


def is_prerelease(version: str) -> bool:
    match = SEMVER_RE.match(version)
    return bool(match and match.group("pre_type"))


def increment_version(
    current: str, release_type: str, pre: bool = False, pre_type: Optional[str] = None
) -> str:
    """Compute the version following ``current``.

    ``major``/``minor``/``patch`` bump the release part, and with ``pre`` start
    a pre-release (``2.0.0-alpha.1``). ``pre`` increments the pre-release
    number, or restarts it at 1 when ``pre_type`` names a new type.
    ``release`` drops the pre-release part. ``first`` keeps ``current``.
    """
    if release_type == "first":
        return current

    match = SEMVER_RE.match(current)
    if not match:
        raise RuntimeError(f"Version '{current}' is not of the form MAJOR.MINOR.PATCH[-TYPE.N]")
    major, minor, patch = (int(match.group(part)) for part in ("major", "minor", "patch"))
    current_pre_type = match.group("pre_type")

    if release_type in ("pre", "release") and current_pre_type is None:
        raise RuntimeError(f"Version '{current}' is not a pre-release")

    if release_type == "release":
        return f"{major}.{minor}.{patch}"

    if release_type == "pre":
        number = int(match.group("pre_number"))
        if pre_type is None or pre_type == current_pre_type:
            return f"{major}.{minor}.{patch}-{current_pre_type}.{number + 1}"
        if pre_type < current_pre_type:
            raise RuntimeError(
                f"Pre-release type '{pre_type}' sorts before the current type '{current_pre_type}'"
            )
        return f"{major}.{minor}.{patch}-{pre_type}.1"

    if release_type == "major":
        major, minor, patch = major + 1, 0, 0
    elif release_type == "minor":
        minor, patch = minor + 1, 0
    elif release_type == "patch":
        patch += 1
    else:
        raise RuntimeError(f"Unknown release type '{release_type}'")

    version = f"{major}.{minor}.{patch}"
    if pre:
        version += f"-{pre_type or DEFAULT_PRE_TYPE}.1"
    return version


class VersionTool:
    """Wrapper around the external version-bump tool (bump-my-version)."""

    def __init__(self, command: str = "bump-my-version", cwd: Optional[Path] = None) -> None:
        self.command = command
        self.cwd = cwd

    def _run(self, *args: str) -> str:
        return run_command([self.command, *args], cwd=self.cwd).stdout

    def current(self) -> str:
        lines = [line.strip() for line in self._run("show", "current_version").splitlines() if line.strip()]
        if not lines:
            raise RuntimeError("Version tool produced no output")
        return lines[-1]

    def bump(self, new_version: str) -> None:
        self._run("bump", "--new-version", new_version, "--no-commit", "--no-tag")
