from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date as Date
from typing import List, Optional, Sequence


RELEASE_HEADER_PREFIX = "## "
BLANK_LINE_RE = re.compile(r"^\s*$", re.ASCII)


@dataclass(frozen=True)
class Change:
    sha: str
    subject: str

    def __post_init__(self) -> None:
        if not self.sha:
            raise ValueError("A change needs a commit sha")

    @classmethod
    def from_log_line(cls, line: str) -> "Change":
        # Lines come from `git log --format=%h%x09%s`
        sha, _, subject = line.partition("\t")
        return cls(sha=sha.strip(), subject=subject)

    def __str__(self) -> str:
        return f"* {self.sha} {self.subject}"


def build_release_description(
    tag: str,
    date: Date,
    compare_url: str,
    changes: Sequence[Change],
    first_release: bool = False,
    last_release_tag: Optional[str] = None,
) -> str:
    """Format the changelog section for one release.

    Changes are listed in the order given; callers pass them newest first,
    the way `git log` returns them.
    """
    if first_release or not last_release_tag:
        label = "Changes:"
    else:
        label = f"Changes since {last_release_tag}:"

    if changes:
        bullets = "\n".join(str(change) for change in changes)
    else:
        bullets = "* No changes"

    return (
        f"## {tag} ({date.strftime('%Y-%m-%d')})\n"
        "\n"
        f"[Full Changelog]({compare_url})\n"
        "\n"
        f"{label}\n"
        "\n"
        f"{bullets}\n"
    )


def split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    # A trailing newline terminates the last line, it does not start a new one
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _is_blank(line: str) -> bool:
    return BLANK_LINE_RE.match(line) is not None


class ChangelogMerger:
    """Insert a new release section at the top of an existing changelog.

    The existing changelog is split into front matter (everything before the
    first line starting with ``"## "``) and a body (that line to the end).
    Blank lines around both parts are dropped and exactly one blank line is put
    back at each join when rendering. The new release description is inserted
    as given.
    """

    def __init__(self, existing_changelog: str, next_release_description: str) -> None:
        self._existing_changelog = existing_changelog
        self._next_release_description = next_release_description

        lines = split_lines(existing_changelog)
        body_start = self._find_body_start(lines)
        self._front_matter = self._slice_front_matter(lines, body_start)
        self._body = self._slice_body(lines, body_start)

    @property
    def existing_changelog(self) -> str:
        return self._existing_changelog

    @property
    def next_release_description(self) -> str:
        return self._next_release_description

    @property
    def front_matter(self) -> str:
        return self._front_matter

    @property
    def body(self) -> str:
        return self._body

    @staticmethod
    def _find_body_start(lines: List[str]) -> int:
        for idx, line in enumerate(lines):
            if line.startswith(RELEASE_HEADER_PREFIX):
                return idx
        return len(lines)

    @staticmethod
    def _slice_front_matter(lines: List[str], body_start: int) -> str:
        start = 0
        while start < body_start and _is_blank(lines[start]):
            start += 1
        end = body_start
        while end > 0 and _is_blank(lines[end - 1]):
            end -= 1
        if start >= end:
            return ""
        return "\n".join(lines[start:end])

    @staticmethod
    def _slice_body(lines: List[str], body_start: int) -> str:
        if body_start == len(lines):
            return ""
        end = len(lines)
        while end > body_start and _is_blank(lines[end - 1]):
            end -= 1
        if end == body_start:
            return ""
        return "\n".join(lines[body_start:end])

    def render(self) -> str:
        parts = []
        if self._front_matter:
            parts.append(f"{self._front_matter}\n\n")
        parts.append(self._next_release_description)
        if self._body:
            parts.append(f"\n{self._body}\n")
        return "".join(parts)

    def __str__(self) -> str:
        return self.render()
