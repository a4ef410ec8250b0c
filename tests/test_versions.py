from __future__ import annotations

import pytest

from ghrelease.git import CommandResult
from ghrelease.versions import VersionTool, increment_version, is_prerelease


@pytest.mark.parametrize(
    "release_type, expected",
    [("major", "2.0.0"), ("minor", "1.5.0"), ("patch", "1.4.4"), ("first", "1.4.3")],
)
def test_increment_release(release_type, expected):
    assert increment_version("1.4.3", release_type) == expected


@pytest.mark.parametrize(
    "release_type, pre_type, expected",
    [
        ("major", None, "2.0.0-alpha.1"),
        ("minor", "beta", "1.5.0-beta.1"),
        ("patch", "rc", "1.4.4-rc.1"),
    ],
)
def test_increment_starts_pre_release(release_type, pre_type, expected):
    assert increment_version("1.4.3", release_type, pre=True, pre_type=pre_type) == expected


def test_pre_bumps_pre_release_number():
    assert increment_version("2.0.0-alpha.1", "pre") == "2.0.0-alpha.2"
    assert increment_version("2.0.0-alpha.1", "pre", pre_type="alpha") == "2.0.0-alpha.2"


def test_pre_with_new_type_restarts_numbering():
    assert increment_version("2.0.0-alpha.3", "pre", pre_type="beta") == "2.0.0-beta.1"


def test_pre_type_cannot_go_backwards():
    with pytest.raises(RuntimeError, match="sorts before"):
        increment_version("2.0.0-beta.1", "pre", pre_type="alpha")


def test_release_drops_pre_release_part():
    assert increment_version("2.0.0-rc.2", "release") == "2.0.0"


@pytest.mark.parametrize("release_type", ["pre", "release"])
def test_pre_and_release_need_a_pre_release(release_type):
    with pytest.raises(RuntimeError, match="is not a pre-release"):
        increment_version("2.0.0", release_type)


def test_major_from_pre_release():
    assert increment_version("2.0.0-rc.2", "major") == "3.0.0"


def test_unparseable_version():
    with pytest.raises(RuntimeError, match="is not of the form"):
        increment_version("1.2", "patch")


def test_is_prerelease():
    assert is_prerelease("1.0.0-beta.2")
    assert not is_prerelease("1.0.0")
    assert not is_prerelease("nonsense")


def test_version_tool(monkeypatch: pytest.MonkeyPatch):
    commands = []

    def fake_run_command(args, cwd=None, check=True):
        commands.append(list(args))
        if args[1] == "show":
            return CommandResult(0, "Loading config\n0.1.0\n", "")
        return CommandResult(0, "", "")

    monkeypatch.setattr("ghrelease.versions.run_command", fake_run_command)
    tool = VersionTool()
    assert tool.current() == "0.1.0"
    tool.bump("0.2.0-beta.1")
    assert commands == [
        ["bump-my-version", "show", "current_version"],
        ["bump-my-version", "bump", "--new-version", "0.2.0-beta.1", "--no-commit", "--no-tag"],
    ]


def test_version_tool_without_output(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        "ghrelease.versions.run_command", lambda args, cwd=None, check=True: CommandResult(0, "\n", "")
    )
    with pytest.raises(RuntimeError, match="no output"):
        VersionTool().current()
