import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv


VALID_RELEASE_TYPES = ("major", "minor", "patch", "pre", "release", "first")
PRE_RELEASE_BASE_TYPES = ("major", "minor", "patch")

# https://git-scm.com/docs/git-check-ref-format, restricted to simple names
VALID_REF_RE = re.compile(r"^[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-]+)*$")
VALID_VERSION_RE = re.compile(r"^\d+(?:\.\d+)*(?:[.-]?[0-9A-Za-z]+(?:\.[0-9A-Za-z]+)*)?$")
VALID_PRE_TYPE_RE = re.compile(r"^[0-9A-Za-z]+$")

DEFAULT_REMOTE = "origin"
DEFAULT_CHANGELOG_PATH = "CHANGELOG.md"
DEFAULT_VERSION_TOOL = "bump-my-version"


class ConfigError(RuntimeError):
    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


class Config:
    def __init__(
        self,
        release_type: Optional[str] = None,
        pre: bool = False,
        pre_type: Optional[str] = None,
        default_branch: Optional[str] = None,
        release_branch: Optional[str] = None,
        remote: Optional[str] = None,
        last_release_version: Optional[str] = None,
        next_release_version: Optional[str] = None,
        changelog_path: Optional[str] = None,
        release_pr_label: Optional[str] = None,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        logging.debug("Loading configuration...")
        # .env is looked up from the working directory upwards
        load_dotenv(find_dotenv(usecwd=True))
        self.release_type = release_type
        self.pre = pre
        self.pre_type = pre_type
        self.default_branch = default_branch or os.getenv("GH_RELEASE_DEFAULT_BRANCH") or None
        self.release_branch = release_branch
        self.remote = remote or os.getenv("GH_RELEASE_REMOTE", DEFAULT_REMOTE).strip()
        self.last_release_version = last_release_version
        self.next_release_version = next_release_version
        # Only a path given on the command line has to exist already
        self.changelog_path_given = changelog_path is not None
        self.changelog_path = changelog_path or os.getenv(
            "GH_RELEASE_CHANGELOG_PATH", DEFAULT_CHANGELOG_PATH
        ).strip()
        self.release_pr_label = release_pr_label or os.getenv("GH_RELEASE_PR_LABEL") or None
        self.quiet = quiet
        self.verbose = verbose
        self.version_tool = os.getenv("GH_RELEASE_VERSION_TOOL", DEFAULT_VERSION_TOOL).strip()
        self.log_file = os.getenv("GH_RELEASE_LOG_FILE") or None

        logging.debug(
            f"Loaded config: release_type={self.release_type}, pre={self.pre}, "
            f"pre_type={self.pre_type}, remote={self.remote}, "
            f"changelog_path={self.changelog_path}, version_tool={self.version_tool}"
        )

    @property
    def first_release(self) -> bool:
        return self.release_type == "first"

    def errors(self) -> List[str]:
        errors = []
        valid_types = "'" + "', '".join(VALID_RELEASE_TYPES) + "'"
        if self.release_type is None:
            errors.append(f"RELEASE_TYPE must be given. Must be one of {valid_types}")
        elif self.release_type not in VALID_RELEASE_TYPES:
            errors.append(
                f"RELEASE_TYPE '{self.release_type}' is not valid. Must be one of {valid_types}"
            )

        if self.pre and self.release_type not in PRE_RELEASE_BASE_TYPES:
            errors.append("--pre can only be given with a release type of major, minor, or patch")

        if self.pre_type is not None:
            if self.release_type in PRE_RELEASE_BASE_TYPES and not self.pre:
                errors.append("--pre must be given when --pre-type is given")
            elif self.release_type not in PRE_RELEASE_BASE_TYPES + ("pre",):
                errors.append(
                    "--pre-type can only be given with a release type of major, minor, patch, or pre"
                )
            if not VALID_PRE_TYPE_RE.match(self.pre_type):
                errors.append(f"--pre-type='{self.pre_type}' is not valid")

        if self.quiet and self.verbose:
            errors.append("--quiet and --verbose cannot be used together")

        for option in ("default_branch", "release_branch", "remote"):
            value = getattr(self, option)
            if value is not None and not VALID_REF_RE.match(value):
                errors.append(f"--{option.replace('_', '-')}='{value}' is not valid")

        for option in ("last_release_version", "next_release_version"):
            value = getattr(self, option)
            if value is not None and not VALID_VERSION_RE.match(value):
                errors.append(f"--{option.replace('_', '-')}='{value}' is not valid")

        if self.changelog_path_given and not Path(self.changelog_path).expanduser().is_file():
            errors.append(f"The change log path '{self.changelog_path}' is not a regular file")

        return errors

    def validate(self) -> None:
        errors = self.errors()
        if errors:
            for message in errors:
                logging.error(message)
            raise ConfigError(errors)
        logging.debug("Configuration validation passed")
