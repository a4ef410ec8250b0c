from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .assertions import check_environment, check_project
from .config import VALID_RELEASE_TYPES, Config, ConfigError
from .git import GitClient, GitHubClient
from .project import Project
from .tasks import ReleaseTasks
from .versions import VersionTool


__version__ = "1.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-github-release",
        description="Create a GitHub release for a new version of this project.",
        epilog="RELEASE_TYPE must be " + ", ".join(f"'{t}'" for t in VALID_RELEASE_TYPES),
    )
    parser.add_argument("release_type", nargs="?", metavar="RELEASE_TYPE")
    parser.add_argument("-p", "--pre", action="store_true", help="Create a pre-release")
    parser.add_argument(
        "-t", "--pre-type", metavar="TYPE", help="Type of pre-release to create (e.g. alpha, beta, etc.)"
    )
    parser.add_argument("--default-branch", metavar="BRANCH_NAME", help="Override the default branch")
    parser.add_argument(
        "--release-branch", metavar="BRANCH_NAME", help="Override the release branch to create"
    )
    parser.add_argument("--remote", metavar="REMOTE_NAME", help="Use this remote name instead of 'origin'")
    parser.add_argument(
        "--last-release-version",
        metavar="VERSION",
        help="Use this version instead of asking the version tool for the current version",
    )
    parser.add_argument(
        "--next-release-version",
        metavar="VERSION",
        help="Use this version instead of asking the version tool for the next version",
    )
    parser.add_argument("--changelog-path", metavar="PATH", help="Use this file instead of CHANGELOG.md")
    parser.add_argument(
        "--release-pr-label", metavar="LABEL", help="The label to apply to the release pull request"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not show output")
    parser.add_argument("-V", "--verbose", action="store_true", help="Show extra output")
    parser.add_argument("-v", "--version", action="version", version=__version__)
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    return Config(
        release_type=args.release_type,
        pre=args.pre,
        pre_type=args.pre_type,
        default_branch=args.default_branch,
        release_branch=args.release_branch,
        remote=args.remote,
        last_release_version=args.last_release_version,
        next_release_version=args.next_release_version,
        changelog_path=args.changelog_path,
        release_pr_label=args.release_pr_label,
        quiet=args.quiet,
        verbose=args.verbose,
    )


def setup_logging(cfg: Config) -> None:
    if cfg.verbose:
        level = logging.DEBUG
    elif cfg.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if cfg.log_file:
        handlers.append(logging.FileHandler(cfg.log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def create_release(
    cfg: Config, git: GitClient, gh: GitHubClient, versions: VersionTool
) -> Project:
    check_environment(git, gh)
    project = Project.resolve(cfg, git, versions)
    check_project(project, git, gh)
    project = project.load_history(git)
    ReleaseTasks(project, git, gh, versions).run()
    return project


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)
    setup_logging(cfg)

    try:
        cfg.validate()
    except ConfigError as e:
        logging.error(f"Configuration error: {e}")
        return 2

    git = GitClient()
    gh = GitHubClient()
    versions = VersionTool(cfg.version_tool)
    try:
        project = create_release(cfg, git, gh, versions)
    except RuntimeError as e:
        logging.error(f"ERROR: {e}", exc_info=cfg.verbose)
        return 1

    logging.info(f"Release '{project.next_release_tag}' created successfully")
    logging.info(f"Release URL: {project.release_url}")
    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
