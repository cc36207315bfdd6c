"""Command-line argument parsing for gitlab-branch-keeper."""

import argparse
from gitlab_branch_keeper.__version__ import __version__
from gitlab_branch_keeper.constants import DEFAULT_ARCHIVE_PREFIX


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gitlab-branch-keeper",
        description="Bulk delete or archive branches of a GitLab project",
        epilog="Setup: Requires GITLAB_TOKEN environment variable or --token, and GITLAB_URL or --url. "
        "Create a personal access token with the 'api' scope in your GitLab user settings",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"gitlab-branch-keeper {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )

    connection = parser.add_argument_group("connection")
    connection.add_argument("--url", help="GitLab base URL, e.g. https://gitlab.example.com")
    connection.add_argument("--token", help="GitLab API token (default: $GITLAB_TOKEN)")
    connection.add_argument(
        "--insecure", action="store_true", help="Skip TLS certificate verification"
    )
    connection.add_argument(
        "--timeout", type=float, default=30.0, help="HTTP timeout in seconds (default: 30)"
    )

    project = parser.add_argument_group("project")
    project.add_argument("--project", help="Project ID or full path (group/project)")
    project.add_argument(
        "--list-projects", action="store_true", help="List accessible projects and exit"
    )
    project.add_argument("--target", help="Target branch for merge status checks")
    project.add_argument(
        "--ignore", nargs="*", default=[], help="Branch patterns (glob) to leave out entirely"
    )

    selection = parser.add_argument_group("selection")
    selection.add_argument(
        "--select-all", action="store_true", help="Select every non-protected branch"
    )
    selection.add_argument(
        "--include",
        action="append",
        default=[],
        metavar="REGEX",
        help="Select non-protected branches whose full name matches (repeatable)",
    )
    selection.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="REGEX",
        help="Deselect branches whose full name matches (repeatable)",
    )
    selection.add_argument("--after", metavar="YYYY-MM-DD", help="Last commit on or after this date")
    selection.add_argument("--before", metavar="YYYY-MM-DD", help="Last commit on or before this date")
    selection.add_argument(
        "--date-action",
        choices=["include", "exclude"],
        default="include",
        help="Whether --after/--before select or deselect matches (default: include)",
    )
    selection.add_argument(
        "--merged-before",
        metavar="YYYY-MM-DD",
        help="Select branches merged into the target with last commit before this date",
    )
    selection.add_argument(
        "--unmerged-before",
        metavar="YYYY-MM-DD",
        help="Select branches not merged into the target with last commit before this date",
    )

    operation = parser.add_argument_group("operation")
    mode = operation.add_mutually_exclusive_group()
    mode.add_argument("--delete", action="store_true", help="Delete the selected branches")
    mode.add_argument(
        "--archive",
        action="store_true",
        help="Archive the selected branches (recreate under the prefix, then delete)",
    )
    operation.add_argument(
        "--archive-prefix",
        default=DEFAULT_ARCHIVE_PREFIX,
        help=f"Prefix for archived branch names (default: {DEFAULT_ARCHIVE_PREFIX})",
    )
    operation.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview mode - show what would be changed without changing anything",
    )
    operation.add_argument("--force", action="store_true", help="Skip confirmations")

    performance = parser.add_argument_group("performance")
    performance.add_argument(
        "--workers",
        type=positive_int,
        metavar="N",
        help="Number of parallel workers for merge status checks (default: auto-detect)",
    )
    performance.add_argument(
        "--sequential",
        action="store_true",
        help="Force sequential merge status checks (disable parallelism)",
    )

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
