"""Display and formatting service for branch information"""
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing import Iterable, List, Optional

from gitlab_branch_keeper.constants import COLUMNS, CLI_COLORS, LEGEND_TEXT
from gitlab_branch_keeper.formatters import (
    format_branch_name,
    format_date,
    format_failure_reason,
    format_flag,
    format_merge_state,
    format_operation_verb,
    format_selected,
    format_short_sha,
    get_branch_style_type,
)
from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.branch import BranchRecord
from gitlab_branch_keeper.models.operation import OperationResult
from gitlab_branch_keeper.models.project import Project

console = Console()
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, verbose: bool = False, debug: bool = False, output: Optional[Console] = None):
        self.verbose = verbose
        self.debug_mode = debug
        self.console = output or console

    def display_branch_table(
            self,
            records: Iterable[BranchRecord],
            target_branch: Optional[str] = None,
            title: Optional[str] = None,
            show_summary: bool = False
        ) -> None:
        """Display a table of branch records."""
        records = list(records)
        logger.debug(f"Rendering {len(records)} branches (target: {target_branch})")
        table = Table(title=title)

        for col in COLUMNS:
            table.add_column(col.label)

        for record in records:
            style_type = get_branch_style_type(record, target_branch)
            row_style = CLI_COLORS.get(style_type)
            is_target = target_branch is not None and record.name == target_branch

            # Match COLUMNS order
            table.add_row(
                format_selected(record.is_selected),
                escape(format_branch_name(record.name, is_target)),
                format_date(record.committed_at),
                format_short_sha(record.last_commit_sha),
                format_flag(record.merged),
                format_merge_state(record.merge_state) if target_branch else "",
                format_flag(record.is_protected),
                format_flag(record.developers_can_push),
                format_flag(record.developers_can_merge),
                format_flag(record.can_push),
                format_flag(record.is_default),
                style=row_style
            )

        self.console.print(table)

        if show_summary:
            self.console.print(LEGEND_TEXT)

            total = len(records)
            selected = sum(1 for r in records if r.is_selected)
            protected = sum(1 for r in records if r.is_protected)
            merged = sum(1 for r in records if r.is_merged_into_target)

            self.console.print("Summary:")
            self.console.print(f"Total branches: {total}")
            self.console.print(f"Selected branches: {selected}")
            self.console.print(f"Protected branches: {protected}")
            if target_branch:
                self.console.print(f"Merged into {target_branch}: {merged}")

    def display_projects(self, projects: List[Project]) -> None:
        """Display the projects the token has access to."""
        table = Table(title="Projects")
        table.add_column("ID", justify="right")
        table.add_column("Path")
        table.add_column("Name")
        for project in sorted(projects, key=lambda p: p.path_name.lower()):
            table.add_row(str(project.id), escape(project.path_name), escape(project.name))
        self.console.print(table)

    def display_results(self, result: OperationResult) -> None:
        """Print the outcome of a batch run, with enough detail to retry failures."""
        verb = format_operation_verb(result.mode, past=True)

        for outcome in result.succeeded:
            if outcome.new_name:
                self.console.print(f"[green]✓ {escape(outcome.name)} {verb} as {escape(outcome.new_name)}[/green]")
            else:
                self.console.print(f"[green]✓ {escape(outcome.name)} {verb}[/green]")

        color = "yellow" if result.cancelled or result.has_failures else "green"
        self.console.print(f"\n[{color}]{result.summary()}[/{color}]")

        if result.failed:
            self.console.print(
                f"\n[red]Failed to {format_operation_verb(result.mode)} {len(result.failed)} branches:[/red]"
            )
            for failure in result.failed:
                self.console.print(
                    f"[red]  • {escape(failure.name)} ({format_short_sha(failure.sha)}): "
                    f"{format_failure_reason(failure.reason)}[/red]"
                )
                if self.verbose and failure.message:
                    self.console.print(f"[dim]    {escape(failure.message)}[/dim]")
