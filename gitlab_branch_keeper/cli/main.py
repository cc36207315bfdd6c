"""Command-line interface for gitlab-branch-keeper"""

import os
import sys
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress

from gitlab_branch_keeper.cli.args import parse_args
from gitlab_branch_keeper.config import Config
from gitlab_branch_keeper.core import BranchKeeper
from gitlab_branch_keeper.formatters import format_confirmation_items, format_operation_verb
from gitlab_branch_keeper.logging_config import get_log_file, setup_logging
from gitlab_branch_keeper.models.operation import OperationMode, OperationResult
from gitlab_branch_keeper.services.display_service import DisplayService
from gitlab_branch_keeper.services.filters import (
    CutoffFilter,
    DateFilter,
    FilterAction,
    PatternFilter,
    parse_date,
)
from gitlab_branch_keeper.services.selection_model import SelectionModel
from gitlab_branch_keeper.utils.threading import get_threading_info

console = Console()


def build_config(parsed_args) -> Config:
    """Build a Config from parsed command-line arguments."""
    return Config(
        gitlab_url=parsed_args.url or os.environ.get("GITLAB_URL"),
        api_token=parsed_args.token,
        verify_ssl=not parsed_args.insecure,
        timeout=parsed_args.timeout,
        archive_prefix=parsed_args.archive_prefix,
        target_branch=parsed_args.target,
        ignore_patterns=parsed_args.ignore,
        dry_run=parsed_args.dry_run,
        force=parsed_args.force,
        verbose=parsed_args.verbose,
        debug=parsed_args.debug,
        sequential=parsed_args.sequential,
        workers=parsed_args.workers,
    )


def build_filters(parsed_args) -> List[tuple]:
    """Turn selection flags into (filter, action) pairs, in the order they apply.

    Patterns are compiled and dates parsed up front so bad input fails
    before anything is fetched. Excludes run last so they always win.
    """
    filters = []
    for text in parsed_args.include:
        filters.append((PatternFilter(text), FilterAction.INCLUDE))
    if parsed_args.merged_before:
        filters.append((CutoffFilter(True, parse_date(parsed_args.merged_before)), FilterAction.INCLUDE))
    if parsed_args.unmerged_before:
        filters.append((CutoffFilter(False, parse_date(parsed_args.unmerged_before)), FilterAction.INCLUDE))
    if parsed_args.after or parsed_args.before:
        date_filter = DateFilter(
            after=parse_date(parsed_args.after) if parsed_args.after else None,
            before=parse_date(parsed_args.before) if parsed_args.before else None,
        )
        filters.append((date_filter, FilterAction(parsed_args.date_action)))
    for text in parsed_args.exclude:
        filters.append((PatternFilter(text), FilterAction.EXCLUDE))
    return filters


def apply_selection(model: SelectionModel, parsed_args, filters: List[tuple]) -> None:
    if parsed_args.select_all:
        model.select_all()
    if model.target_branch is None and any(isinstance(f, CutoffFilter) for f, _ in filters):
        console.print(
            "[yellow]Warning: --merged-before/--unmerged-before need a target branch "
            "(--target); merge state is unknown so they select nothing[/yellow]"
        )
    for branch_filter, action in filters:
        branch_filter.apply(model, action)


def confirm_operation(snapshot: SelectionModel, mode: OperationMode, archive_prefix: str) -> bool:
    """Show the confirmed branches and ask for confirmation."""
    verb = format_operation_verb(mode)
    console.print(f"\nThe following branches will be {format_operation_verb(mode, past=True)}:")
    console.print(escape(format_confirmation_items(snapshot.selected(), mode, archive_prefix)))

    response = console.input(f"\nProceed to {verb} {len(snapshot.selected())} branches? [y/N] ")
    return response.lower() == "y"


def run_with_progress(keeper: BranchKeeper, snapshot: SelectionModel, mode: OperationMode) -> OperationResult:
    confirmed = snapshot.selected()
    with Progress(console=console) as progress:
        task = progress.add_task(
            f"{format_operation_verb(mode).capitalize()} branches...", total=len(confirmed)
        )

        def on_progress(done, total, entry):
            progress.update(task, completed=done)

        return keeper.run_batch(confirmed, mode, on_progress=on_progress)


def show_debug_info(config: Config) -> None:
    console.print("[yellow]Debug mode enabled[/yellow]")

    threading_info = get_threading_info()
    console.print("[yellow]Threading Information:[/yellow]")
    console.print(f"  Python version: {threading_info['python_version']}")
    console.print(f"  CPU count: {threading_info['cpu_count']}")
    console.print(f"  Optimal workers: {threading_info['optimal_workers']}")
    console.print(f"  Free-threading enabled: {threading_info['free_threading']}")

    console.print("[yellow]Configuration:[/yellow]")
    for key, value in config.to_dict().items():
        if key == "api_token" and value:
            value = "****"
        console.print(f"  {key}: {value}")
    console.print(f"[dim]Debug log: {get_log_file()}[/dim]")


def main(argv=None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

    try:
        config = build_config(parsed_args)
        if parsed_args.debug:
            show_debug_info(config)

        filters = build_filters(parsed_args)
        keeper = BranchKeeper(config)
        display = DisplayService(verbose=config.verbose, debug=config.debug, output=console)

        try:
            if parsed_args.list_projects:
                display.display_projects(keeper.list_projects())
                return 0

            if not parsed_args.project:
                console.print("[red]Error: --project is required (use --list-projects to find it)[/red]")
                return 1

            model = keeper.load_project(parsed_args.project)
            apply_selection(model, parsed_args, filters)

            # Everything from here on works on an independent copy
            snapshot = keeper.create_snapshot()
            confirmed = snapshot.selected()
            mode = OperationMode.ARCHIVE if parsed_args.archive else OperationMode.DELETE

            display.display_branch_table(
                snapshot.records if config.verbose else confirmed,
                target_branch=snapshot.target_branch,
                title=f"Branches of {parsed_args.project}",
                show_summary=config.verbose,
            )

            if not confirmed:
                console.print("\n[green]No branches selected[/green]")
                return 0

            if not (parsed_args.delete or parsed_args.archive) or config.dry_run:
                console.print(
                    f"\n[yellow]Dry run: {len(confirmed)} branches would be "
                    f"{format_operation_verb(mode, past=True)}[/yellow]"
                )
                return 0

            if not config.force and not confirm_operation(snapshot, mode, config.archive_prefix):
                console.print("[yellow]Operation cancelled[/yellow]")
                return 0

            result = run_with_progress(keeper, snapshot, mode)
            display.display_results(result)

            if config.verbose:
                display.display_branch_table(
                    keeper.model.records,
                    target_branch=keeper.model.target_branch,
                    title="Branches after the operation",
                )

            return 1 if result.has_failures or result.cancelled else 0
        finally:
            keeper.close()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
