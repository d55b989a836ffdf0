"""Command line interface for gut."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from gut.branch import BranchDescriptor, BranchRequest, classify, decode, encode, plan_branch
from gut.config import GLOBAL_OPTIONS_FILE_PATH, GutContext, GutOptions, load_options, save_options
from gut.exceptions import GutError
from gut.git import GitError, GitRepo
from gut.logging_config import get_logger, setup_logging

app = typer.Typer(help="Git branching conventions tool")
console = Console()
logger = get_logger(__name__)

PathOption = Annotated[Path, typer.Option(help="Path to git repository")]


def fail(err: Exception) -> typer.Exit:
    """Print an error and build the exit to raise."""
    console.print(f"[red]Error:[/red] {escape(str(err))}", soft_wrap=True)
    return typer.Exit(code=1)


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        raise fail(err) from err


def prompt_options(context: GutContext, default_username: str = "") -> GutOptions:
    """Ask for the global options and save them."""
    console.print("[yellow]gut is not configured yet, let's fix that.[/yellow]")
    username = typer.prompt("Username", default=default_username or None)
    options = GutOptions(username=username)
    save_options(options, context.options_path)
    return options


def get_options(context: GutContext, repo: GitRepo) -> GutOptions:
    """Load the global options, configuring gut first if needed."""
    options = load_options(context.options_path)
    if options is None:
        options = prompt_options(context, repo.get_user_name())
    return options


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path, typer.Option("--config", envvar="GUT_CONFIG", help="Path to the global options file")
    ] = GLOBAL_OPTIONS_FILE_PATH,
    verbose: bool = typer.Option(False, "--verbose", help="Show the git commands being run"),
    debug: bool = typer.Option(False, "--debug", help="Show debug information"),
) -> None:
    """Create and move between branches following the master/version/feature/dev model."""
    setup_logging(verbose=verbose, debug=debug)
    ctx.obj = GutContext(options_path=config)


@app.command()
def burgeon(
    ctx: typer.Context,
    version: Annotated[
        Optional[str], typer.Option("--version", "-v", help="Version to use to create a new version branch")
    ] = None,
    feature: Annotated[
        Optional[str], typer.Option("--feature", "-f", help="Feature to use to create a new feature branch")
    ] = None,
    dev: Annotated[
        Optional[str], typer.Option("--dev", "-d", help="Description to use to create a new dev branch")
    ] = None,
    ticket_number: Annotated[
        Optional[int],
        typer.Option("--ticket-number", "-n", help="Ticket number of the new dev branch"),
    ] = None,
    buildable: Annotated[
        bool,
        typer.Option("--buildable", "-b", help="Mark the new feature branch as buildable"),
    ] = False,
    path: PathOption = Path("."),
) -> None:
    """Create a version, feature or dev branch from the current branch."""
    repo = get_repo(path)
    request = BranchRequest(
        version=version,
        feature=feature,
        dev=dev,
        ticket_number=ticket_number,
        buildable=buildable,
    )

    try:
        options = get_options(ctx.obj, repo)
        current_name = repo.get_current_branch_name()
        if not current_name:
            raise GitError("Cannot create a branch from a detached HEAD")

        new_branch = plan_branch(decode(current_name), request, author=options.username, base_branch=current_name)
        new_name = encode(new_branch)
        repo.create_branch(new_name, new_branch)
    except GutError as err:
        raise fail(err) from err

    logger.info(f"Created {classify(new_branch).value} branch {new_name} from {current_name}")
    console.print(f"Switched to a new branch [cyan]{escape(new_name)}[/cyan]")


def create_descriptor_table(name: str, descriptor: BranchDescriptor, metadata: Optional[BranchDescriptor]) -> Table:
    """Create a table showing what a branch name and its stored metadata say."""
    table = Table(
        title=name,
        show_header=True,
        header_style="bold",
        title_style="bold blue",
        show_edge=True,
    )
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="yellow")

    table.add_row("Kind", f"[magenta]{classify(descriptor).value}[/magenta]")
    table.add_row("Version", escape(descriptor.version))
    table.add_row("Feature", escape(descriptor.feature))
    table.add_row("Buildable", "[green]yes[/green]" if descriptor.is_buildable else "no")
    table.add_row("Ticket", descriptor.ticket_number)
    table.add_row("Description", escape(descriptor.description))
    if metadata is not None:
        table.add_row("Author", escape(metadata.author))
        table.add_row("Base branch", escape(metadata.base_branch))
    return table


@app.command()
def describe(
    branch: Annotated[Optional[str], typer.Argument(help="Branch to describe, defaults to the current one")] = None,
    path: PathOption = Path("."),
) -> None:
    """Show the metadata carried by a branch name."""
    repo = get_repo(path)
    try:
        name = branch or repo.get_current_branch_name()
        if not name:
            raise GitError("Not on a branch")
        descriptor = decode(name)
    except GutError as err:
        raise fail(err) from err

    table = create_descriptor_table(name, descriptor, repo.get_branch_metadata(name))
    remote = repo.get_branch_remote(name)
    table.add_row("Remote", escape(remote) if remote else "[dim]none[/dim]")
    remotes = repo.get_remotes()
    table.add_row("Remotes", escape(", ".join(remotes)) if remotes else "[dim]none[/dim]")
    console.print(table)


@app.command()
def switch(
    pattern: Annotated[str, typer.Argument(help="Regular expression matching the branch to check out")],
    path: PathOption = Path("."),
) -> None:
    """Check out the local branch matching a pattern."""
    repo = get_repo(path)
    try:
        if repo.is_dirty() or repo.has_staged_changes() or repo.has_untracked_files():
            raise GitError("You have local changes, commit or stash them before switching")

        matches = repo.search_local_branches(pattern)
        if pattern in matches:
            matches = [pattern]
        if not matches:
            raise GitError(f"No local branch matches '{pattern}'")
        if len(matches) > 1:
            console.print(
                Panel(
                    "\n".join(f"  [blue]{escape(branch)}[/blue]" for branch in sorted(matches)),
                    title="Matching Branches",
                    title_align="left",
                    padding=(0, 2),
                    expand=False,
                )
            )
            raise GitError(f"{len(matches)} branches match '{pattern}', be more specific")

        repo.checkout(matches[0])
    except GutError as err:
        raise fail(err) from err

    console.print(f"Switched to branch [cyan]{escape(matches[0])}[/cyan]")


@app.command()
def configure(
    ctx: typer.Context,
    username: Annotated[Optional[str], typer.Option(help="Name recorded as author of new branches")] = None,
    path: PathOption = Path("."),
) -> None:
    """Write the global options."""
    try:
        if username is None:
            try:
                default_username = GitRepo(path).get_user_name()
            except GitError:
                default_username = ""
            username = typer.prompt("Username", default=default_username or None)
        save_options(GutOptions(username=username), ctx.obj.options_path)
    except GutError as err:
        raise fail(err) from err

    console.print(f"[green]Options saved to {escape(str(ctx.obj.options_path))}[/green]")


if __name__ == "__main__":
    app()
