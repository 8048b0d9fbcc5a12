"""
fsdbg - Command-Line Interface
Archive auditing with rich terminal output

Commands:
- inspect          format, statistics and structure of an archive
- verify           check an archive against a named checklist
- check-symlinks   resolve every symlink inside an archive
- diff             compare two archives
- checklists       list the named checklists
- version          show version information

Exit codes: 0 success, 1 checklist or symlink failures, 2 errors
"""

import sys
from pathlib import Path
from typing import List, Optional

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from ..app import FsdbgApp, InspectResult, __version__
from ..checklists import ChecklistType
from ..core.checklist_engine import CheckResult, VerificationReport
from ..core.diff_engine import ChangeKind, DiffEntry, only_differences, summarize
from ..core.entry import Entry
from ..core.errors import CorruptArchiveError, FsdbgError
from ..core.symlink_resolver import SymlinkCheck
from ..utils import display_path, format_octal_mode, format_size

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

CHANGE_STYLES = {
    ChangeKind.ADDED: ("+", "green"),
    ChangeKind.REMOVED: ("-", "red"),
    ChangeKind.MODIFIED: ("~", "yellow"),
    ChangeKind.UNCHANGED: ("=", "dim"),
}


def _get_app(ctx: click.Context) -> FsdbgApp:
    """Build the application once per invocation from global options"""
    obj = ctx.ensure_object(dict)
    if 'app' not in obj:
        obj['app'] = FsdbgApp(config_path=obj.get('config_path'),
                              config={"log_level": obj.get('log_level')})
    return obj['app']


def _fail(error: FsdbgError):
    """Report a terminal error and exit with EXIT_ERROR"""
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    if isinstance(error, CorruptArchiveError) and error.entries:
        err_console.print(f"[dim]{len(error.entries)} entries decoded before the damage[/dim]")
    sys.exit(EXIT_ERROR)


def _entry_name(entry: Entry) -> str:
    text = escape(display_path(entry.path))
    if entry.is_dir:
        text = f"[bold blue]{text}/[/bold blue]"
    elif entry.is_symlink:
        text = f"[cyan]{text}[/cyan] -> {escape(entry.link_target or '')}"
    elif entry.is_executable:
        text = f"[green]{text}[/green]"
    return text


def _listing_table(entries: List[Entry], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Mode", style="white", no_wrap=True)
    table.add_column("UID/GID", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Path", overflow="fold")
    for entry in entries:
        table.add_row(entry.mode_string(), f"{entry.uid}/{entry.gid}",
                      str(entry.size), _entry_name(entry))
    return table


@click.group(invoke_without_command=True)
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              help='JSON configuration file')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              help='Override the configured log level')
@click.pass_context
def cli(ctx, config_path, log_level):
    """fsdbg - audit initramfs/rootfs archives without extracting them"""
    obj = ctx.ensure_object(dict)
    obj['config_path'] = Path(config_path) if config_path else None
    obj['log_level'] = log_level.upper() if log_level else None
    if ctx.invoked_subcommand is None:
        console.print(Panel(f"[bold white]fsdbg[/bold white] [dim]v{__version__}[/dim]\n"
                            "Filesystem archive debugger", border_style="blue", box=box.DOUBLE))
        console.print(ctx.get_help())


@cli.command()
def version():
    """Show version information"""
    version_info = Table(show_header=False, box=box.ROUNDED)
    version_info.add_column(style="cyan bold")
    version_info.add_column(style="white")

    version_info.add_row("Application", "fsdbg")
    version_info.add_row("Version", __version__)
    version_info.add_row("Python", f"{sys.version.split()[0]}")
    version_info.add_row("Formats", "CPIO newc (gzip/xz/zstd), EROFS, ISO 9660")

    console.print(Panel(version_info, title="[bold blue]Version Information[/bold blue]",
                        border_style="blue"))


@cli.command()
def checklists():
    """List the named checklists and their aliases"""
    table = Table(title="Checklists", box=box.ROUNDED)
    table.add_column("Type", style="cyan bold")
    table.add_column("Aliases", style="white")
    table.add_column("Description", style="white")
    table.add_column("Checks", justify="right")
    table.add_column("Critical", justify="right")

    for kind in ChecklistType:
        requirements = kind.requirements
        critical = sum(1 for r in requirements if r.is_critical)
        table.add_row(kind.value, ", ".join(kind.aliases), kind.display_name,
                      str(len(requirements)), str(critical))
    console.print(table)


def _print_inspect(result: InspectResult, list_entries: bool, pattern: Optional[str]):
    stats = result.stats
    info = Table(title="Archive Summary", show_header=False, box=box.ROUNDED)
    info.add_column("Property", style="cyan bold")
    info.add_column("Value", style="white", overflow="fold")

    info.add_row("Archive", escape(str(result.path)))
    info.add_row("Format", result.format.display_name)
    info.add_row("File Size", format_size(result.file_size))
    if result.volume_id:
        info.add_row("Volume ID", escape(result.volume_id))
    if result.uuid:
        info.add_row("UUID", escape(result.uuid))
    if result.sha256:
        info.add_row("SHA-256", result.sha256)
    info.add_row("Entries", str(stats.total))
    info.add_row("  Files", str(stats.files))
    info.add_row("  Directories", str(stats.directories))
    info.add_row("  Symlinks", str(stats.symlinks))
    info.add_row("  Other", str(stats.other))
    info.add_row("Content Size", format_size(stats.total_size))
    if result.duplicates:
        info.add_row("Duplicate Paths", f"[yellow]{result.duplicates}[/yellow] (later record wins)")
    console.print(info)

    if list_entries:
        title = f"Entries matching {escape(pattern)}" if pattern else "Entries"
        console.print(_listing_table(result.entries, title))
        console.print(f"[dim]{len(result.entries)} entries listed[/dim]")
        return

    tree = Tree("[bold]/[/bold]")
    for entry in result.top_level:
        tree.add(_entry_name(entry))
    console.print(tree)


def _print_partial(error: CorruptArchiveError, pattern: Optional[str]):
    """List what was decoded before the damage so the listing is not lost"""
    index = error.index
    matches = set(index.glob(pattern)) if pattern else None
    entries = [e for e in index if matches is None or e.path in matches]
    offset = f" (damage at offset {error.offset})" if error.offset is not None else ""
    console.print(_listing_table(entries, f"Entries decoded before the damage{offset}"))
    console.print(f"[dim]{len(entries)} entries listed[/dim]")


@cli.command()
@click.argument('archive', type=click.Path())
@click.option('--verbose', '-v', is_flag=True, help='List every entry')
@click.option('--filter', 'pattern', help='Only list paths matching this glob')
@click.pass_context
def inspect(ctx, archive, verbose, pattern):
    """Show format, statistics and top-level structure of ARCHIVE"""
    app = _get_app(ctx)
    try:
        result = app.inspect(archive, pattern=pattern)
    except CorruptArchiveError as e:
        if (verbose or pattern) and e.entries:
            _print_partial(e, pattern)
        _fail(e)
    except FsdbgError as e:
        _fail(e)

    list_entries = verbose or bool(pattern) or not app.config.get("inspect_top_level_only", True)
    _print_inspect(result, list_entries, pattern)


def _result_row(result: CheckResult):
    if result.passed:
        return "[green]✓[/green]", escape(result.requirement.id), ""
    if result.requirement.is_critical:
        return "[red]✗[/red]", f"[red]{escape(result.requirement.id)}[/red]", \
            escape(result.message or "")
    return "[yellow]![/yellow]", f"[yellow]{escape(result.requirement.id)}[/yellow]", \
        escape(result.message or "")


def _print_report(report: VerificationReport, verbose: bool):
    console.print(f"\n[bold cyan]Verifying:[/bold cyan] {escape(report.name)}\n")

    for category, results in report.by_category():
        shown = results if verbose else [r for r in results if not r.passed]
        passed = sum(1 for r in results if r.passed)
        if not shown:
            console.print(f"[green]✓[/green] {category.display_name}: {passed}/{len(results)}")
            continue

        table = Table(title=f"{category.display_name} ({passed}/{len(results)})",
                      box=box.SIMPLE, title_justify="left")
        table.add_column("", no_wrap=True)
        table.add_column("Item", overflow="fold")
        table.add_column("Problem", overflow="fold")
        for result in shown:
            table.add_row(*_result_row(result))
        console.print(table)

    summary = Table(title="Summary", show_header=False, box=box.ROUNDED)
    summary.add_column(style="cyan bold")
    summary.add_column(justify="right")
    summary.add_row("Passed", f"{report.passed}/{report.total}")
    summary.add_row("Critical Failures", str(len(report.critical_failures())))
    summary.add_row("Warnings", str(len(report.optional_failures())))
    console.print(summary)

    if report.has_critical_failures():
        console.print("\n[bold red]✗ FAIL[/bold red]\n")
    else:
        console.print("\n[bold green]✓ PASS[/bold green]\n")


@cli.command()
@click.argument('archive', type=click.Path())
@click.option('--type', '-t', 'checklist', required=True,
              help='Checklist: install-initramfs, live-initramfs, rootfs, auth-audit, iso')
@click.option('--verbose', '-v', is_flag=True, help='Show passing checks too')
@click.pass_context
def verify(ctx, archive, checklist, verbose):
    """Verify ARCHIVE against a named checklist"""
    app = _get_app(ctx)
    try:
        report = app.verify(archive, checklist)
    except FsdbgError as e:
        _fail(e)

    _print_report(report, verbose)
    sys.exit(EXIT_FAILED if report.has_critical_failures() else EXIT_OK)


def _print_symlinks(checks: List[SymlinkCheck], verbose: bool):
    broken = [c for c in checks if not c.ok]
    shown = checks if verbose else broken

    if shown:
        table = Table(title="Symlinks", box=box.SIMPLE)
        table.add_column("", no_wrap=True)
        table.add_column("Link", overflow="fold")
        table.add_column("Target", overflow="fold")
        table.add_column("Result", overflow="fold")
        for check in shown:
            mark = "[green]✓[/green]" if check.ok else (
                "[magenta]↻[/magenta]" if check.is_cycle else "[red]✗[/red]")
            table.add_row(mark, escape(display_path(check.entry.path)),
                          escape(check.entry.link_target or ""),
                          escape(check.outcome.describe()))
        console.print(table)

    dangling = sum(1 for c in broken if c.is_dangling)
    cycles = sum(1 for c in broken if c.is_cycle)
    console.print(f"\n[bold]{len(checks)}[/bold] symlinks checked: "
                  f"[green]{len(checks) - len(broken)} ok[/green], "
                  f"[red]{dangling} dangling[/red], [magenta]{cycles} cyclic[/magenta]\n")


@cli.command('check-symlinks')
@click.argument('archive', type=click.Path())
@click.option('--verbose', '-v', is_flag=True, help='Show resolved symlinks too')
@click.pass_context
def check_symlinks(ctx, archive, verbose):
    """Resolve every symlink inside ARCHIVE"""
    app = _get_app(ctx)
    try:
        checks = app.check_symlinks(archive)
    except FsdbgError as e:
        _fail(e)

    _print_symlinks(checks, verbose)
    sys.exit(EXIT_FAILED if any(not c.ok for c in checks) else EXIT_OK)


def _describe_change(entry: DiffEntry) -> str:
    if entry.change == ChangeKind.ADDED:
        return f"{entry.after.kind}, {format_size(entry.after.size)}"
    if entry.change == ChangeKind.REMOVED:
        return f"{entry.before.kind}, {format_size(entry.before.size)}"

    details = []
    for name in entry.changed_fields:
        before, after = getattr(entry.before, name), getattr(entry.after, name)
        if name == 'mode':
            before, after = format_octal_mode(before), format_octal_mode(after)
        details.append(f"{name}: {before} -> {after}")
    return escape("; ".join(details))


@cli.command()
@click.argument('old', type=click.Path())
@click.argument('new', type=click.Path())
@click.option('--only-diff', is_flag=True, help='Hide unchanged paths')
@click.pass_context
def diff(ctx, old, new, only_diff):
    """Compare archive OLD against archive NEW"""
    app = _get_app(ctx)
    try:
        entries = app.diff(old, new)
    except FsdbgError as e:
        _fail(e)

    summary = summarize(entries)
    shown = only_differences(entries) if only_diff else entries
    limit = int(app.config.get("diff_display_limit", 200))

    if shown:
        table = Table(title=f"{escape(old)} → {escape(new)}", box=box.SIMPLE)
        table.add_column("", no_wrap=True)
        table.add_column("Path", overflow="fold")
        table.add_column("Details", overflow="fold")
        for entry in shown[:limit]:
            mark, style = CHANGE_STYLES[entry.change]
            table.add_row(f"[{style}]{mark}[/{style}]", escape(display_path(entry.path)),
                          _describe_change(entry))
        console.print(table)
        if len(shown) > limit:
            console.print(f"[dim]... {len(shown) - limit} more not shown[/dim]")

    console.print(f"\n[green]{summary.added} added[/green], [red]{summary.removed} removed[/red], "
                  f"[yellow]{summary.modified} modified[/yellow], "
                  f"{summary.unchanged} unchanged\n")
    if summary.identical:
        console.print("[bold green]Archives are identical[/bold green]\n")


def main():
    """Main CLI entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
