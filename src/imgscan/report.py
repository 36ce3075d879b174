"""Rendering of the scan results on the console."""
from collections import Counter
from typing import Dict, Iterable, List, Optional

from attrs import define
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from imgscan.core.resolve import ResolutionResult
from imgscan.utils import CONSOLE

__all__ = ["Summary", "humanize_size", "print_report", "print_summary", "summarize", "versions_behind"]

_UNITS = "KMGTPE"


def humanize_size(size: int) -> str:
    """Formats a size in bytes using binary units (i.e. `1.5 KB`)."""
    if size < 1024:
        return f"{size} B"

    div, exp = 1024, 0
    value = size // 1024

    while value >= 1024 and exp < len(_UNITS) - 1:
        div *= 1024
        exp += 1
        value //= 1024

    return f"{size / div:.1f} {_UNITS[exp]}B"


def versions_behind(result: ResolutionResult) -> int:
    """Counts the compatible versions newer than the current tag.

    When the current tag is not among the compatible versions, every version
    but the latest one is counted.
    """
    tags = [version.tag for version in result.versions]

    if result.reference.tag in tags:
        return len(tags) - tags.index(result.reference.tag) - 1

    return max(len(tags) - 1, 0)


def group_by_file(results: Iterable[ResolutionResult]) -> Dict[str, List[ResolutionResult]]:
    """Groups the results by source file, keeping the order of first appearance."""
    groups: Dict[str, List[ResolutionResult]] = {}

    for result in results:
        groups.setdefault(result.reference.path, []).append(result)

    return groups


def _history_table(result: ResolutionResult) -> Table:
    table = Table(title="Version History", title_justify="left", title_style="cyan")
    table.add_column("VERSION")
    table.add_column("SIZE", justify="right")
    table.add_column("STATUS")
    table.add_column("LAST UPDATED")

    for version in result.versions:
        if version.tag == result.reference.tag:
            status = "[cyan]current"

        elif version.tag == result.latest_tag:
            status = "[green]latest"

        else:
            status = ""

        table.add_row(
            escape(version.tag),
            humanize_size(version.size),
            status,
            version.published.strftime("%Y-%m-%d"),
        )

    return table


def _print_result(console: Console, result: ResolutionResult, history: bool):
    reference = result.reference

    if not reference.is_dockerfile:
        console.print(f"[bold]{escape(reference.resource)}: {escape(reference.resource_name)}")
        console.print(f"Container: {escape(reference.container)}")

    console.print(f"[bold]Image: {escape(reference.image)}")

    if result.is_failed:
        console.print(f"[red]Error checking updates: {escape(result.error or 'unknown error')}")

    else:
        if result.update_needed:
            console.print(
                "[yellow]Updates available! Current version is "
                f"{versions_behind(result)} versions behind latest ({escape(result.latest_tag or '')})"
            )

        else:
            console.print("[green]Up to date")

        if history:
            console.print(_history_table(result))

    console.print(Rule(style="dim"))


def print_report(
    results: Iterable[ResolutionResult],
    history: bool = True,
    console: Optional[Console] = None,
):
    """Prints the results grouped by the file where the images were found.

    Arguments:
        results: the resolution results to print.
        history: whether to print the table of compatible versions.
        console: where to print. Defaults to the shared console.
    """
    console = console or CONSOLE

    console.print("\n[bold]Container Image Scan Results:")

    for path, file_results in group_by_file(results).items():
        console.print(Rule(f"[bold]File: {escape(path)}", align="left"))

        for result in file_results:
            _print_result(console, result, history)

        console.print()


@define(frozen=True, kw_only=True)
class Summary:
    """Counts describing a whole scan.

    Arguments:
        total: number of references checked.
        need_update: number of references behind their latest version.
        errors: number of references that could not be checked.
        resources: number of references per resource kind.
    """

    total: int
    need_update: int
    errors: int
    resources: Dict[str, int]


def summarize(results: Iterable[ResolutionResult]) -> Summary:
    """Computes the summary counts of a scan."""
    results = list(results)

    return Summary(
        total=len(results),
        need_update=sum(1 for result in results if result.update_needed),
        errors=sum(1 for result in results if result.is_failed),
        resources=dict(Counter(result.reference.resource for result in results)),
    )


def print_summary(summary: Summary, console: Optional[Console] = None):
    """Prints the summary of a scan.

    Arguments:
        summary: the counts to print.
        console: where to print. Defaults to the shared console.
    """
    console = console or CONSOLE

    table = Table(title="Scan Summary", title_justify="left", show_header=False)
    table.add_column("Metric")
    table.add_column("Count", justify="right")

    table.add_row("Total images scanned", str(summary.total))
    table.add_row("Images needing updates", f"[yellow]{summary.need_update}")
    table.add_row("Errors encountered", f"[red]{summary.errors}")

    console.print(table)

    resources = Table(title="Resources Found", title_justify="left")
    resources.add_column("Resource")
    resources.add_column("Count", justify="right")

    for resource, count in sorted(summary.resources.items()):
        resources.add_row(escape(resource), str(count))

    console.print(resources)
