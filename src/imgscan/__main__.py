"""Main entrypoint for the `imgscan` command."""
from typing import List, Optional

import click
from cattrs.errors import BaseValidationError

from imgscan.core.config import load_config, make_resolver
from imgscan.core.discover import ScanError, discover_source_files
from imgscan.core.extract import extract_images
from imgscan.core.reference import ImageReference
from imgscan.report import print_report, print_summary, summarize
from imgscan.utils import error, log, print_info, print_waiting, set_verbose, success


def scan_directory(root: str, manifests_only: bool) -> List[ImageReference]:
    """Extracts the image references from all the files under a directory.

    Arguments:
        root: the directory to scan.
        manifests_only: only scan the Kubernetes manifests.

    Returns:
        The references in discovery order.

    Raises:
        ScanError: if the directory cannot be scanned.
    """
    references = []

    for source in discover_source_files(root, manifests_only=manifests_only):
        references.extend(extract_images(source))

    return references


@click.command()
@click.argument("directory", default=".", type=click.Path(file_okay=False))
@click.option("-k", "--kubernetes-only", is_flag=True, default=False, help="Only scan Kubernetes manifests.")
@click.option("-s", "--show-summary", is_flag=True, default=False, help="Show summary statistics.")
@click.option("-c", "--config", "config_path", default=None, help="Path to the configuration file.")
@click.option("--no-history", is_flag=True, default=False, help="Hide the version history tables.")
@click.option("-v", "--verbose", is_flag=True, default=False)
def cli(
    directory: str,
    kubernetes_only: bool,
    show_summary: bool,
    config_path: Optional[str],
    no_history: bool,
    verbose: bool,
):
    """Scan a repository for container images and check for updates."""
    set_verbose(verbose)

    try:
        config = load_config(config_path)
        resolver = make_resolver(config)

    except (OSError, ValueError, BaseValidationError) as exc:
        raise click.UsageError(f"invalid configuration: {exc}") from exc

    try:
        with print_waiting(f"scanning {directory}"):
            references = scan_directory(directory, manifests_only=kubernetes_only)

    except ScanError as exc:
        error(str(exc))
        raise SystemExit(1) from exc

    if not references:
        print_info("No container images found")
        return

    log(f"found {len(references)} image references")

    with print_waiting(f"checking {len(references)} images for updates"):
        results = resolver.resolve_all(references)

    success(f"checked {len(results)} images")

    print_report(results, history=not no_history)

    if show_summary:
        print_summary(summarize(results))


if __name__ == "__main__":
    cli()  # pylint: disable=no-value-for-parameter
