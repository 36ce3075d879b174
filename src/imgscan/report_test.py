from datetime import datetime, timezone

import pytest
from rich.console import Console
from testfixtures import compare

from imgscan.core.reference import ImageReference
from imgscan.core.registry import VersionRecord
from imgscan.core.resolve import ResolutionResult, ResolutionState
from imgscan.report import Summary, humanize_size, print_report, print_summary, summarize, versions_behind

PUBLISHED = datetime(2024, 3, 9, tzinfo=timezone.utc)


def _versions(*tags):
    return [VersionRecord(tag=tag, published=PUBLISHED, size=2048) for tag in tags]


def _resolved(tag, *tags, resource="Deployment", path="k8s/web.yaml"):
    return ResolutionResult(
        reference=ImageReference(
            name="nginx",
            tag=tag,
            path=path,
            resource=resource,
            resource_name="web",
            container="proxy",
        ),
        state=ResolutionState.RESOLVED,
        versions=_versions(*tags),
        latest_tag=tags[-1],
        update_needed=tag != tags[-1],
    )


def _failed(path="Dockerfile"):
    return ResolutionResult.failed(
        ImageReference(name="acme/private", tag="1.0", path=path, resource="Dockerfile"),
        "failed to fetch image info: 404 Not Found",
    )


def _console():
    return Console(record=True, width=120, color_system=None)


@pytest.mark.parametrize(
    ["size", "expected"],
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1536, "1.5 KB"),
        (1048576, "1.0 MB"),
        (70123456, "66.9 MB"),
    ],
)
def test_humanize_size__format_binary_units(size, expected):
    compare(humanize_size(size), expected)


def test_versions_behind__count_versions_after_current():
    compare(versions_behind(_resolved("1.2.0", "1.2.0", "1.3.0", "1.4.0")), 2)


def test_versions_behind__count_all_but_latest_when_current_is_missing():
    compare(versions_behind(_resolved("stable", "nightly", "edge")), 1)


def test_print_report__show_status_of_each_image():
    console = _console()

    print_report(
        [_resolved("1.2.0", "1.2.0", "1.3.0"), _resolved("1.3.0", "1.3.0"), _failed()],
        console=console,
    )

    output = console.export_text()

    for expected in [
        "File: k8s/web.yaml",
        "File: Dockerfile",
        "Deployment: web",
        "Container: proxy",
        "Image: nginx:1.2.0",
        "Updates available! Current version is 1 versions behind latest (1.3.0)",
        "Up to date",
        "Error checking updates: failed to fetch image info: 404 Not Found",
        "Version History",
        "current",
        "latest",
        "2.0 KB",
        "2024-03-09",
    ]:
        assert expected in output, expected


def test_print_report__hide_history():
    console = _console()

    print_report([_resolved("1.2.0", "1.2.0", "1.3.0")], history=False, console=console)

    assert "Version History" not in console.export_text()


def test_summarize__count_results():
    res = summarize(
        [
            _resolved("1.2.0", "1.2.0", "1.3.0"),
            _resolved("1.3.0", "1.3.0", resource="CronJob"),
            _failed(),
        ]
    )

    compare(
        res,
        Summary(
            total=3,
            need_update=1,
            errors=1,
            resources={"Deployment": 1, "CronJob": 1, "Dockerfile": 1},
        ),
    )


def test_print_summary__show_counts():
    console = _console()

    print_summary(
        Summary(total=3, need_update=1, errors=1, resources={"Deployment": 2, "Dockerfile": 1}),
        console=console,
    )

    output = console.export_text()

    assert "Total images scanned" in output
    assert "Images needing updates" in output
    assert "Errors encountered" in output
    assert "Deployment" in output
