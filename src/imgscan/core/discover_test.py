from pathlib import Path

import pytest
from testfixtures import ShouldRaise, compare, generator

from imgscan.core.discover import (
    ScanError,
    SourceFile,
    discover_source_files,
    is_build_file,
    is_manifest_file,
)


def _write(path: Path, content: str = "FROM alpine:3.19\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")

    return path


@pytest.mark.parametrize(
    ["filename", "expected"],
    [
        ("Dockerfile", True),
        ("api.Dockerfile", True),
        ("Dockerfile.prod", True),
        ("dockerfile", False),
        ("Dockerfile-notes.md", False),
        ("deploy.yaml", False),
    ],
)
def test_is_build_file__match_dockerfile_names(filename, expected):
    compare(is_build_file(filename), expected)


@pytest.mark.parametrize(
    ["filename", "expected"],
    [
        ("deploy.yaml", True),
        ("deploy.yml", True),
        ("deploy.json", False),
        ("yaml", False),
    ],
)
def test_is_manifest_file__match_yaml_suffixes(filename, expected):
    compare(is_manifest_file(filename), expected)


def test_discover_source_files__no_files_returns_empty_iterator(tmp_path):
    compare(generator(), discover_source_files(tmp_path))


def test_discover_source_files__find_files_in_nested_directories(tmp_path):
    dockerfile = _write(tmp_path / "Dockerfile")
    manifest = _write(tmp_path / "deploy" / "web.yaml", "kind: Deployment\n")
    _write(tmp_path / "README.md", "FROM nginx\n")

    res = discover_source_files(tmp_path)

    compare(
        res,
        generator(
            SourceFile(path=str(dockerfile), content=b"FROM alpine:3.19\n"),
            SourceFile(path=str(manifest), content=b"kind: Deployment\n"),
        ),
    )


def test_discover_source_files__skip_git_directory(tmp_path):
    _write(tmp_path / ".git" / "hooks" / "config.yaml", "kind: Pod\n")
    dockerfile = _write(tmp_path / "Dockerfile")

    res = [source.path for source in discover_source_files(tmp_path)]

    compare(res, [str(dockerfile)])


def test_discover_source_files__manifests_only_skip_build_files(tmp_path):
    _write(tmp_path / "Dockerfile")
    manifest = _write(tmp_path / "web.yml", "kind: Deployment\n")

    res = [source.path for source in discover_source_files(tmp_path, manifests_only=True)]

    compare(res, [str(manifest)])


def test_discover_source_files__raise_ScanError_for_missing_root(tmp_path):
    with ShouldRaise(ScanError):
        list(discover_source_files(tmp_path / "missing"))


def test_discover_source_files__raise_ScanError_for_file_root(tmp_path):
    path = _write(tmp_path / "Dockerfile")

    with ShouldRaise(ScanError):
        list(discover_source_files(path))
