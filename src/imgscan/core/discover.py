"""Functions and data structures used to discover the files to scan."""
import os
from pathlib import Path
from typing import Iterator

from attrs import define

from imgscan.utils import debug, warning

__all__ = ["ScanError", "SourceFile", "discover_source_files", "is_build_file", "is_manifest_file"]

IGNORED_DIRS = frozenset([".git"])

MANIFEST_SUFFIXES = (".yaml", ".yml")


class ScanError(Exception):
    """Raised when the root directory of a scan cannot be enumerated."""


@define(frozen=True, kw_only=True)
class SourceFile:
    """A file loaded from the scanned directory.

    Arguments:
        path: the file's path.
        content: the raw content of the file.
    """

    path: str
    content: bytes


def is_build_file(filename: str) -> bool:
    """Checks if a file name looks like a Dockerfile.

    Matches `Dockerfile`, `api.Dockerfile` and `Dockerfile.prod`.
    """
    return filename.endswith("Dockerfile") or filename.startswith("Dockerfile.")


def is_manifest_file(filename: str) -> bool:
    """Checks if a file name looks like a YAML manifest."""
    return filename.endswith(MANIFEST_SUFFIXES)


def _raise_for_root(root: str):
    def on_error(exc: OSError):
        if os.path.normpath(exc.filename or "") == os.path.normpath(root):
            raise ScanError(f"cannot scan directory {root}: {exc.strerror}") from exc

        warning(f"skipping directory {exc.filename}: {exc.strerror}")

    return on_error


def discover_source_files(root: Path | str, manifests_only: bool = False) -> Iterator[SourceFile]:
    """Finds all the build files and manifests in a directory and visits all
    its subdirectories recursively, skipping `.git`.

    Files are visited in a deterministic order (sorted by name within each
    directory). A file that cannot be read is skipped.

    Arguments:
        root: the directory where to start searching.
        manifests_only: skip the build files and only yield YAML manifests.

    Yields:
        A file found.

    Raises:
        ScanError: if the root directory does not exist or cannot be listed.
    """
    root = str(root)

    if not os.path.isdir(root):
        raise ScanError(f"cannot scan directory {root}: not a directory")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_for_root(root)):
        dirnames[:] = sorted(name for name in dirnames if name not in IGNORED_DIRS)

        for filename in sorted(filenames):
            is_manifest = is_manifest_file(filename)

            if not is_manifest and (manifests_only or not is_build_file(filename)):
                continue

            path = os.path.join(dirpath, filename)

            try:
                with open(path, "rb") as source:
                    content = source.read()

            except OSError as exc:
                warning(f"skipping file {path}: {exc.strerror}")
                continue

            debug(f"found {path}")

            yield SourceFile(path=path, content=content)
