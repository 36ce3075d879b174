"""Rules used to filter and rank the tags of an image against its current tag."""
import re
from functools import cmp_to_key
from typing import Iterable, List, Optional

from attrs import define
from packaging.version import InvalidVersion, Version

from imgscan.core.registry import VersionRecord

__all__ = [
    "NoCompatibleVersion",
    "Ranking",
    "TagVersion",
    "compare_versions",
    "dedupe",
    "filter_compatible",
    "parse_version",
    "rank_versions",
    "sort_versions",
]

_FLAVOR_SUFFIX = re.compile(
    r"-(alpine|slim|debian|ubuntu|bullseye|buster|bookworm|trixie|jammy|focal|noble"
    r"|windowsservercore|nanoserver).*$"
)


class NoCompatibleVersion(Exception):
    """Raised when none of the published tags is compatible with the current one."""

    def __init__(self, tag: str):
        super().__init__("no compatible versions found")

        self.tag = tag


@define(frozen=True, order=True)
class TagVersion:
    """A tag parsed as a version, ordered like a semantic version.

    A flavored tag (i.e. `1.25.3-alpine`) is a pre-release of its plain
    release: `1.25.3-alpine` < `1.25.3-slim` < `1.25.3` < `1.25.4-alpine`.

    Arguments:
        release: the version without the flavor.
        plain: whether the tag has no flavor.
        flavor: the stripped flavor without the leading `-`, empty if plain.
    """

    release: Version
    plain: bool = True
    flavor: str = ""


def _parse(version: str) -> Optional[Version]:
    try:
        return Version(version)

    except InvalidVersion:
        return None


def parse_version(tag: str) -> Optional[TagVersion]:
    """Parses a tag as a semantic version.

    A leading `v` is ignored. When the tag carries an OS or distribution
    flavor (i.e. `1.25.3-alpine`, `3.12-slim-bookworm`), the flavor is
    stripped before trying again and the tag ranks below the plain release.

    Arguments:
        tag: the tag to parse.

    Returns:
        The parsed version or `None` if the tag is not a version.
    """
    if tag[:1] in ("v", "V"):
        tag = tag[1:]

    version = _parse(tag)
    if version is not None:
        return TagVersion(release=version)

    match = _FLAVOR_SUFFIX.search(tag)
    if match is None:
        return None

    version = _parse(tag[: match.start()])
    if version is None:
        return None

    return TagVersion(release=version, plain=False, flavor=match.group(0)[1:])


def dedupe(catalog: Iterable[VersionRecord]) -> List[VersionRecord]:
    """Drops the records with a tag already seen, keeping the first one."""
    seen = set()
    records = []

    for record in catalog:
        if record.tag in seen:
            continue

        seen.add(record.tag)
        records.append(record)

    return records


def filter_compatible(catalog: Iterable[VersionRecord], current_tag: str) -> List[VersionRecord]:
    """Keeps the records compatible with the current tag.

    If the current tag is a version, only the versions greater than or equal
    to it are kept. Otherwise nothing can be compared and every record is kept.

    Arguments:
        catalog: deduplicated records.
        current_tag: the tag currently in use.

    Returns:
        The compatible records, in catalog order.
    """
    current = parse_version(current_tag)

    if current is None:
        return list(catalog)

    compatible = []

    for record in catalog:
        version = parse_version(record.tag)

        if version is not None and version >= current:
            compatible.append(record)

    return compatible


def compare_versions(left: VersionRecord, right: VersionRecord) -> int:
    """Orders two records.

    Versions are compared semantically and always come before the tags that
    are not versions. Those are ordered by publish date.

    Returns:
        A negative number if `left` comes first, a positive one if `right`
        comes first, zero if they are equivalent.
    """
    left_version = parse_version(left.tag)
    right_version = parse_version(right.tag)

    if left_version is not None and right_version is not None:
        return (left_version > right_version) - (left_version < right_version)

    if left_version is not None:
        return -1

    if right_version is not None:
        return 1

    return (left.published > right.published) - (left.published < right.published)


def sort_versions(records: Iterable[VersionRecord]) -> List[VersionRecord]:
    """Sorts the records in ascending order, see `compare_versions`.

    The sort is stable: equivalent records keep their relative order.
    """
    return sorted(records, key=cmp_to_key(compare_versions))


@define(frozen=True, kw_only=True)
class Ranking:
    """Outcome of ranking a catalog against a current tag.

    Arguments:
        versions: the compatible records in ascending order.
        latest_tag: the tag of the last record.
        update_needed: whether the current tag differs from the latest one.
    """

    versions: List[VersionRecord]
    latest_tag: str
    update_needed: bool


def rank_versions(catalog: Iterable[VersionRecord], current_tag: str) -> Ranking:
    """Finds the compatible versions of a catalog and picks the latest one.

    Arguments:
        catalog: the records returned by the registry, possibly with duplicates.
        current_tag: the tag currently in use.

    Returns:
        The ranking of the compatible versions.

    Raises:
        NoCompatibleVersion: if no record is compatible with the current tag.
    """
    versions = sort_versions(filter_compatible(dedupe(catalog), current_tag))

    if not versions:
        raise NoCompatibleVersion(current_tag)

    latest_tag = versions[-1].tag

    return Ranking(
        versions=versions,
        latest_tag=latest_tag,
        update_needed=current_tag != latest_tag,
    )
