"""Concurrent resolution of the latest compatible version of each image."""
import enum
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional, Protocol, Sequence, cast

from attrs import define, field

from imgscan.core.rank import NoCompatibleVersion, rank_versions
from imgscan.core.reference import ImageReference
from imgscan.core.registry import LookupFailed, VersionRecord
from imgscan.utils import debug, warning

__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "ResolutionResult",
    "ResolutionState",
    "Resolver",
    "TagSource",
]

DEFAULT_MAX_CONCURRENCY = 5


class TagSource(Protocol):  # pylint: disable=too-few-public-methods
    """Anything able to list the tags published for an image name."""

    def list_tags(self, name: str) -> List[VersionRecord]:
        """Returns the tags published for an image."""


@enum.unique
class ResolutionState(enum.Enum):
    """Final state of the resolution of a reference.

    Attributes:

    * `RESOLVED`: the compatible versions have been found.
    * `FAILED`: the lookup failed or no compatible version exists.
    """

    RESOLVED = "RESOLVED"
    FAILED = "FAILED"


@define(frozen=True, kw_only=True)
class ResolutionResult:
    """Outcome of the resolution of a single reference.

    Arguments:
        reference: the resolved reference.
        state: whether the resolution succeeded.
        versions: the compatible versions in ascending order.
        latest_tag: the latest compatible tag, if resolved.
        update_needed: whether the reference is behind the latest tag.
        error: what went wrong, if failed.
    """

    reference: ImageReference
    state: ResolutionState
    versions: List[VersionRecord] = field(factory=list)
    latest_tag: Optional[str] = None
    update_needed: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, reference: ImageReference, error: str) -> "ResolutionResult":
        """Creates the result of a failed resolution."""
        return cls(reference=reference, state=ResolutionState.FAILED, error=error)

    @property
    def is_failed(self) -> bool:
        """Whether the resolution failed."""
        return self.state is ResolutionState.FAILED


@define(kw_only=True)
class Resolver:
    """Resolves references against a registry with a bounded number of
    concurrent requests.

    Every reference gets its own lookup, even when other references share
    the same image name.

    Arguments:
        client: where the tags get fetched from.
        max_concurrency: maximum number of in-flight registry requests.
        max_workers: size of the thread pool. Defaults to `max_concurrency`;
            the in-flight requests are capped by `max_concurrency` either way.
    """

    client: TagSource
    max_concurrency: int = field(default=DEFAULT_MAX_CONCURRENCY)
    max_workers: Optional[int] = None
    _permits: threading.BoundedSemaphore = field(init=False)

    @max_concurrency.validator
    def check_max_concurrency(self, _, value):  # pylint: disable=no-self-use
        """Validates the concurrency limit."""
        if value < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {value}")

    def __attrs_post_init__(self):
        self._permits = threading.BoundedSemaphore(self.max_concurrency)

    def _fetch(self, reference: ImageReference) -> List[VersionRecord]:
        with self._permits:
            debug(f"fetching tags for {reference.name}")
            return self.client.list_tags(reference.name)

    def resolve(self, reference: ImageReference) -> ResolutionResult:
        """Finds the compatible versions of a single reference.

        Blocks until a permit is available before calling the registry.

        Arguments:
            reference: the reference to resolve.

        Returns:
            The result of the resolution, failed if the lookup failed or if
            none of the tags is compatible.
        """
        try:
            catalog = self._fetch(reference)
            ranking = rank_versions(catalog, reference.tag)

        except (LookupFailed, NoCompatibleVersion) as exc:
            warning(f"cannot check {reference.image}: {exc}")
            return ResolutionResult.failed(reference, str(exc))

        return ResolutionResult(
            reference=reference,
            state=ResolutionState.RESOLVED,
            versions=ranking.versions,
            latest_tag=ranking.latest_tag,
            update_needed=ranking.update_needed,
        )

    def resolve_all(self, references: Sequence[ImageReference]) -> List[ResolutionResult]:
        """Resolves all the references concurrently.

        Each task writes only the slot of its own reference, and the slots
        are read only once every task has completed.

        Arguments:
            references: the references to resolve.

        Returns:
            One result per reference, in the same order.
        """
        if not references:
            return []

        results: List[Optional[ResolutionResult]] = [None] * len(references)

        def task(idx: int):
            reference = references[idx]

            try:
                results[idx] = self.resolve(reference)

            except Exception as exc:  # pylint: disable=broad-except
                warning(f"unexpected failure checking {reference.image}: {exc!r}")
                results[idx] = ResolutionResult.failed(reference, repr(exc))

        workers = self.max_workers or self.max_concurrency

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="imgscan") as executor:
            futures = [executor.submit(task, idx) for idx in range(len(references))]
            wait(futures)

        return cast(List[ResolutionResult], results)
