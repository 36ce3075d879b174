"""Client for the registry API listing the tags published for an image."""
from datetime import datetime, timezone
from typing import List, Optional

import requests
from attrs import define, field
from cattrs import Converter
from cattrs.errors import BaseValidationError

from imgscan.core.reference import DEFAULT_NAMESPACE, qualify_name

__all__ = ["DEFAULT_REGISTRY_URL", "EPOCH", "LookupFailed", "RegistryClient", "VersionRecord"]

DEFAULT_REGISTRY_URL = "https://hub.docker.com"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class LookupFailed(Exception):
    """Raised when the tags of an image cannot be retrieved from the registry."""


@define(frozen=True, kw_only=True)
class VersionRecord:
    """A tag published in the registry.

    Arguments:
        tag: the tag name.
        published: when the tag was last pushed.
        size: the full size of the image in bytes.
    """

    tag: str
    published: datetime = EPOCH
    size: int = 0


@define(frozen=True, kw_only=True)
class _TagEntry:
    name: str
    last_updated: Optional[datetime] = None
    full_size: Optional[int] = None


@define(frozen=True, kw_only=True)
class _TagPage:
    results: List[_TagEntry] = field(factory=list)


def _structure_datetime(value, _) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"invalid timestamp {value!r}")

    parsed = datetime.fromisoformat(value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)

    return parsed


CONVERTER = Converter()
CONVERTER.register_structure_hook(datetime, _structure_datetime)


def decode_tags(body) -> List[VersionRecord]:
    """Decodes a page of the tag listing.

    Arguments:
        body: the JSON decoded response, expected to be an object with a
            `results` list.

    Returns:
        One record per entry, in the order returned by the registry.

    Raises:
        LookupFailed: if the body does not have the expected shape.
    """
    if not isinstance(body, dict):
        raise LookupFailed("unexpected response: not a JSON object")

    try:
        page = CONVERTER.structure(body, _TagPage)

    except (BaseValidationError, ValueError, TypeError, KeyError) as exc:
        raise LookupFailed(f"unexpected response: {exc}") from exc

    return [
        VersionRecord(
            tag=entry.name,
            published=entry.last_updated or EPOCH,
            size=entry.full_size or 0,
        )
        for entry in page.results
    ]


@define(kw_only=True)
class RegistryClient:
    """Fetches the tag catalog of images from a Docker Hub compatible API.

    Only the first page of the catalog is retrieved.

    Arguments:
        url: base URL of the registry API.
        page_size: number of tags requested.
        timeout: seconds to wait for the registry. `None` waits forever.
        namespace: namespace used for images without a path separator.
        session: the HTTP session used for all the requests.
    """

    url: str = DEFAULT_REGISTRY_URL
    page_size: int = 100
    timeout: Optional[float] = 30.0
    namespace: str = DEFAULT_NAMESPACE
    session: requests.Session = field(factory=requests.Session)

    def tags_url(self, name: str) -> str:
        """Builds the URL listing the tags of an image.

        Arguments:
            name: the image name, qualified with the default namespace if needed.
        """
        return f"{self.url.rstrip('/')}/v2/repositories/{qualify_name(name, self.namespace)}/tags"

    def list_tags(self, name: str) -> List[VersionRecord]:
        """Retrieves the tags published for an image.

        Arguments:
            name: the image name (i.e. `nginx`, `bitnami/redis`).

        Returns:
            The tags in the order returned by the registry, duplicates included.

        Raises:
            LookupFailed: if the request fails, the registry responds with a
                non-success status or the response cannot be decoded.
        """
        try:
            resp = self.session.get(
                self.tags_url(name),
                params={"page_size": self.page_size},
                timeout=self.timeout,
            )

        except requests.RequestException as exc:
            raise LookupFailed(f"request failed: {exc}") from exc

        if resp.status_code != 200:
            raise LookupFailed(f"failed to fetch image info: {resp.status_code} {resp.reason}")

        try:
            body = resp.json()

        except ValueError as exc:
            raise LookupFailed(f"invalid JSON response: {exc}") from exc

        return decode_tags(body)
