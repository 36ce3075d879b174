"""Representation of a container image reference found in a source file."""
from typing import Tuple

from attrs import define, field

__all__ = [
    "DEFAULT_NAMESPACE",
    "DEFAULT_TAG",
    "DOCKERFILE",
    "ImageReference",
    "parse_image",
    "qualify_name",
]

DEFAULT_TAG = "latest"
DEFAULT_NAMESPACE = "library"

# resource kind used for references found in build files.
DOCKERFILE = "Dockerfile"


def parse_image(image: str) -> Tuple[str, str]:
    """Splits an image string into its name and tag.

    The tag separator is the last colon, but only when no `/` follows it:
    a colon followed by a path belongs to a registry host with an explicit
    port (i.e. `registry:5000/app`).

    Arguments:
        image: the image as written in a manifest (i.e. `nginx:1.25`).

    Returns:
        A tuple `(name, tag)`. The tag defaults to `latest`.
    """
    name, sep, tag = image.rpartition(":")

    if not sep or "/" in tag:
        return image, DEFAULT_TAG

    return name, tag or DEFAULT_TAG


def qualify_name(name: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Adds the default public namespace to a name without a path separator.

    Arguments:
        name: the image name (i.e. `nginx`, `bitnami/redis`).
        namespace: the namespace used for official images.

    Returns:
        The name to use when looking up the registry catalog
        (i.e. `library/nginx`, `bitnami/redis`).
    """
    if "/" in name:
        return name

    return f"{namespace}/{name}"


def _default_tag(value: str) -> str:
    return value or DEFAULT_TAG


@define(frozen=True, kw_only=True)
class ImageReference:
    """A container image referenced by a build file or a manifest.

    Arguments:
        name: the image name without the tag.
        tag: the image tag, `latest` when it is missing.
        path: path of the file where the reference was found.
        resource: `Dockerfile` or the kind of the workload owning the container.
        resource_name: the workload name or, for build files, the name of the
            directory containing the file.
        container: the container name within the workload. Empty for build files.
    """

    name: str
    tag: str = field(default=DEFAULT_TAG, converter=_default_tag)
    path: str
    resource: str
    resource_name: str = ""
    container: str = ""

    @property
    def image(self) -> str:
        """The reference rendered as `name:tag`."""
        return f"{self.name}:{self.tag}"

    @property
    def is_dockerfile(self) -> bool:
        """Whether the reference was found in a build file."""
        return self.resource == DOCKERFILE

    @classmethod
    def from_image(cls, image: str, **kwargs) -> "ImageReference":
        """Creates a reference from an image string like `nginx:1.25`.

        Arguments:
            image: the image string to split into name and tag.
            kwargs: the other attributes of the reference.

        Returns:
            The new reference.
        """
        name, tag = parse_image(image)

        return cls(name=name, tag=tag, **kwargs)
