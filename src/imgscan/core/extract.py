"""Extraction of image references from Kubernetes manifests and Dockerfiles."""
import os
import re
from typing import Any, List, Mapping, Optional

import yaml

from imgscan.core.discover import SourceFile, is_build_file, is_manifest_file
from imgscan.core.reference import DOCKERFILE, ImageReference
from imgscan.core.walk import as_mapping, as_string, get_in, mappings
from imgscan.utils import debug

__all__ = [
    "WORKLOAD_KINDS",
    "extract_dockerfile_images",
    "extract_images",
    "extract_manifest_images",
    "find_pod_spec",
    "pod_containers",
    "split_documents",
]

# kinds of Kubernetes resources running containers.
WORKLOAD_KINDS = frozenset(
    [
        "Deployment",
        "StatefulSet",
        "DaemonSet",
        "Job",
        "CronJob",
        "Pod",
        "ReplicaSet",
        "ReplicationController",
    ]
)

_DOCUMENT_SEPARATOR = re.compile(r"^---[ \t]*(?:#.*)?$", re.MULTILINE)

_IMAGE_LINE = re.compile(
    r"(?:FROM|image:)\s+"
    r"(?:--\S+\s+)*"
    r"(?P<name>[a-zA-Z0-9\-./_]+)"
    r"(?::(?P<tag>[a-zA-Z0-9\-._]+))?"
)


def split_documents(text: str) -> List[str]:
    """Splits a YAML stream into its documents, dropping the blank ones.

    Arguments:
        text: the content of a YAML file.

    Returns:
        The text of each non-empty document.
    """
    return [doc for doc in _DOCUMENT_SEPARATOR.split(text) if doc.strip()]


def find_pod_spec(kind: str, resource: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    """Finds the pod spec of a workload.

    A `CronJob` wraps its pod template in a job template, a bare `Pod` has
    the pod spec directly in `spec` and every other workload keeps it in
    `spec.template`.

    Arguments:
        kind: the workload kind.
        resource: the parsed resource.

    Returns:
        The pod spec, or `None` if the resource does not have the expected shape.
    """
    match kind:
        case "CronJob":
            pod_spec = get_in(resource, "spec", "jobTemplate", "spec", "template", "spec")

        case "Pod":
            pod_spec = get_in(resource, "spec")

        case _:
            pod_spec = get_in(resource, "spec", "template", "spec")

    return as_mapping(pod_spec)


def pod_containers(pod_spec: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    """Lists the containers of a pod spec followed by its init containers.

    Entries that are not mappings are dropped.
    """
    return mappings(pod_spec.get("containers")) + mappings(pod_spec.get("initContainers"))


def _parse_document(path: str, doc: str) -> Optional[Mapping[str, Any]]:
    try:
        resource = yaml.safe_load(doc)

    except yaml.YAMLError as exc:
        debug(f"skipping malformed document in {path}: {exc}")
        return None

    return as_mapping(resource)


def extract_manifest_images(path: str, content: str) -> List[ImageReference]:
    """Extracts the images used by the workloads defined in a YAML manifest.

    Documents that cannot be parsed, that are not workloads or that do not
    have the expected structure are skipped. Containers without an image are
    skipped too.

    Arguments:
        path: the manifest's path.
        content: the manifest's text, possibly with multiple documents.

    Returns:
        One reference per container, in document order.
    """
    images = []

    for doc in split_documents(content):
        resource = _parse_document(path, doc)
        if resource is None:
            continue

        kind = as_string(resource.get("kind"))
        if kind not in WORKLOAD_KINDS:
            continue

        pod_spec = find_pod_spec(kind, resource)
        if pod_spec is None:
            debug(f"{kind} in {path} has no pod spec")
            continue

        resource_name = as_string(get_in(resource, "metadata", "name")) or ""

        for container in pod_containers(pod_spec):
            image = as_string(container.get("image"))
            if not image:
                continue

            images.append(
                ImageReference.from_image(
                    image,
                    path=path,
                    resource=kind,
                    resource_name=resource_name,
                    container=as_string(container.get("name")) or "",
                )
            )

    return images


def extract_dockerfile_images(path: str, content: str) -> List[ImageReference]:
    """Extracts the images referenced by a Dockerfile.

    Every line containing a `FROM` instruction or an `image:` field yields one
    reference. The resource name is the name of the directory containing the
    file.

    Arguments:
        path: the Dockerfile's path.
        content: the Dockerfile's text.

    Returns:
        One reference per matching line.
    """
    resource_name = os.path.basename(os.path.dirname(os.path.abspath(path)))
    images = []

    for line in content.splitlines():
        match = _IMAGE_LINE.search(line)
        if match is None:
            continue

        images.append(
            ImageReference(
                name=match.group("name"),
                tag=match.group("tag") or "",
                path=path,
                resource=DOCKERFILE,
                resource_name=resource_name,
            )
        )

    return images


def extract_images(source: SourceFile) -> List[ImageReference]:
    """Extracts the image references from a discovered file.

    The extraction rules depend on the file name: YAML files are parsed as
    Kubernetes manifests, anything else recognized as a Dockerfile is scanned
    line by line.

    Arguments:
        source: the file to extract the references from.

    Returns:
        The references found, possibly none.
    """
    filename = os.path.basename(source.path)
    content = source.content.decode("utf-8", errors="replace")

    if is_manifest_file(filename):
        return extract_manifest_images(source.path, content)

    if is_build_file(filename):
        return extract_dockerfile_images(source.path, content)

    return []
