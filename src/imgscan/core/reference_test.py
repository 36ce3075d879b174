import pytest
from testfixtures import compare

from imgscan.core.reference import ImageReference, parse_image, qualify_name


@pytest.mark.parametrize(
    ["image", "expected"],
    [
        ("nginx", ("nginx", "latest")),
        ("nginx:1.25", ("nginx", "1.25")),
        ("nginx:", ("nginx", "latest")),
        ("bitnami/redis:7.2.4-debian-12", ("bitnami/redis", "7.2.4-debian-12")),
        ("ghcr.io/acme/api:rev-abc", ("ghcr.io/acme/api", "rev-abc")),
        ("registry:5000/app", ("registry:5000/app", "latest")),
        ("registry:5000/app:1.2", ("registry:5000/app", "1.2")),
    ],
)
def test_parse_image__split_name_and_tag(image, expected):
    compare(parse_image(image), expected)


def test_parse_image__missing_tag_is_equivalent_to_latest():
    compare(parse_image("app"), parse_image("app:latest"))


@pytest.mark.parametrize(
    ["name", "expected"],
    [
        ("nginx", "library/nginx"),
        ("bitnami/redis", "bitnami/redis"),
        ("quay.io/prometheus/node-exporter", "quay.io/prometheus/node-exporter"),
    ],
)
def test_qualify_name__add_default_namespace_only_without_slash(name, expected):
    compare(qualify_name(name), expected)


def test_qualify_name__use_custom_namespace():
    compare(qualify_name("nginx", namespace="mirror"), "mirror/nginx")


def test_ImageReference__empty_tag_defaults_to_latest():
    ref = ImageReference(name="nginx", tag="", path="Dockerfile", resource="Dockerfile")

    compare(ref.tag, "latest")
    compare(ref.image, "nginx:latest")


def test_ImageReference_from_image__create_reference_from_image_string():
    ref = ImageReference.from_image(
        "redis:7",
        path="k8s/cache.yaml",
        resource="StatefulSet",
        resource_name="cache",
        container="redis",
    )

    compare(
        ref,
        ImageReference(
            name="redis",
            tag="7",
            path="k8s/cache.yaml",
            resource="StatefulSet",
            resource_name="cache",
            container="redis",
        ),
    )
    compare(ref.is_dockerfile, False)
