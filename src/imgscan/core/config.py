"""Functions and data structures used to represent and manage imgscan
configuration."""
import os
from pathlib import Path
from typing import Optional

import toml
from attrs import define, field
from cattrs import structure

from imgscan.core.reference import DEFAULT_NAMESPACE
from imgscan.core.registry import DEFAULT_REGISTRY_URL, RegistryClient
from imgscan.core.resolve import DEFAULT_MAX_CONCURRENCY, Resolver

DEFAULT_CONFIG_PATH = "./imgscan.toml"


def _positive(_, attribute, value):
    if value < 1:
        raise ValueError(f"{attribute.name} must be at least 1, got {value}")


@define(frozen=True, kw_only=True)
class RegistryConfig:
    """Configuration for the registry API.

    Arguments:
        url: base URL of a Docker Hub compatible API.
        page_size: number of tags fetched for each image.
        timeout: seconds to wait for each request. `0` waits forever.
        namespace: namespace of the official images.
    """

    url: str = DEFAULT_REGISTRY_URL
    page_size: int = field(default=100, validator=_positive)
    timeout: float = 30.0
    namespace: str = DEFAULT_NAMESPACE


@define(frozen=True, kw_only=True)
class ResolverConfig:
    """Configuration for the version resolution.

    Arguments:
        max_concurrency: maximum number of concurrent registry requests.
    """

    max_concurrency: int = field(default=DEFAULT_MAX_CONCURRENCY, validator=_positive)


@define(frozen=True, kw_only=True)
class Config:
    """imgscan's configuration.

    Arguments:
        registry: configuration for the registry API.
        resolver: configuration for the version resolution.
    """

    registry: RegistryConfig = field(factory=RegistryConfig)
    resolver: ResolverConfig = field(factory=ResolverConfig)


def load_config(path: Optional[Path | str] = None) -> Config:
    """Loads the configuration from a file.

    When no path is given the default file is used if it exists, otherwise
    the default configuration is returned.

    Arguments:
        path: configuration file's path.
    """
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return Config()

        path = DEFAULT_CONFIG_PATH

    config = toml.load(path)

    return structure(config, Config)


def make_client(config: Config) -> RegistryClient:
    """Creates the registry client described by the configuration."""
    registry = config.registry

    return RegistryClient(
        url=registry.url,
        page_size=registry.page_size,
        timeout=registry.timeout or None,
        namespace=registry.namespace,
    )


def make_resolver(config: Config) -> Resolver:
    """Creates the resolver described by the configuration."""
    return Resolver(
        client=make_client(config),
        max_concurrency=config.resolver.max_concurrency,
    )
