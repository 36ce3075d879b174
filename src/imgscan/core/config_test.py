import os

import pytest
from cattrs.errors import BaseValidationError
from testfixtures import compare

from imgscan.core.config import (
    Config,
    RegistryConfig,
    ResolverConfig,
    load_config,
    make_client,
    make_resolver,
)


def test_load_config__missing_default_file_returns_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    compare(load_config(), Config())


def test_load_config__load_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "imgscan.toml").write_text("[resolver]\nmax_concurrency = 2\n", encoding="utf-8")

    compare(load_config().resolver, ResolverConfig(max_concurrency=2))


def test_load_config__load_file(tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text(
        """[registry]
url = "http://localhost:5000"
page_size = 25
timeout = 0
namespace = "mirror"
""",
        encoding="utf-8",
    )

    res = load_config(path)

    compare(
        res,
        Config(
            registry=RegistryConfig(
                url="http://localhost:5000",
                page_size=25,
                timeout=0,
                namespace="mirror",
            ),
        ),
    )


def test_load_config__raise_for_invalid_values(tmp_path):
    path = tmp_path / "invalid.toml"
    path.write_text("[resolver]\nmax_concurrency = 0\n", encoding="utf-8")

    with pytest.raises((ValueError, BaseValidationError)):
        load_config(path)


def test_load_config__raise_for_explicit_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_config(os.path.join(tmp_path, "missing.toml"))


def test_make_client__zero_timeout_waits_forever():
    config = Config(registry=RegistryConfig(timeout=0, namespace="mirror"))

    client = make_client(config)

    compare(client.timeout, None)
    compare(client.namespace, "mirror")


def test_make_resolver__use_configured_concurrency():
    resolver = make_resolver(Config(resolver=ResolverConfig(max_concurrency=3)))

    compare(resolver.max_concurrency, 3)
