"""Import checks for the fulcrum namespace packages."""

from __future__ import annotations

import importlib

import pytest

LEAF_PACKAGES = (
    "fulcrum.foundation.domain",
    "fulcrum.foundation.domain.ports",
    "fulcrum.foundation.application",
    "fulcrum.infra.drivers",
    "fulcrum.infra.observability",
    "fulcrum.infra.persistence",
    "fulcrum.infra.fastapi",
)


@pytest.mark.unit
@pytest.mark.parametrize("name", LEAF_PACKAGES)
def test_leaf_package_importable(name: str) -> None:
    module = importlib.import_module(name)
    for exported in getattr(module, "__all__", ()):
        assert hasattr(module, exported), f"{name} is missing {exported}"


@pytest.mark.unit
def test_namespace_roots_have_no_init() -> None:
    for name in ("fulcrum", "fulcrum.foundation", "fulcrum.infra"):
        assert getattr(importlib.import_module(name), "__file__", None) is None
