from __future__ import annotations

from securedash.domain.modules import AVAILABLE_MODULES, all_modules, invalid_modules, is_valid_module


def test_catalog_lists_the_five_dashboard_modules():
    assert AVAILABLE_MODULES == ("inventory", "reports", "dashboard", "settings", "analytics")
    assert all_modules() == frozenset(AVAILABLE_MODULES)


def test_catalog_membership():
    assert is_valid_module("reports")
    assert not is_valid_module("bogus")
    assert not is_valid_module("Reports")


def test_invalid_modules_keeps_input_order():
    assert invalid_modules(["inventory", "zeta", "reports", "alpha"]) == ["zeta", "alpha"]
    assert invalid_modules([]) == []


def test_catalog_cannot_be_mutated():
    catalog = all_modules()
    assert isinstance(catalog, frozenset)
    assert not hasattr(catalog, "add")
