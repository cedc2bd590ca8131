"""Catalog of feature modules an account can be entitled to."""

from __future__ import annotations

from typing import Final, Iterable

# Changing this list requires a deployment; it is never mutated at runtime.
AVAILABLE_MODULES: Final[tuple[str, ...]] = (
    "inventory",
    "reports",
    "dashboard",
    "settings",
    "analytics",
)

_CATALOG: Final[frozenset[str]] = frozenset(AVAILABLE_MODULES)


def all_modules() -> frozenset[str]:
    """Return every module identifier known to the system."""
    return _CATALOG


def is_valid_module(module_id: str) -> bool:
    return module_id in _CATALOG


def invalid_modules(candidates: Iterable[str]) -> list[str]:
    """Return the entries of ``candidates`` missing from the catalog, in input order."""
    return [module_id for module_id in candidates if not is_valid_module(module_id)]
