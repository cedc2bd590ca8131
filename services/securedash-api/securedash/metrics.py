"""Prometheus counters for authentication outcomes."""

from __future__ import annotations

from prometheus_client import Counter

AUTH_FAILURES = Counter(
    "securedash_auth_failures_total",
    "Requests rejected by the authorization gate, by internal reason.",
    ["reason"],
)

LOGINS = Counter(
    "securedash_logins_total",
    "Login attempts by outcome.",
    ["outcome"],
)
