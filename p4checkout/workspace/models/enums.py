"""Shared enumerations used across the workspace controller."""

from __future__ import annotations

from enum import StrEnum

# -- Reconciliation ----------------------------------------------------------


class DriftKind(StrEnum):
    """Ways an existing client can differ from its template."""

    EXTRA_MAPPING = "extra_mapping"
    MISMATCHED_MAPPING = "mismatched_mapping"
    MISSING_MAPPING = "missing_mapping"
    HOST_MISMATCH = "host_mismatch"
    ROOT_MISMATCH = "root_mismatch"


class ClientAction(StrEnum):
    """What the reconcile phase did to the machine client."""

    CREATED = "created"
    REBUILT = "rebuilt"
    UNCHANGED = "unchanged"
