"""Data models for the workspace controller."""

from p4checkout.workspace.models.client import ClientMapping, ClientSpec, InvalidViewError
from p4checkout.workspace.models.enums import ClientAction, DriftKind
from p4checkout.workspace.models.version import MINIMUM_P4_VERSION, InvalidVersionError, PerforceVersion

__all__ = [
    # Enums
    "ClientAction",
    # Client
    "ClientMapping",
    "ClientSpec",
    "DriftKind",
    "InvalidVersionError",
    "InvalidViewError",
    # Version
    "MINIMUM_P4_VERSION",
    "PerforceVersion",
]
