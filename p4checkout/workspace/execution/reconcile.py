"""Drift detection between a machine client and its template.

Everything here is pure: no p4 calls, no filesystem access.  The
coordinator feeds in the specs it fetched and acts on the result.

Client paths in a view are expressed in the client's own namespace
(``//{client}/...``).  Deriving a machine client from a template therefore
means re-anchoring every client path from ``//{template}/`` to
``//{machine}/``.  The rewrite is anchored to that exact prefix so a client
name that happens to appear elsewhere in a path is never touched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from p4checkout.workspace.models.client import ClientMapping, ClientSpec
from p4checkout.workspace.models.enums import DriftKind

_HYPHENS_RE = re.compile(r"-+")


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def normalize_hostname(hostname: str) -> str:
    """Collapse each run of hyphens into a single underscore."""
    return _HYPHENS_RE.sub("_", hostname)


def resolve_client_name(template_name: str, hostname: str, *, use_template_client: bool) -> str:
    """Client name for this machine: the template itself, or ``{template}_{host}``."""
    if use_template_client:
        return template_name
    return f"{template_name}_{normalize_hostname(hostname)}"


def namespace_prefix(client_name: str) -> str:
    return f"//{client_name}/"


def substitute_namespace(client_path: str, old_name: str, new_name: str) -> str:
    """Re-anchor ``client_path`` from ``//{old_name}/`` to ``//{new_name}/``.

    Paths outside the old namespace are returned unchanged.
    """
    old_prefix = namespace_prefix(old_name)
    if not client_path.startswith(old_prefix):
        return client_path
    return namespace_prefix(new_name) + client_path[len(old_prefix) :]


def derive_view(template: ClientSpec, client_name: str) -> list[ClientMapping]:
    """Template view with every client path moved into ``client_name``'s namespace."""
    return [
        ClientMapping(
            depot=mapping.depot,
            client=substitute_namespace(mapping.client, template.client, client_name),
        )
        for mapping in template.view
    ]


# ---------------------------------------------------------------------------
# Drift
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DriftIssue:
    """A single difference between an existing client and its template."""

    kind: DriftKind
    message: str


@dataclass
class DriftReport:
    """All differences found; any issue means the client must be rebuilt."""

    issues: list[DriftIssue] = field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        return bool(self.issues)

    def kinds(self) -> set[DriftKind]:
        return {issue.kind for issue in self.issues}


def detect_drift(
    existing: ClientSpec,
    template: ClientSpec,
    *,
    hostname: str,
    root: str,
) -> DriftReport:
    """Compare ``existing`` against ``template`` re-anchored to ``existing.client``.

    Views are compared as sets keyed by depot path, so reordering the same
    mappings is not drift.
    """
    report = DriftReport()

    expected = {mapping.depot: mapping.client for mapping in derive_view(template, existing.client)}
    for mapping in existing.view:
        if mapping.depot not in expected:
            report.issues.append(
                DriftIssue(
                    DriftKind.EXTRA_MAPPING,
                    f"Client has extra mapping: {mapping.depot} {mapping.client}",
                )
            )
        elif expected[mapping.depot] != mapping.client:
            report.issues.append(
                DriftIssue(
                    DriftKind.MISMATCHED_MAPPING,
                    f"Client has mismatched mapping: {mapping.depot} {mapping.client} "
                    f"(expected {expected[mapping.depot]})",
                )
            )
        expected.pop(mapping.depot, None)

    for depot, client in expected.items():
        report.issues.append(
            DriftIssue(DriftKind.MISSING_MAPPING, f"Client is missing mapping: {depot} {client}"),
        )

    if existing.host != hostname:
        report.issues.append(
            DriftIssue(DriftKind.HOST_MISMATCH, f"Client has mismatched host: {existing.host} != {hostname}"),
        )

    if existing.root != root:
        report.issues.append(
            DriftIssue(DriftKind.ROOT_MISMATCH, f"Client has mismatched root: {existing.root} != {root}"),
        )

    return report


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_machine_client(
    template: ClientSpec,
    client_name: str,
    *,
    owner: str,
    hostname: str,
    root: str,
) -> ClientSpec:
    """New client for this machine, copied from the template."""
    return template.model_copy(
        update={
            "client": client_name,
            "owner": owner,
            "host": hostname,
            "root": root,
            "description": f"Build template instance for {hostname}",
            "view": derive_view(template, client_name),
        },
    )


def apply_template(existing: ClientSpec, template: ClientSpec, *, hostname: str, root: str) -> ClientSpec:
    """Copy of ``existing`` with host, root and view reset from the template."""
    return existing.model_copy(
        update={
            "host": hostname,
            "root": root,
            "view": derive_view(template, existing.client),
        },
    )
