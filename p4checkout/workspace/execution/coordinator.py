"""Sync coordinator -- reconciles the machine client, then syncs files.

The coordinator lands the checkout root at the requested revision in
strictly ordered phases.  Any failure aborts every later phase and nothing
is retried:

1. **Preflight**: make the checkout root a directory, check the p4 version
2. **Authenticate**: ``p4 login -s``
3. **Template**: read the template client
4. **Name**: resolve the machine client name
5. **Reconcile**: create the machine client, or rebuild it on drift
6. **Activate**: bind all later commands to the machine client
7. **Purge** (rebuild only): sync the have-list to ``#none``, then wipe the root
8. **Restore**: ``p4 clean`` local edits, adds and deletes
9. **Sync**: sync the client to the ref
10. **Report**: return the revision the workspace now reflects

The purge order matters.  The server's have-list is emptied before the
local copy is discarded; the reverse order would leave the server believing
files are on disk that are not, and the next sync would skip them.  A crash
between the two steps is not repaired by drift detection, which only looks
at the view, host and root.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from p4checkout.workspace.execution.command import (
    CommandFailedError,
    CommandRunner,
    P4Session,
    PerforceCommandRunner,
)
from p4checkout.workspace.execution.filesystem import prepare_root, recreate_root
from p4checkout.workspace.execution.reconcile import (
    DriftReport,
    apply_template,
    build_machine_client,
    detect_drift,
    resolve_client_name,
)
from p4checkout.workspace.log import log_group
from p4checkout.workspace.managers.clients import PerforceClientManager, UnsupportedVersionError
from p4checkout.workspace.models.client import ClientSpec, InvalidViewError
from p4checkout.workspace.models.enums import ClientAction
from p4checkout.workspace.models.version import MINIMUM_P4_VERSION
from p4checkout.workspace.settings import RepositoryPathError

if TYPE_CHECKING:
    from pathlib import Path

    from p4checkout.workspace.settings import CheckoutSettings


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AuthenticationError(PermissionError):
    """``p4 login -s`` failed: the job has no valid ticket."""

    def __init__(self) -> None:
        super().__init__("Workflow must login to perforce before running checkout")


class OwnershipConflictError(PermissionError):
    """The machine client belongs to another user."""

    def __init__(self, client_name: str, owner: str, user: str) -> None:
        super().__init__(f"Client '{client_name}' owner does not match, aborting. {owner} != {user}")
        self.client_name = client_name
        self.owner = owner
        self.user = user


SYNC_ERRORS: tuple[type[Exception], ...] = (
    AuthenticationError,
    OwnershipConflictError,
    UnsupportedVersionError,
    CommandFailedError,
    InvalidViewError,
    RepositoryPathError,
    OSError,
)
"""Everything ``synchronize`` raises for an expected failure.

Anything else is a bug and propagates with its traceback.
"""


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class SyncResult:
    """Outcome of a completed sync."""

    client_name: str
    action: ClientAction
    revision: str
    changelist: str | None = None
    drift: DriftReport = field(default_factory=DriftReport)

    @property
    def purged(self) -> bool:
        return self.action == ClientAction.REBUILT


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def client_files(client_name: str, revision: str = "") -> str:
    """Every file in the client: ``//{client}/...{revision}``."""
    return f"//{client_name}/...{revision}"


def normalize_ref(ref: str) -> str:
    """Bare changelist numbers become ``@N``; everything else passes through."""
    ref = ref.strip()
    if ref.isdigit():
        return f"@{ref}"
    return ref


async def _check_version(p4: PerforceClientManager) -> None:
    version = await p4.version()
    logger.info("P4 version {}", version)
    if not version.check_minimum(MINIMUM_P4_VERSION):
        msg = f"p4 version {version} is below the minimum required version {MINIMUM_P4_VERSION}"
        raise UnsupportedVersionError(msg)


async def _authenticate(p4: PerforceClientManager) -> None:
    try:
        await p4.verify_login()
    except CommandFailedError as exc:
        raise AuthenticationError from exc


async def _reconcile_client(
    p4: PerforceClientManager,
    template: ClientSpec,
    client_name: str,
    settings: CheckoutSettings,
    root: str,
) -> tuple[ClientAction, DriftReport]:
    """Create or repair the machine client.  Writes nothing when it already matches."""
    if not await p4.client_exists(client_name):
        client = build_machine_client(
            template,
            client_name,
            owner=settings.user,
            hostname=settings.hostname,
            root=root,
        )
        logger.info("Creating new client '{}' for build machine", client_name)
        await p4.edit_client(client)
        return ClientAction.CREATED, DriftReport()

    existing = await p4.get_client(client_name)
    if existing.owner and existing.owner != settings.user:
        raise OwnershipConflictError(client_name, existing.owner, settings.user)

    drift = detect_drift(existing, template, hostname=settings.hostname, root=root)
    for issue in drift.issues:
        logger.warning(issue.message)

    if not drift.has_drift:
        logger.info("Client '{}' matches template '{}'", client_name, template.client)
        return ClientAction.UNCHANGED, drift

    logger.info("Modifying client '{}' to match template '{}'", client_name, template.client)
    await p4.edit_client(apply_template(existing, template, hostname=settings.hostname, root=root))
    return ClientAction.REBUILT, drift


async def _purge(p4: PerforceClientManager, client_name: str, root: Path) -> None:
    logger.warning("Client workspace changed. Resetting all files")
    await p4.sync_keep(client_files(client_name, "#none"))
    await recreate_root(root)


async def _resolve_revision(p4: PerforceClientManager, client_name: str, ref: str) -> tuple[str, str | None]:
    """Revision marker for the result: the ref itself, or the synced head change."""
    if ref:
        return ref, None
    change = await p4.have_changelist(client_files(client_name))
    return (f"@{change}" if change else "#head"), change


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def synchronize(settings: CheckoutSettings, runner: CommandRunner | None = None) -> SyncResult:
    """Bring the checkout root to ``settings.ref`` through the machine client.

    Parameters
    ----------
    settings:
        Checkout settings (template, naming policy, root, ref, identity).
    runner:
        Command port.  Defaults to a ``PerforceCommandRunner`` rooted at the
        checkout directory.

    Raises
    ------
    UnsupportedVersionError:
        p4 is older than ``MINIMUM_P4_VERSION`` or its version is unknown.
    AuthenticationError:
        ``p4 login -s`` failed.
    InvalidViewError:
        A client view line is malformed.
    OwnershipConflictError:
        The machine client is owned by another user.
    CommandFailedError:
        Any other p4 command failed, or answered with an error record.
    RepositoryPathError:
        The checkout root is outside the CI workspace.
    """
    root = settings.resolve_repository_path()
    logger.info("Syncing repository: {}", settings.port or "(P4PORT from environment)")
    logger.info("Working directory is '{}'", root)

    await prepare_root(root)
    if runner is None:
        runner = PerforceCommandRunner(root, settings.executable)
    p4 = PerforceClientManager(runner, P4Session(port=settings.port, user=settings.user))

    with log_group("Getting Perforce version info"):
        await _check_version(p4)

    with log_group("Login to server"):
        await _authenticate(p4)

    with log_group("Get template workspace"):
        template = await p4.get_client(settings.client_template)

    client_name = resolve_client_name(
        settings.client_template,
        settings.hostname,
        use_template_client=settings.use_template_client,
    )

    with log_group("Setting up client workspace"):
        action, drift = await _reconcile_client(p4, template, client_name, settings, str(root))

    p4 = p4.with_client(client_name)

    if action == ClientAction.REBUILT:
        with log_group("Purging client workspace to #none"):
            await _purge(p4, client_name, root)

    with log_group("Restoring checkout directory"):
        await p4.clean(client_files(client_name))

    ref = normalize_ref(settings.ref)
    with log_group("Checking out the ref"):
        await p4.sync(client_files(client_name, ref))

    revision, changelist = await _resolve_revision(p4, client_name, ref)
    logger.info("Changelist {}", revision)

    return SyncResult(
        client_name=client_name,
        action=action,
        revision=revision,
        changelist=changelist,
        drift=drift,
    )
