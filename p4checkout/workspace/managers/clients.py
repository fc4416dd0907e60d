"""Client workspace data access.

Wraps the handful of p4 commands the controller needs: version and login
checks, reading / testing / writing client specs, and the sync and clean
operations that move files on disk.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from loguru import logger

from p4checkout.workspace.execution.command import CommandFailedError
from p4checkout.workspace.models.client import ClientSpec
from p4checkout.workspace.models.version import PerforceVersion

if TYPE_CHECKING:
    from p4checkout.workspace.execution.command import CommandRunner, P4Session


class UnsupportedVersionError(RuntimeError):
    """The p4 version is unknown or below the required minimum."""


class PerforceClientManager:
    """Client operations bound to one runner and one immutable session."""

    def __init__(self, runner: CommandRunner, session: P4Session) -> None:
        self.runner = runner
        self.session = session

    def with_client(self, client_name: str) -> PerforceClientManager:
        """Return a manager whose commands run against ``client_name``."""
        return PerforceClientManager(self.runner, self.session.with_client(client_name))

    async def _p4(self, *args: str, stdin: bytes | None = None, silent: bool = False) -> str:
        output = await self.runner.run(args, session=self.session, stdin=stdin, silent=silent)
        return output.stdout

    # -- Preflight ---------------------------------------------------------------

    async def version(self) -> PerforceVersion:
        """Parse the p4 version.  Raises ``UnsupportedVersionError`` if unknown."""
        banner = await self._p4("-V", silent=True)
        version = PerforceVersion.from_banner(banner)
        if not version.is_valid:
            msg = "Unable to determine p4 version"
            raise UnsupportedVersionError(msg)
        return version

    async def verify_login(self) -> None:
        await self._p4("login", "-s")

    # -- Client specs ------------------------------------------------------------

    async def get_client(self, name: str) -> ClientSpec:
        """Read a client spec.

        Raises ``CommandFailedError`` when p4 answers with an error record
        instead of a client, and ``InvalidViewError`` on a malformed view.
        """
        args = ("-Mj", "-ztag", "client", "-o", name)
        stdout = await self._p4(*args)
        record = _first_record(args, stdout)
        if "Client" not in record:
            raise CommandFailedError(args, 0, stdout, reason="no Client field in tagged output")
        return ClientSpec.from_tagged(record)

    async def client_exists(self, name: str) -> bool:
        stdout = await self._p4("clients", "-e", name)
        return bool(stdout.strip())

    async def edit_client(self, spec: ClientSpec) -> None:
        """Create or update a client from its spec form."""
        text = spec.to_spec_text()
        logger.info("Client spec:\n{}", text)
        await self._p4("client", "-i", stdin=text.encode("utf-8"))

    # -- Files -------------------------------------------------------------------

    async def sync(self, path: str) -> None:
        await self._p4("sync", path)

    async def sync_keep(self, path: str) -> None:
        """Update the have-list only; files on disk are left alone."""
        await self._p4("sync", "-k", path)

    async def clean(self, path: str) -> None:
        """Revert added, deleted and edited files to the have-list state."""
        await self._p4("clean", "-a", "-d", "-e", path)

    async def have_changelist(self, path: str) -> str | None:
        """Return the newest changelist synced under ``path``, if any."""
        args = ("-Mj", "-ztag", "changes", "-m1", f"{path}#have")
        stdout = await self._p4(*args)
        if not stdout.strip():
            return None
        change = _first_record(args, stdout).get("change")
        return str(change) if change else None


def _first_record(args: tuple[str, ...], stdout: str) -> dict[str, Any]:
    """``-Mj`` emits one JSON object per line; return the first.

    Message records (``"code": "error"``) can arrive on stdout with a zero
    exit status and are raised as ``CommandFailedError``.
    """
    for line in stdout.splitlines():
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise CommandFailedError(args, 0, stdout, reason=f"unreadable tagged output: {exc}") from exc
        if not isinstance(record, dict):
            raise CommandFailedError(args, 0, stdout, reason="unreadable tagged output")
        if record.get("code") == "error":
            raise CommandFailedError(args, 0, stdout, reason=str(record.get("data", "")).strip() or None)
        return record
    raise CommandFailedError(args, 0, reason="no tagged output")
