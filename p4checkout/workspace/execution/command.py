"""Command execution port for the p4 binary.

The controller talks to Perforce only through the ``CommandRunner``
protocol, so tests can substitute a scripted fake.  The production
implementation spawns the executable with ``anyio.run_process``.

Session variables (``P4PORT``, ``P4USER``, ``P4CLIENT``) are carried by an
immutable ``P4Session`` value passed to every call and overlaid onto the
inherited process environment.  The runner itself holds no environment
state, so activating a client is just deriving a new session.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Protocol, runtime_checkable

import anyio
from loguru import logger

DEFAULT_EXECUTABLE = "p4"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CommandFailedError(RuntimeError):
    """A command exited non-zero, could not be started, or reported an error record.

    ``command`` holds the subcommand arguments.  ``executable`` is only used
    for the message; an exit code of 0 means the failure was reported in the
    output rather than through the exit status.
    """

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int,
        stdout: str = "",
        reason: str | None = None,
        *,
        executable: str | None = None,
    ) -> None:
        self.command = list(command)
        self.exit_code = exit_code
        self.stdout = stdout
        self.executable = executable
        shown = shlex.join([executable, *self.command] if executable else self.command)
        msg = f"'{shown}' failed"
        if exit_code:
            msg += f" with exit code {exit_code}"
        detail = reason or stdout.strip()
        super().__init__(f"{msg}: {detail}" if detail else msg)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class P4Session:
    """Per-session Perforce variables overlaid onto the process environment."""

    port: str | None = None
    user: str | None = None
    client: str | None = None

    def with_client(self, client: str) -> P4Session:
        return replace(self, client=client)

    def environment(self) -> dict[str, str]:
        """Only the variables that are set; unset ones are inherited."""
        overlay = {"P4PORT": self.port, "P4USER": self.user, "P4CLIENT": self.client}
        return {key: value for key, value in overlay.items() if value}


@dataclass
class CommandOutput:
    """Exit code and captured stdout of one invocation."""

    exit_code: int = 0
    stdout: str = ""


# ---------------------------------------------------------------------------
# Port
# ---------------------------------------------------------------------------


@runtime_checkable
class CommandRunner(Protocol):
    """Async protocol for running p4 subcommands."""

    async def run(
        self,
        args: Sequence[str],
        *,
        session: P4Session,
        stdin: bytes | None = None,
        allow_nonzero_exit: bool = False,
        silent: bool = False,
    ) -> CommandOutput:
        """Run ``p4 <args>``.  Raises ``CommandFailedError`` on a disallowed non-zero exit."""
        ...


class PerforceCommandRunner:
    """``CommandRunner`` backed by a real p4 executable.

    Every invocation runs with ``working_directory`` as CWD, which must
    already exist.
    """

    def __init__(self, working_directory: str | Path, executable: str = DEFAULT_EXECUTABLE) -> None:
        self.working_directory = Path(working_directory)
        self.executable = executable

    async def run(
        self,
        args: Sequence[str],
        *,
        session: P4Session,
        stdin: bytes | None = None,
        allow_nonzero_exit: bool = False,
        silent: bool = False,
    ) -> CommandOutput:
        if not self.working_directory.is_dir():
            msg = f"Working directory '{self.working_directory}' does not exist"
            raise NotADirectoryError(msg)

        env = {**os.environ, **session.environment()}
        command = [self.executable, *args]
        logger.debug("Running {}", shlex.join(command))

        try:
            result = await anyio.run_process(
                command,
                input=stdin,
                check=False,
                cwd=self.working_directory,
                env=env,
            )
        except OSError as exc:
            raise CommandFailedError(args, -1, reason=str(exc), executable=self.executable) from exc

        output = CommandOutput(
            exit_code=result.returncode,
            stdout=result.stdout.decode("utf-8", errors="replace"),
        )
        logger.debug("Exit code {}", output.exit_code)
        if not silent and output.stdout:
            logger.debug("{}", output.stdout.rstrip())

        if output.exit_code != 0 and not allow_nonzero_exit:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            if stderr:
                logger.error("{}", stderr)
            raise CommandFailedError(args, output.exit_code, output.stdout, executable=self.executable)

        return output
