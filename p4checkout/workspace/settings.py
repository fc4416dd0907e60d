"""Checkout configuration loaded from P4_* environment variables."""

from __future__ import annotations

import socket
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RepositoryPathError(ValueError):
    """The checkout root resolves outside the CI workspace."""


class CheckoutSettings(BaseSettings):
    """p4checkout settings.

    All fields are read from environment variables with the ``P4_`` prefix.
    For example, ``P4_CLIENT_TEMPLATE=build_tmpl`` maps to ``client_template``.

    These are distinct from the variables p4 itself reads (``P4PORT``,
    ``P4USER``, ``P4CLIENT``): the controller sets those per command from
    the values here.
    """

    model_config = SettingsConfigDict(
        env_prefix="P4_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Server ----------------------------------------------------------------
    port: str | None = None
    """Server address (``P4PORT``).  Inherited from the environment when unset."""

    user: str
    """Authenticated identity (``P4USER``).  Machine clients are owned by it."""

    executable: str = "p4"

    # -- Client ----------------------------------------------------------------
    client_template: str
    """Name of the template client every machine client is derived from."""

    use_template_client: bool = False
    """Sync with the template client itself instead of a per-host client."""

    hostname: str = Field(default_factory=socket.gethostname)

    # -- Checkout --------------------------------------------------------------
    path: str = "."
    """Checkout root, relative to ``workspace_root`` (or the CWD)."""

    ref: str = ""
    """Revision to sync to (``@1234``, ``#head``, a label, ...).  Empty means head."""

    workspace_root: str | None = Field(
        default=None,
        validation_alias=AliasChoices("P4_WORKSPACE_ROOT", "GITHUB_WORKSPACE"),
    )
    """CI workspace directory; the checkout root must stay inside it."""

    # -- Helpers ---------------------------------------------------------------

    def resolve_repository_path(self) -> Path:
        """Absolute checkout root.

        Raises ``RepositoryPathError`` if it escapes ``workspace_root``.
        """
        base = Path(self.workspace_root).resolve() if self.workspace_root else Path.cwd()
        resolved = (base / self.path).resolve()
        if self.workspace_root and resolved != base and base not in resolved.parents:
            msg = f"Repository path '{resolved}' is not under '{base}'"
            raise RepositoryPathError(msg)
        return resolved


@lru_cache(maxsize=1)
def get_settings() -> CheckoutSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``get_settings.cache_clear()`` in tests to force a
    re-read after overriding env vars.
    """
    return CheckoutSettings()
