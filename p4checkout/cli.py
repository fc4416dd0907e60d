import click


@click.group()
def main() -> None:
    """p4checkout - Reproducible Perforce checkouts for CI jobs."""


def _load_settings(**overrides: object):
    """Build settings from the environment, with explicit CLI values winning."""
    from pydantic import ValidationError

    from p4checkout.workspace.settings import CheckoutSettings, get_settings

    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return CheckoutSettings(**values) if values else get_settings()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid settings:\n{exc}") from exc


@main.command()
@click.option("--template", default=None, help="Template client name (default: from P4_CLIENT_TEMPLATE).")
@click.option(
    "--use-template-client/--per-host-client",
    default=None,
    help="Sync with the template client itself instead of a per-host client.",
)
@click.option("--path", default=None, help="Checkout root (default: from P4_PATH or the current directory).")
@click.option("--ref", default=None, help="Revision to sync, e.g. @1234 or #head (default: head).")
@click.option("--port", default=None, help="Server address (default: from P4_PORT, else P4PORT).")
@click.option("--user", default=None, help="Perforce user (default: from P4_USER).")
@click.option("--p4", "executable", default=None, help="p4 executable (default: p4).")
@click.option("--log-level", default=None, help="Log level (default: from P4_LOG_LEVEL or INFO).")
def sync(
    template: str | None,
    use_template_client: bool | None,
    path: str | None,
    ref: str | None,
    port: str | None,
    user: str | None,
    executable: str | None,
    log_level: str | None,
) -> None:
    """Reconcile the machine client and sync the checkout root."""
    import asyncio

    from p4checkout.workspace.execution.coordinator import SYNC_ERRORS, synchronize
    from p4checkout.workspace.log import set_output, setup_logging

    settings = _load_settings(
        client_template=template,
        use_template_client=use_template_client,
        path=path,
        ref=ref,
        port=port,
        user=user,
        executable=executable,
        log_level=log_level,
    )
    setup_logging(settings.log_level)

    try:
        result = asyncio.run(synchronize(settings))
    except SYNC_ERRORS as exc:
        raise click.ClickException(str(exc)) from exc

    set_output("commit", result.revision)
    click.echo(result.revision)


@main.command()
@click.option("--p4", "executable", default="p4", help="p4 executable.")
def version(executable: str) -> None:
    """Show the p4 version and whether it is supported."""
    import asyncio
    from pathlib import Path

    from p4checkout.workspace.execution.command import CommandFailedError, P4Session, PerforceCommandRunner
    from p4checkout.workspace.managers.clients import PerforceClientManager, UnsupportedVersionError
    from p4checkout.workspace.models.version import MINIMUM_P4_VERSION

    manager = PerforceClientManager(PerforceCommandRunner(Path.cwd(), executable), P4Session())
    try:
        p4_version = asyncio.run(manager.version())
    except (CommandFailedError, UnsupportedVersionError) as exc:
        raise click.ClickException(str(exc)) from exc

    supported = p4_version.check_minimum(MINIMUM_P4_VERSION)
    status = "supported" if supported else "unsupported"
    click.echo(f"p4 {p4_version} ({status}, minimum {MINIMUM_P4_VERSION})")
    if not supported:
        raise click.exceptions.Exit(1)


if __name__ == "__main__":
    main()
