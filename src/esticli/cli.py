"""CLI commands for esticli."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from esticli.colormap import Colormap

if TYPE_CHECKING:
    from esticli.config import Config


def _connection_options(f):
    """Options shared by every command that talks to the cluster."""
    options = [
        click.option(
            "--url", "-u", default=None, help="Elasticsearch URL [default: http://localhost:9200]"
        ),
        click.option("--username", default=None, help="Basic auth username"),
        click.option("--password", default=None, help="Basic auth password"),
        click.option("--api-key", default=None, help="API key for ApiKey authorization"),
        click.option("--insecure", "-k", is_flag=True, help="Skip TLS certificate verification"),
        click.option(
            "--ca-cert",
            type=click.Path(path_type=Path),
            default=None,
            help="CA certificate (PEM) for TLS verification",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _load_config(
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    api_key: str | None = None,
    insecure: bool = False,
    ca_cert: Path | None = None,
    refresh: int | None = None,
    colormap: str | None = None,
    rate_samples: int | None = None,
) -> Config:
    """Load the config file and apply command-line overrides."""
    from esticli.config import Config, clamp_refresh

    try:
        config = Config.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    conn = config.connection
    if url:
        conn.url = url
    if api_key:
        conn.auth = "api_key"
        conn.api_key = api_key
    elif username and password:
        conn.auth = "basic"
        conn.username = username
        conn.password = password
    elif username or password:
        raise click.UsageError("--username and --password must be given together")
    if insecure:
        conn.insecure = True
    if ca_cert is not None:
        conn.ca_cert = str(ca_cert)

    dash = config.dashboard
    if refresh is not None:
        dash.refresh_interval = clamp_refresh(refresh)
    if colormap:
        dash.colormap = Colormap.parse(colormap).value
    if rate_samples is not None:
        dash.rate_samples = rate_samples
    return config


@click.group(invoke_without_command=True)
@click.version_option(package_name="esticli")
@click.pass_context
def main(ctx: click.Context) -> None:
    """A top-like dashboard for Elasticsearch indexing throughput."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(tui)


@main.command()
@_connection_options
@click.option("--refresh", type=int, default=None, help="Refresh interval in seconds (1-60)")
@click.option(
    "--colormap",
    type=click.Choice([c.value for c in Colormap], case_sensitive=False),
    default=None,
    help="Colormap for gradients [default: warm]",
)
@click.option(
    "--rate-samples",
    type=click.IntRange(min=1),
    default=None,
    help="Polls averaged per index rate [default: 10]",
)
def tui(
    url: str | None,
    username: str | None,
    password: str | None,
    api_key: str | None,
    insecure: bool,
    ca_cert: Path | None,
    refresh: int | None,
    colormap: str | None,
    rate_samples: int | None,
) -> None:
    """Launch the live dashboard."""
    from esticli.client import EsClient
    from esticli.dashboard import Dashboard
    from esticli.errors import ConfigurationError
    from esticli.logging import configure
    from esticli.tui import run_tui

    config = _load_config(
        url, username, password, api_key, insecure, ca_cert, refresh, colormap, rate_samples
    )
    configure(config)

    try:
        client = EsClient.from_config(config.connection)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    run_tui(Dashboard.from_config(config, client), config)


@main.command()
@_connection_options
@click.option("--limit", "-n", default=10, show_default=True, help="Number of indices to list")
def check(
    url: str | None,
    username: str | None,
    password: str | None,
    api_key: str | None,
    insecure: bool,
    ca_cert: Path | None,
    limit: int,
) -> None:
    """Poll the cluster once and print health plus the largest indices."""
    import asyncio

    from esticli import logging as out
    from esticli.client import EsClient
    from esticli.errors import ConfigurationError, EstiCliError
    from esticli.rates import RateSmoother, RateSnapshotStore, build_rates
    from esticli.sort import SortColumn, SortSetting
    from esticli.view import derive

    config = _load_config(url, username, password, api_key, insecure, ca_cert)
    try:
        client = EsClient.from_config(config.connection)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    async def poll_once():
        async with client:
            return await client.fetch_poll()

    try:
        result = asyncio.run(poll_once())
    except EstiCliError as e:
        out.cluster_unreachable(client.url, str(e))
        raise SystemExit(1) from e

    out.cluster_connected(client.url)
    h = result.health
    out.cluster_summary(
        h.cluster_name, h.status, h.number_of_nodes, h.number_of_data_nodes, h.unassigned_shards
    )
    if h.status != "green":
        out.warn(f"Cluster health is {h.status}")

    rows = build_rates(result.snapshot, RateSnapshotStore(), RateSmoother(1))
    visible = derive(
        rows,
        exclusions=set(),
        show_system=config.dashboard.show_system_indices,
        sort=SortSetting(column=SortColumn.DOC_COUNT),
    )
    if not visible:
        out.info("No indices.")
        return
    out.info(f"{len(visible)} indices, largest by document count:")
    for index in visible[:limit]:
        out.index_line(index.name, index.health, index.doc_count_human(), index.size_human())


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    from esticli.config import Config

    try:
        cfg = Config.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    conn = cfg.connection
    dash = cfg.dashboard
    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo(f"Log file: {cfg.log_path}")
    click.echo()
    click.echo("[connection]")
    click.echo(f"  url = {conn.url}")
    click.echo(f"  auth = {conn.auth}")
    click.echo(f"  insecure = {conn.insecure}")
    click.echo(f"  ca_cert = {conn.ca_cert or '-'}")
    click.echo(f"  timeout = {conn.timeout}")
    click.echo()
    click.echo("[dashboard]")
    click.echo(f"  refresh_interval = {dash.refresh_interval}")
    click.echo(f"  rate_samples = {dash.rate_samples}")
    click.echo(f"  colormap = {dash.colormap}")
    click.echo(f"  show_system_indices = {dash.show_system_indices}")


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from esticli.config import Config
    from esticli.logging import config_created

    cfg = Config()
    cfg.save()
    config_created(str(cfg.config_path))
