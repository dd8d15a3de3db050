"""``status-informer`` command.

Every option falls back to its STATUS_INFORMER_* environment variable (see
``statusinformer.config``) when not given on the command line.
"""

from __future__ import annotations

import asyncio

import click

from statusinformer.app import main


@click.command(name="status-informer")
@click.option("--kubeconfig", default=None, help="Absolute path to the kubeconfig file.")
@click.option("--debug/--no-debug", default=None, help="Dump verbose output.")
@click.option("--resync-interval", default=None, help="Resync interval, e.g. 30s, 1m.")
@click.option("--sync-timeout", default=None, help="How long to wait for the initial cache sync.")
@click.option("--group", default=None, help="Resource API group.")
@click.option("--version", "api_version", default=None, help="Resource API version.")
@click.option("--resource", default=None, help="Resource name (plural).")
@click.option(
    "--throttle-period",
    default=None,
    help="Minimum time between events per object and condition type; 0 disables.",
)
@click.option(
    "--emitter",
    type=click.Choice(["direct", "recorder"]),
    default=None,
    help="Event emission strategy.",
)
@click.option("--field-manager", default=None, help="Field manager for server-side apply (direct emitter).")
def cli(
    kubeconfig: str | None,
    debug: bool | None,
    resync_interval: str | None,
    sync_timeout: str | None,
    group: str | None,
    api_version: str | None,
    resource: str | None,
    throttle_period: str | None,
    emitter: str | None,
    field_manager: str | None,
) -> None:
    """Emit Kubernetes events for the status conditions of a watched resource."""
    overrides = {
        "kubeconfig": kubeconfig,
        "debug": debug,
        "resync_interval": resync_interval,
        "sync_timeout": sync_timeout,
        "group": group,
        "version": api_version,
        "resource": resource,
        "throttle_period": throttle_period,
        "emitter": emitter,
        "field_manager": field_manager,
    }
    asyncio.run(main(overrides))
