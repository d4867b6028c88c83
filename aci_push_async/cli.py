#!/usr/bin/env python

"""A utility for pushing ACI files to remote servers."""

import asyncio
import logging
import sys

from pathlib import Path

import click

from .acipushclientasync import ACIPushClientAsync
from .credentials import CredentialStore
from .errors import ACIPushError, ConfigurationError


async def _push(
    image: Path,
    signature: Path,
    name: str,
    *,
    debug: bool,
    insecure: bool,
    local_conf: Path,
    system_conf: Path,
) -> int:
    # pylint: disable=too-many-arguments
    try:
        credential_store = await CredentialStore.from_dirs(system_conf, local_conf)
    except (ConfigurationError, OSError) as exception:
        click.echo(f"error loading config: {exception}", err=True)
        return 2

    async with ACIPushClientAsync(
        debug=debug, header_provider=credential_store, insecure=insecure
    ) as aci_push_client_async:
        try:
            await aci_push_client_async.push(image, signature, name)
        except ACIPushError as exception:
            click.echo(f"err: {exception}", err=True)
            return 1

    if debug:
        click.echo("Upload successful", err=True)
    return 0


@click.command("acpush")
@click.argument("image", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("signature", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("name")
@click.option("--debug", is_flag=True, default=False, help="Enables debug messages")
@click.option(
    "--insecure", is_flag=True, default=False, help="Permits unencrypted traffic"
)
@click.option(
    "--local-conf",
    default=CredentialStore.DEFAULT_LOCAL_CONFIG_DIR,
    help="Directory for local configuration",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--system-conf",
    default=CredentialStore.DEFAULT_SYSTEM_CONFIG_DIR,
    help="Directory for system configuration",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
)
def cli(
    image: Path,
    signature: Path,
    name: str,
    debug: bool,
    insecure: bool,
    local_conf: Path,
    system_conf: Path,
):
    # pylint: disable=too-many-arguments
    """Pushes the ACI IMAGE and its SIGNATURE to the push endpoint discovered for NAME."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    sys.exit(
        asyncio.run(
            _push(
                image,
                signature,
                name,
                debug=debug,
                insecure=insecure,
                local_conf=local_conf,
                system_conf=system_conf,
            )
        )
    )
