import logging

import click

from smbshares.cli.backups import backups
from smbshares.cli.settings import settings
from smbshares.cli.shares import shares
from smbshares.config.settings import get_config

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


@click.group()
@click.option('--log-level', default='WARNING', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging verbosity.')
@click.pass_context
def main(ctx, log_level):
    """Custom SMB shares CLI"""
    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    ctx.ensure_object(dict)
    ctx.obj.setdefault("config", get_config())


main.add_command(shares)
main.add_command(backups)
main.add_command(settings)


@main.command()
@click.option('--host', default='127.0.0.1', help='The host to bind to.')
@click.option('--port', default=8000, help='The port to bind to.')
def server(host, port):
    """Run the FastAPI server."""
    import uvicorn

    from smbshares.api.server import app
    uvicorn.run(app, host=host, port=port)
