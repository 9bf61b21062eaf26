import click

from smbshares.cli.utils import echo_json


@click.group()
def settings():
    """Plugin settings."""
    pass


@settings.command(name="show")
@click.pass_context
def show_settings(ctx):
    """Show plugin settings."""
    from smbshares.shares.store import ShareStore
    store = ShareStore(ctx.obj["config"])
    echo_json(store.load_settings().model_dump())


@settings.command(name="set")
@click.option("--service/--no-service", "service_enabled", default=None, help="Enable the plugin.")
@click.option("--retention", type=click.IntRange(min=1), default=None, help="Number of backups to keep.")
@click.pass_context
def set_settings(ctx, service_enabled, retention):
    """Change plugin settings."""
    from smbshares.shares.store import ShareStore
    store = ShareStore(ctx.obj["config"])
    current = store.load_settings()
    update = {}
    if service_enabled is not None:
        update["service_enabled"] = service_enabled
    if retention is not None:
        update["backup_retention_count"] = retention
    if not store.save_settings(current.model_copy(update=update)):
        raise click.ClickException("Failed to save settings")
    click.echo("Settings saved.")
