import click

from smbshares.cli.utils import echo_json, echo_result, get_service


@click.group()
def backups():
    """Manage share backups."""
    pass


@backups.command(name="list")
def list_backups():
    """List backups, newest first."""
    service = get_service(click.get_current_context())
    records = service.backups.list()
    if not records:
        click.echo("No backups found.")
        return
    for record in records:
        click.echo(f"{record.filename}  {record.timestamp}  {record.size} bytes  {record.share_count} share(s)")


@backups.command(name="create")
def create_backup():
    """Back up the current shares."""
    service = get_service(click.get_current_context())
    filename = service.backups.create()
    if filename is None:
        raise click.ClickException("Failed to create backup")
    click.echo(f"Backup created: {filename}")


@backups.command(name="view")
@click.argument("filename")
def view_backup(filename):
    """Print the shares stored in a backup."""
    service = get_service(click.get_current_context())
    content = service.backups.view(filename)
    if content is None:
        raise click.ClickException(f"Backup not found: {filename}")
    echo_json([s.to_record() for s in content])


@backups.command(name="restore")
@click.argument("filename")
def restore_backup(filename):
    """Replace the current shares with a backup."""
    service = get_service(click.get_current_context())
    echo_result(service.restore_backup(filename))


@backups.command(name="delete")
@click.argument("filename")
def delete_backup(filename):
    """Delete a backup."""
    service = get_service(click.get_current_context())
    if not service.backups.delete(filename):
        raise click.ClickException(f"Failed to delete backup: {filename}")
    click.echo(f"Backup deleted: {filename}")


@backups.command(name="prune")
@click.option("--keep", type=click.IntRange(min=0), default=None,
              help="Backups to keep (defaults to the configured retention).")
def prune_backups(keep):
    """Delete all but the most recent backups."""
    service = get_service(click.get_current_context())
    retain = service.backups.retention_count if keep is None else keep
    deleted = service.backups.prune(retain)
    click.echo(f"Deleted {deleted} backup(s).")
