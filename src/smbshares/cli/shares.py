import json

import click

from smbshares.cli.utils import echo_json, echo_result, get_service
from smbshares.shares.models import AccessLevel, CaseSensitivity, ExportMode, SecurityMode


def _parse_access(entries):
    access = {}
    for entry in entries:
        principal, sep, level = entry.rpartition("=")
        if not sep or not principal:
            raise click.BadParameter(f"Expected PRINCIPAL=LEVEL, got '{entry}'", param_hint="--access")
        access[principal] = level
    return access


def share_options(func):
    options = [
        click.option("--comment", help="Share comment"),
        click.option("--export", "export_mode", type=click.Choice([m.value for m in ExportMode]),
                     help="How the share is advertised"),
        click.option("--case", "case_sensitivity", type=click.Choice([c.value for c in CaseSensitivity]),
                     help="Case sensitivity of file names"),
        click.option("--security", type=click.Choice([s.value for s in SecurityMode]), help="Security mode"),
        click.option("--access", "access", multiple=True, metavar="PRINCIPAL=LEVEL",
                     help=f"Per user/@group access ({', '.join(a.value for a in AccessLevel)})"),
        click.option("--hosts-allow", help="Hosts allowed to connect"),
        click.option("--hosts-deny", help="Hosts denied access"),
        click.option("--create-mask", help="Octal create mask, e.g. 0664"),
        click.option("--directory-mask", help="Octal directory mask, e.g. 0775"),
        click.option("--force-user", help="Force user (empty string disables)"),
        click.option("--force-group", help="Force group (empty string disables)"),
        click.option("--hide-dot-files/--show-dot-files", default=None, help="Hide dot files"),
        click.option("--fruit/--no-fruit", default=None, help="Enhanced macOS support"),
        click.option("--volsizelimit", help="Time Machine size limit in MB"),
        click.option("--enabled/--disabled", default=None, help="Enable the share"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _collect(name, path, access, **fields):
    data = {k: v for k, v in fields.items() if v is not None}
    data["name"] = name
    if path is not None:
        data["path"] = path
    if access:
        data["user_access"] = _parse_access(access)
    return data


@click.group()
def shares():
    """Manage shares."""
    pass


@shares.command(name="list")
def list_shares():
    """List configured shares."""
    service = get_service(click.get_current_context())
    items = service.list_shares()
    if not items:
        click.echo("No shares found.")
        return

    for share in items:
        state = "enabled" if share.enabled else "disabled"
        click.echo(f"Name: {share.name} ({state})")
        click.echo(f"  Path: {share.path}")
        click.echo(f"  Comment: {share.comment or ''}")
        click.echo(f"  Export: {share.export_mode.value}")
        click.echo(f"  Security: {share.security.value}")
        click.echo("-" * 20)


@shares.command(name="show")
@click.argument("name")
def show_share(name):
    """Show a single share."""
    service = get_service(click.get_current_context())
    share = service.get_share(name)
    if share is None:
        raise click.ClickException(f"Share '{name}' not found.")
    echo_json(share.to_record())


@shares.command(name="add")
@click.argument("name")
@click.argument("path")
@share_options
def add_share(name, path, access, **fields):
    """Add a share."""
    service = get_service(click.get_current_context())
    echo_result(service.add_share(_collect(name, path, access, **fields)))


@shares.command(name="update")
@click.argument("name")
@click.option("--rename", help="New share name")
@click.option("--path", help="New share path")
@share_options
def update_share(name, rename, path, access, **fields):
    """Update a share; options not given keep their current value."""
    service = get_service(click.get_current_context())
    current = service.get_share(name)
    if current is None:
        raise click.ClickException(f"Share '{name}' not found.")

    data = current.to_record()
    data.update(_collect(rename or name, path, access, **fields))
    echo_result(service.update_share(name, data))


@shares.command(name="delete")
@click.argument("name")
def delete_share(name):
    """Delete a share."""
    service = get_service(click.get_current_context())
    echo_result(service.delete_share(name))


@shares.command(name="toggle")
@click.argument("name")
@click.option("--enable/--disable", "enabled", default=None, help="Set the state instead of flipping it")
def toggle_share(name, enabled):
    """Enable or disable a share."""
    service = get_service(click.get_current_context())
    echo_result(service.toggle_share(name, enabled))


@shares.command(name="export")
def export_shares():
    """Print the share collection as JSON."""
    service = get_service(click.get_current_context())
    echo_json(service.export_config())


@shares.command(name="import")
@click.argument("file", type=click.File("r"))
def import_shares(file):
    """Replace all shares with the JSON list in FILE."""
    try:
        records = json.load(file)
    except ValueError as e:
        raise click.ClickException(f"Invalid JSON: {e}")
    service = get_service(click.get_current_context())
    echo_result(service.import_config(records))


@shares.command(name="render")
def render_config():
    """Print the generated samba configuration."""
    service = get_service(click.get_current_context())
    click.echo(service.render_config(), nl=False)


@shares.command(name="apply")
def apply_config():
    """Write smb-custom.conf and reload samba."""
    service = get_service(click.get_current_context())
    result = service.apply()
    if not result.applied:
        raise click.ClickException(f"Failed to reload Samba: {result.message}")
    click.echo("Samba reloaded successfully.")


@shares.command(name="status")
def samba_status():
    """Get the status of the Samba service."""
    service = get_service(click.get_current_context())
    installed = "installed" if service.controller.check_installed() else "NOT installed"
    click.echo(f"Samba is {installed}.")
    click.echo(f"Samba service status: {service.controller.get_status()}")
