import json

import click

from smbshares.shares.models import ApplyStatus, OperationResult


def get_service(ctx):
    from smbshares.shares.service import ShareService
    return ShareService(ctx.obj["config"])


def echo_json(data):
    click.echo(json.dumps(data, indent=4, default=str))


def echo_result(result: OperationResult):
    """Prints an operation result; failures exit non-zero."""
    if not result.success:
        for error in result.errors or [result.message]:
            click.echo(f"Error: {error}", err=True)
        raise SystemExit(1)
    if result.status == ApplyStatus.APPLIED_UNVERIFIED:
        click.echo(f"Warning: {result.message}", err=True)
    else:
        click.echo(result.message)
