"""Main CLI entry point."""

import sys
from functools import wraps
from typing import Optional

import click
from pydantic import BaseModel, ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ucloud_network.config.models import SubnetConfig, VPCConfig, normalize_tag, validate_name
from ucloud_network.config.parser import ConfigValidationError, load_provider_config
from ucloud_network.provisioners import (
    ChangeType,
    ProviderContext,
    SubnetHandler,
    VPCHandler,
)
from ucloud_network.utils.client import UCloudClient
from ucloud_network.utils.errors import ConfigurationError, ProviderError, error_handler
from ucloud_network.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


@click.group()
@click.option('--config', 'config_path', default=None, help='Path to provider YAML file')
@click.option('--region', help='UCloud region, overrides the configuration')
@click.option('--project-id', help='UCloud project id, overrides the configuration')
@click.option('--log-level', default='info', type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.option('--log-dir', default='.ucloud/logs', help='Directory for JSON logs')
@click.pass_context
def cli(ctx, config_path, region, project_id, log_level, log_dir):
    """Manage UCloud VPCs and subnets."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['region'] = region
    ctx.obj['project_id'] = project_id

    setup_logging(log_level, log_dir)


def get_provider_context(ctx) -> ProviderContext:
    """Load provider settings and build the context shared by handlers."""
    if 'provider' in ctx.obj:
        return ctx.obj['provider']

    try:
        config = load_provider_config(
            ctx.obj.get('config_path'),
            region=ctx.obj.get('region'),
            project_id=ctx.obj.get('project_id'),
        )
    except FileNotFoundError as e:
        raise ConfigurationError(
            str(e), cause=e,
            suggestions=["Pass --config with the path to an existing provider file"]
        ) from e
    except ConfigValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}", cause=e,
            suggestions=["Set UCLOUD_PUBLIC_KEY, UCLOUD_PRIVATE_KEY and UCLOUD_REGION, "
                         "or add them to the provider file"]
        ) from e

    provider = ProviderContext.from_client(UCloudClient(config))
    ctx.obj['provider'] = provider
    return provider


def handle_errors(func):
    """Render provider errors for the operator and exit non-zero."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ProviderError, PydanticValidationError) as e:
            error = error_handler.handle_exception(e)
            error_handler.log_error(error)
            console.print(escape(error.to_user_message()), style="red", soft_wrap=True)
            sys.exit(1)
    return wrapper


def _checked(validator):
    """Build an option callback that runs a config validator on the raw value."""
    def callback(ctx, param, value):
        if value is None:
            return None
        try:
            return validator(value)
        except ValueError as e:
            raise click.BadParameter(str(e)) from e
    return callback


def print_state(title: str, state: Optional[BaseModel]) -> None:
    """Render a resource state as a two-column table."""
    if state is None:
        console.print(f"[yellow]{title}: not found[/yellow]")
        return

    table = Table(title=title, show_header=False)
    table.add_column("Attribute", style="cyan")
    table.add_column("Value")

    for name, value in state.model_dump().items():
        if isinstance(value, (set, frozenset)):
            value = ", ".join(sorted(value))
        elif isinstance(value, list):
            value = ", ".join(
                item.get('cidr_block', str(item)) if isinstance(item, dict) else str(item)
                for item in value
            )
        table.add_row(name, "" if value is None else str(value))

    console.print(table)


@cli.group()
def vpc():
    """VPC lifecycle commands."""


@vpc.command('create')
@click.option('--cidr-block', 'cidr_blocks', multiple=True, required=True, help='CIDR block (repeatable)')
@click.option('--name', help='VPC name (generated if omitted)')
@click.option('--tag', default=None, help='Business group tag')
@click.option('--remark', help='Free-text remark')
@click.pass_context
@handle_errors
def vpc_create(ctx, cidr_blocks, name, tag, remark):
    """Create a VPC."""
    config = VPCConfig(cidr_blocks=set(cidr_blocks), name=name, tag=tag, remark=remark)
    handler = VPCHandler(get_provider_context(ctx))
    with console.status("[cyan]Creating VPC...[/cyan]"):
        state = handler.create(config)
    console.print(f"[green]✓[/green] Created VPC [bold]{state.id}[/bold]")
    print_state(f"VPC {state.id}", state)


@vpc.command('show')
@click.argument('vpc_id')
@click.pass_context
@handle_errors
def vpc_show(ctx, vpc_id):
    """Show a VPC."""
    handler = VPCHandler(get_provider_context(ctx))
    print_state(f"VPC {vpc_id}", handler.read(vpc_id))


@vpc.command('import')
@click.argument('vpc_id')
@click.pass_context
@handle_errors
def vpc_import(ctx, vpc_id):
    """Import an existing VPC by id."""
    handler = VPCHandler(get_provider_context(ctx))
    state = handler.import_state(vpc_id)
    console.print(f"[green]✓[/green] Imported VPC [bold]{state.id}[/bold]")
    print_state(f"VPC {state.id}", state)


@vpc.command('plan')
@click.argument('vpc_id')
@click.option('--cidr-block', 'cidr_blocks', multiple=True, required=True, help='Desired CIDR block (repeatable)')
@click.pass_context
@handle_errors
def vpc_plan(ctx, vpc_id, cidr_blocks):
    """Show how a VPC would change to reach the given CIDR blocks."""
    handler = VPCHandler(get_provider_context(ctx))
    current = handler.read(vpc_id)
    desired = VPCConfig(
        cidr_blocks=set(cidr_blocks),
        tag=current.tag if current else None,
    )
    plan = handler.plan(desired, current)
    console.print(f"Change: [bold]{plan.change_type.value}[/bold]")
    if plan.changed_fields:
        console.print(f"Fields: {', '.join(plan.changed_fields)}")


@vpc.command('update')
@click.argument('vpc_id')
@click.option('--cidr-block', 'cidr_blocks', multiple=True, required=True, help='Desired CIDR block (repeatable)')
@click.pass_context
@handle_errors
def vpc_update(ctx, vpc_id, cidr_blocks):
    """Set the CIDR blocks of a VPC.

    Blocks may be added or removed in one run, not both.
    """
    handler = VPCHandler(get_provider_context(ctx))
    current = handler.import_state(vpc_id)
    old = current.to_config()
    new = old.model_copy(update={'cidr_blocks': VPCConfig(cidr_blocks=set(cidr_blocks)).cidr_blocks})

    plan = handler.plan(new, current)
    if plan.change_type == ChangeType.NO_CHANGE:
        console.print("[dim]No changes[/dim]")
        return

    state = handler.update(vpc_id, old, new)
    console.print(f"[green]✓[/green] Updated VPC [bold]{vpc_id}[/bold]")
    print_state(f"VPC {vpc_id}", state)


@vpc.command('delete')
@click.argument('vpc_id')
@click.confirmation_option(prompt='Are you sure you want to delete this VPC?')
@click.pass_context
@handle_errors
def vpc_delete(ctx, vpc_id):
    """Delete a VPC."""
    handler = VPCHandler(get_provider_context(ctx))
    with console.status(f"[cyan]Deleting {vpc_id}...[/cyan]"):
        handler.delete(vpc_id)
    console.print(f"[green]✓[/green] Deleted VPC [bold]{vpc_id}[/bold]")


@cli.group()
def subnet():
    """Subnet lifecycle commands."""


@subnet.command('create')
@click.option('--vpc-id', required=True, help='Owning VPC id')
@click.option('--cidr-block', required=True, help='Subnet CIDR block')
@click.option('--name', help='Subnet name (generated if omitted)')
@click.option('--tag', default=None, help='Business group tag')
@click.option('--remark', help='Free-text remark')
@click.pass_context
@handle_errors
def subnet_create(ctx, vpc_id, cidr_block, name, tag, remark):
    """Create a subnet."""
    config = SubnetConfig(vpc_id=vpc_id, cidr_block=cidr_block, name=name, tag=tag, remark=remark)
    handler = SubnetHandler(get_provider_context(ctx))
    with console.status("[cyan]Creating subnet...[/cyan]"):
        state = handler.create(config)
    console.print(f"[green]✓[/green] Created subnet [bold]{state.id}[/bold]")
    print_state(f"Subnet {state.id}", state)


@subnet.command('show')
@click.argument('subnet_id')
@click.pass_context
@handle_errors
def subnet_show(ctx, subnet_id):
    """Show a subnet."""
    handler = SubnetHandler(get_provider_context(ctx))
    print_state(f"Subnet {subnet_id}", handler.read(subnet_id))


@subnet.command('import')
@click.argument('subnet_id')
@click.pass_context
@handle_errors
def subnet_import(ctx, subnet_id):
    """Import an existing subnet by id."""
    handler = SubnetHandler(get_provider_context(ctx))
    state = handler.import_state(subnet_id)
    console.print(f"[green]✓[/green] Imported subnet [bold]{state.id}[/bold]")
    print_state(f"Subnet {state.id}", state)


@subnet.command('update')
@click.argument('subnet_id')
@click.option('--name', callback=_checked(validate_name), help='New subnet name')
@click.option('--tag', callback=_checked(normalize_tag), help='New tag')
@click.pass_context
@handle_errors
def subnet_update(ctx, subnet_id, name, tag):
    """Rename or retag a subnet."""
    handler = SubnetHandler(get_provider_context(ctx))
    current = handler.import_state(subnet_id)
    old = current.to_config()
    changes = {}
    if name:
        changes['name'] = name
    if tag is not None:
        changes['tag'] = tag
    new = old.model_copy(update=changes)

    state = handler.update(subnet_id, old, new)
    console.print(f"[green]✓[/green] Updated subnet [bold]{subnet_id}[/bold]")
    print_state(f"Subnet {subnet_id}", state)


@subnet.command('delete')
@click.argument('subnet_id')
@click.confirmation_option(prompt='Are you sure you want to delete this subnet?')
@click.pass_context
@handle_errors
def subnet_delete(ctx, subnet_id):
    """Delete a subnet."""
    handler = SubnetHandler(get_provider_context(ctx))
    with console.status(f"[cyan]Deleting {subnet_id}...[/cyan]"):
        handler.delete(subnet_id)
    console.print(f"[green]✓[/green] Deleted subnet [bold]{subnet_id}[/bold]")


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == '__main__':
    main()
