"""
Warehouse CLI

    flask --app zonegrid warehouse create --name "Cairo Main" --code CAI-1 \
        --governorate cairo --lat 30.0444 --lng 31.2357 --default
    flask --app zonegrid warehouse list
"""

import click
from flask.cli import AppGroup

from zonegrid.services.warehouses import create_warehouse, list_warehouses

warehouse_cli = AppGroup('warehouse', help='Manage warehouses.')


@warehouse_cli.command('create')
@click.option('--name', required=True)
@click.option('--code', required=True)
@click.option('--governorate', default=None)
@click.option('--lat', type=float, default=None)
@click.option('--lng', type=float, default=None)
@click.option('--shipping-price', type=float, default=0.0, show_default=True)
@click.option('--default', 'is_default', is_flag=True, help='Make this the default warehouse.')
def create_command(name, code, governorate, lat, lng, shipping_price, is_default):
    """Create a warehouse."""
    if (lat is None) != (lng is None):
        raise click.UsageError('--lat and --lng must be given together')
    if shipping_price < 0:
        raise click.UsageError('--shipping-price must not be negative')

    warehouse = create_warehouse(
        name=name,
        code=code,
        governorate=governorate,
        latitude=lat,
        longitude=lng,
        default_shipping_price=shipping_price,
        is_default=is_default,
    )
    click.echo(f'Created warehouse {warehouse.id} ({warehouse.code})')


@warehouse_cli.command('list')
@click.option('--active-only', is_flag=True)
def list_command(active_only):
    """List warehouses, oldest first."""
    for warehouse in list_warehouses(active=True if active_only else None):
        flags = []
        if warehouse.is_default:
            flags.append('default')
        if not warehouse.active:
            flags.append('inactive')
        suffix = f" [{', '.join(flags)}]" if flags else ''
        click.echo(f'{warehouse.id}\t{warehouse.code}\t{warehouse.governorate or "-"}\t{warehouse.name}{suffix}')
