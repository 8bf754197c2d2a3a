"""
Flask CLI commands for catalog and pricing management.

Commands:
- flask init-db: Create the catalog tables
- flask seed-catalog: Load a demo catalog (one product per mode)
- flask price: Print the price breakdown of a product
"""

import click
from decimal import Decimal
from flask import current_app
from app.database import create_schema, get_session
from app.exceptions import PricingError
from app.models import (
    Product, ProductMode, VolumeTier, CustomerGroup, GroupPrice,
    VariantOption, VariantOptionValue, SubscriptionType, ProductChild, MixMatchBoxSize
)
from app.services.cart_service import PricingConfig
from app.services.catalog_service import find_product_by_sku
from app.services.price_service import price_breakdown
from app.services.tier_service import tier_table
from app.utils.formatters import money_eu, percent


def build_demo_catalog():
    """Demo products covering every product mode."""
    dealer = CustomerGroup(name='Dealer', slug='dealer')

    paper = Product(
        sku='DEMO-PAPER', title='Copy paper A4', mode=ProductMode.SIMPLE,
        base_price=Decimal('10.00'), stock=500, min_order_quantity=1, order_multiple=1,
        volume_tiers=[
            VolumeTier(min_quantity=1, max_quantity=9, discount_price=Decimal('10.00'), sort_order=0),
            VolumeTier(min_quantity=10, max_quantity=49, discount_percentage=Decimal('10'), sort_order=1),
            VolumeTier(min_quantity=50, discount_price=Decimal('7.50'), sort_order=2),
        ],
        group_prices=[
            GroupPrice(group=dealer, price=Decimal('8.00'), min_quantity=1),
            GroupPrice(group=dealer, price=Decimal('6.50'), min_quantity=50),
        ],
    )

    cartridges = Product(
        sku='DEMO-INK', title='Ink cartridges (box)', mode=ProductMode.SIMPLE,
        base_price=Decimal('4.00'), sale_price=Decimal('3.50'), stock=120,
        min_order_quantity=6, order_multiple=6,
    )

    pen_red = Product(sku='DEMO-PEN-RED', title='Pen red', base_price=Decimal('1.20'), stock=300)
    pen_blue = Product(sku='DEMO-PEN-BLUE', title='Pen blue', base_price=Decimal('1.20'), stock=300)
    pens = Product(
        sku='DEMO-PENS', title='Pens', mode=ProductMode.GROUPED,
        base_price=Decimal('1.20'), track_stock=False,
        volume_tiers=[
            VolumeTier(min_quantity=1, discount_price=Decimal('1.20'), sort_order=0),
            VolumeTier(min_quantity=25, discount_price=Decimal('0.95'), sort_order=1),
        ],
        child_links=[
            ProductChild(child=pen_red, is_default=True, sort_order=0),
            ProductChild(child=pen_blue, sort_order=1),
        ],
    )

    shirt = Product(
        sku='DEMO-SHIRT', title='Work shirt', mode=ProductMode.VARIABLE,
        base_price=Decimal('20.00'), stock=40,
        variant_options=[
            VariantOption(option_name='Color', sort_order=0, values=[
                VariantOptionValue(label='White', value='white', price_modifier=Decimal('0'), stock_level=25, sort_order=0),
                VariantOptionValue(label='Navy', value='navy', price_modifier=Decimal('2.50'), stock_level=10, sort_order=1),
            ]),
            VariantOption(option_name='Size', sort_order=1, values=[
                VariantOptionValue(label='M', value='m', price_modifier=Decimal('0'), sort_order=0),
                VariantOptionValue(label='XL', value='xl', price_modifier=Decimal('3.00'), sort_order=1),
            ]),
        ],
    )

    magazine = Product(
        sku='DEMO-MAG', title='Office magazine', mode=ProductMode.VARIABLE, is_subscription=True,
        base_price=Decimal('60.00'), track_stock=False,
        variant_options=[
            VariantOption(option_name='Plan', values=[
                VariantOptionValue(
                    label='Yearly', value='yearly', price_modifier=Decimal('0'),
                    subscription_type=SubscriptionType.PERSONAL, issues=12,
                    discount_percentage=Decimal('10'), auto_renew=True, sort_order=0
                ),
                VariantOptionValue(
                    label='Gift', value='gift', price_modifier=Decimal('5.00'),
                    subscription_type=SubscriptionType.GIFT, issues=12, stock_level=50, sort_order=1
                ),
            ]),
        ],
    )

    snacks = Product(
        sku='DEMO-SNACKBOX', title='Snack box', mode=ProductMode.MIX_AND_MATCH,
        track_stock=False,
        box_sizes=[
            MixMatchBoxSize(name='Box of 6', item_count=6, price=Decimal('12.00'), sort_order=0),
            MixMatchBoxSize(name='Box of 12', item_count=12, price=Decimal('22.00'), sort_order=1),
        ],
        bundle_products=[
            Product(sku='DEMO-BAR', title='Granola bar', base_price=Decimal('2.50'), stock=200),
            Product(sku='DEMO-NUTS', title='Nut mix', base_price=Decimal('2.50'), stock=200),
        ],
    )

    return [dealer, paper, cartridges, pens, shirt, magazine, snacks]


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the catalog tables."""
        create_schema()
        click.echo(click.style('✅ Catalog tables created.', fg='green'))

    @app.cli.command('seed-catalog')
    def seed_catalog():
        """Load the demo catalog (skipped when it is already there)."""
        session = get_session()
        create_schema()

        if find_product_by_sku(session, 'DEMO-PAPER'):
            click.echo(click.style('⚠️  Demo catalog already loaded.', fg='yellow'))
            return

        try:
            session.add_all(build_demo_catalog())
            session.commit()
        except Exception as e:
            session.rollback()
            click.echo(click.style(f'❌ Error loading demo catalog: {str(e)}', fg='red'))
            raise click.Abort()

        count = session.query(Product).filter(Product.sku.like('DEMO-%')).count()
        click.echo(click.style(f'\n✅ Demo catalog loaded: {count} products', fg='green', bold=True))

    @app.cli.command('price')
    @click.option('--sku', required=True, help='Product SKU')
    @click.option('--qty', default=1, show_default=True, type=int, help='Quantity (aggregate for grouped products)')
    @click.option('--group', default=None, help='Customer group id or slug')
    def price(sku, qty, group):
        """Print the price breakdown and tier table of a product."""
        product = find_product_by_sku(get_session(), sku)
        if product is None:
            click.echo(click.style(f'❌ No product with SKU {sku}', fg='red'))
            raise click.Abort()

        config = PricingConfig.from_mapping(current_app.config)
        try:
            breakdown = price_breakdown(
                product, qty, group,
                tax_rates=config.tax_rates,
                group_prices_enabled=config.group_prices_enabled
            )
        except PricingError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            raise click.Abort()

        click.echo(click.style(f'{product.title} ({sku}) x {qty}', bold=True))
        click.echo(f'   Unit price: {money_eu(breakdown.unit_price, config.currency)} ({breakdown.source.value})')
        if breakdown.old_price is not None:
            click.echo(f'   Was:        {money_eu(breakdown.old_price, config.currency)} {percent(breakdown.savings_percent)}')
        click.echo(f'   Total:      {money_eu(breakdown.total, config.currency)}')
        click.echo(f'   Tax class:  {breakdown.tax_class} ({breakdown.tax_rate}%)')

        rows = tier_table(list(product.volume_tiers or []), product.base_price, qty)
        if rows:
            click.echo('\n   Volume tiers:')
            for row in rows:
                upper = row['max_quantity'] if row['max_quantity'] is not None else '+'
                marker = '→' if row['active'] else ' '
                click.echo(
                    f"   {marker} {row['min_quantity']}-{upper}: "
                    f"{money_eu(row['unit_price'], config.currency)} {percent(row['discount_percent'])}"
                )
