import pytest
from decimal import Decimal
import uuid

from app import create_app
from app import database
from app.database import Base, create_schema, get_session
from app.models import (
    Product, ProductMode, VolumeTier, CustomerGroup, GroupPrice,
    VariantOption, VariantOptionValue, SubscriptionType, ProductChild, MixMatchBoxSize
)


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session on a fresh schema."""
    create_schema()
    session = get_session()
    yield session
    session.rollback()
    database.db_session.remove()
    Base.metadata.drop_all(bind=database.engine)


# ---------------------------------------------------------------------------
# Catalog builders (transient objects; add them to a session to persist)
# ---------------------------------------------------------------------------

def _sku(prefix):
    return f'{prefix}-{str(uuid.uuid4())[:8]}'


def tiers_10_9_8():
    """Tiers 1-9: 10, 10-49: 9, 50+: 8."""
    return [
        VolumeTier(min_quantity=1, max_quantity=9, discount_price=Decimal('10'), sort_order=0),
        VolumeTier(min_quantity=10, max_quantity=49, discount_price=Decimal('9'), sort_order=1),
        VolumeTier(min_quantity=50, discount_price=Decimal('8'), sort_order=2),
    ]


@pytest.fixture
def simple_product():
    """Simple product with the 10/9/8 tier table and plenty of stock."""
    return Product(
        id=1,
        sku=_sku('SIMPLE'),
        title='Copy paper',
        mode=ProductMode.SIMPLE,
        active=True,
        base_price=Decimal('12.00'),
        stock=1000,
        track_stock=True,
        min_order_quantity=1,
        order_multiple=1,
        volume_tiers=tiers_10_9_8(),
    )


@pytest.fixture
def dealer():
    return CustomerGroup(id=7, name='Dealer', slug='dealer')


@pytest.fixture
def grouped_product():
    """Grouped product (parent tiers 10/9/8) with children A (id 11) and B (id 12)."""
    child_a = Product(id=11, sku=_sku('A'), title='Pen A', active=True, base_price=Decimal('3'), stock=100, track_stock=True)
    child_b = Product(id=12, sku=_sku('B'), title='Pen B', active=True, base_price=Decimal('4'), stock=100, track_stock=True)
    return Product(
        id=10,
        sku=_sku('GROUP'),
        title='Pens',
        mode=ProductMode.GROUPED,
        active=True,
        base_price=Decimal('10'),
        track_stock=False,
        volume_tiers=tiers_10_9_8(),
        child_links=[
            ProductChild(child=child_a, is_default=True, sort_order=0),
            ProductChild(child=child_b, sort_order=1),
        ],
    )


def _shirt_options():
    return [
        VariantOption(option_name='Color', sort_order=0, values=[
            VariantOptionValue(label='Red', value='red', price_modifier=Decimal('0'), stock_level=20, sort_order=0),
            VariantOptionValue(label='Blue', value='blue', price_modifier=Decimal('1.50'), stock_level=4, sort_order=1),
        ]),
        VariantOption(option_name='Size', sort_order=1, values=[
            VariantOptionValue(label='L', value='l', price_modifier=Decimal('0'), sort_order=0),
            VariantOptionValue(label='XL', value='xl', price_modifier=Decimal('5'), sort_order=1),
        ]),
    ]


@pytest.fixture
def variable_product():
    """Variable product, base 50, Color (Red +0 / Blue +1.50) and Size (L +0 / XL +5)."""
    return Product(
        id=20,
        sku=_sku('SHIRT'),
        title='Shirt',
        mode=ProductMode.VARIABLE,
        is_subscription=False,
        active=True,
        base_price=Decimal('50'),
        stock=100,
        track_stock=True,
        variant_options=_shirt_options(),
    )


@pytest.fixture
def subscription_product():
    """Subscription on top of the shirt options, with a 20% yearly plan."""
    options = _shirt_options()
    options.append(VariantOption(option_name='Plan', sort_order=2, values=[
        VariantOptionValue(
            label='Yearly', value='yearly', price_modifier=Decimal('0'),
            subscription_type=SubscriptionType.PERSONAL, discount_percentage=Decimal('20'),
            issues=12, auto_renew=True, sort_order=0
        ),
        VariantOptionValue(
            label='Gift', value='gift', price_modifier=Decimal('0'),
            subscription_type=SubscriptionType.GIFT, stock_level=0, sort_order=1
        ),
    ]))
    return Product(
        id=30,
        sku=_sku('SUB'),
        title='Shirt club',
        mode=ProductMode.VARIABLE,
        is_subscription=True,
        active=True,
        base_price=Decimal('50'),
        track_stock=False,
        variant_options=options,
    )


@pytest.fixture
def mix_and_match_product():
    """Box of 3 at 12.00 with two allowed products (ids 41 and 42)."""
    return Product(
        id=40,
        sku=_sku('BOX'),
        title='Snack box',
        mode=ProductMode.MIX_AND_MATCH,
        active=True,
        track_stock=False,
        box_sizes=[MixMatchBoxSize(id=401, name='Box of 3', item_count=3, price=Decimal('12.00'), sort_order=0)],
        bundle_products=[
            Product(id=41, sku=_sku('BAR'), title='Granola bar', base_price=Decimal('2.50'), stock=50),
            Product(id=42, sku=_sku('NUTS'), title='Nut mix', base_price=Decimal('3.00'), stock=50),
        ],
    )


@pytest.fixture
def persisted_catalog(session):
    """Persist one product of each mode plus a Dealer group; returns them by name."""
    dealer = CustomerGroup(name='Dealer', slug=_sku('dealer'))

    simple = Product(
        sku=_sku('SIMPLE'), title='Copy paper', mode=ProductMode.SIMPLE,
        base_price=Decimal('12.00'), compare_at_price=Decimal('15.00'), stock=1000,
        volume_tiers=tiers_10_9_8(),
        group_prices=[GroupPrice(group=dealer, price=Decimal('8'), min_quantity=5)],
    )
    boxed = Product(
        sku=_sku('INK'), title='Ink', mode=ProductMode.SIMPLE,
        base_price=Decimal('4.00'), stock=100, min_order_quantity=6, order_multiple=6,
    )
    grouped = Product(
        sku=_sku('GROUP'), title='Pens', mode=ProductMode.GROUPED,
        base_price=Decimal('10'), track_stock=False,
        volume_tiers=tiers_10_9_8(),
        child_links=[
            ProductChild(child=Product(sku=_sku('A'), title='Pen A', base_price=Decimal('3'), stock=100), is_default=True, sort_order=0),
            ProductChild(child=Product(sku=_sku('B'), title='Pen B', base_price=Decimal('4'), stock=100), sort_order=1),
        ],
    )
    variable = Product(
        sku=_sku('SHIRT'), title='Shirt', mode=ProductMode.VARIABLE,
        base_price=Decimal('50'), stock=100, variant_options=_shirt_options(),
    )
    unpriced = Product(sku=_sku('NOPRICE'), title='Mystery item', mode=ProductMode.SIMPLE, stock=10)
    capped = Product(
        sku=_sku('TONER'), title='Toner', mode=ProductMode.SIMPLE,
        base_price=Decimal('5.00'), stock=10, max_order_quantity=50,
    )
    retired = Product(
        sku=_sku('OLD'), title='Fax paper', mode=ProductMode.SIMPLE,
        base_price=Decimal('3.00'), stock=100, active=False,
    )
    bar = Product(sku=_sku('BAR'), title='Granola bar', base_price=Decimal('2.50'), stock=50)
    box = Product(
        sku=_sku('BOX'), title='Snack box', mode=ProductMode.MIX_AND_MATCH, track_stock=False,
        box_sizes=[MixMatchBoxSize(name='Box of 3', item_count=3, price=Decimal('12.00'))],
        bundle_products=[bar],
    )

    session.add_all([dealer, simple, boxed, grouped, variable, unpriced, capped, retired, box])
    session.commit()
    return {
        'dealer': dealer,
        'simple': simple,
        'boxed': boxed,
        'grouped': grouped,
        'variable': variable,
        'unpriced': unpriced,
        'capped': capped,
        'retired': retired,
        'box': box,
        'bar': bar,
    }


@pytest.fixture
def catalog_ids(persisted_catalog):
    """Ids of the persisted catalog (requests remove the scoped session, so read them up front)."""
    ids = {name: obj.id for name, obj in persisted_catalog.items()}
    grouped = persisted_catalog['grouped']
    ids['child_a'], ids['child_b'] = [child.id for child in grouped.children]
    ids['dealer_slug'] = persisted_catalog['dealer'].slug
    return ids


@pytest.fixture
def tiers():
    return tiers_10_9_8()
