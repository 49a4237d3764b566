from datetime import datetime, timezone

from motoverse.models.schemas import CartItem, Category, Order, OrderStatus, Product

ADMIN_EMAIL = "admin@motoverse.test"
ADMIN_PASSWORD = "throttle"


def make_product(pid="p-1", name="Yamaha R1", price=10000.0, **overrides):
    data = dict(
        id=pid,
        name=name,
        brand="Yamaha",
        category=Category.BIKES,
        price=price,
        image="https://cdn.test/r1.jpg",
        description="Superbike with crossplane engine",
        stock=3,
    )
    data.update(overrides)
    return Product(**data)


def make_order(oid="o-1", lines=(), created_at=None, status=OrderStatus.PENDING):
    """lines: iterable of (product, quantity)."""
    items = tuple(CartItem(product=p, quantity=q) for p, q in lines)
    return Order(
        id=oid,
        customer_name="Amine",
        customer_phone="+212600000000",
        customer_address="12 Rue Atlas, Casablanca",
        items=items,
        total=sum(i.line_total for i in items),
        created_at=created_at or datetime.now(timezone.utc),
        status=status,
    )


def order_of_total(oid, total, created_at, **kwargs):
    product = make_product(pid=f"{oid}-item", name=f"Item {oid}", price=float(total))
    return make_order(oid, [(product, 1)], created_at=created_at, **kwargs)
