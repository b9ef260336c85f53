# backend/services/order_lines.py
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.orm import Session

from models.product import Product
from schemas.quotation import OrderCalculation, OrderLine, QuotationItemIn
from services.margin_ranges import as_money
from utils.errors import NotFoundError, ValidationError
from utils.transaction import parse_payload


def _parse_items(items: Iterable) -> List[QuotationItemIn]:
    if items is None:
        return []
    if isinstance(items, (str, bytes, dict)):
        raise ValidationError("Items must be a list", context={"items": str(items)[:100]})
    return [parse_payload(QuotationItemIn, item) for item in items]


def calculate_lines(db: Session, items: Iterable) -> OrderCalculation:
    """Price a list of ``{product_id, quantity}`` against the current catalog.

    Pure read: one batched lookup, no locks, no writes. Every line carries a
    snapshot of the product's description and sale price; if any requested
    product is missing the whole calculation fails.
    """
    requested = _parse_items(items)
    if not requested:
        return OrderCalculation(lines=[], total=Decimal("0.00"))

    ids = {item.product_id for item in requested}
    products = db.query(Product).filter(Product.id.in_(ids)).all()
    by_id = {p.id: p for p in products}

    lines: List[OrderLine] = []
    for item in requested:
        product = by_id.get(item.product_id)
        if product is None:
            raise NotFoundError(f"Product {item.product_id} does not exist", context={"product_id": item.product_id})

        unit_price = as_money(product.sale_price)
        lines.append(OrderLine(
            product_id=product.id,
            description=product.description,
            unit_price=unit_price,
            quantity=item.quantity,
            subtotal=as_money(unit_price * item.quantity),
        ))

    total = as_money(sum((line.subtotal for line in lines), Decimal("0")))
    return OrderCalculation(lines=lines, total=total)
