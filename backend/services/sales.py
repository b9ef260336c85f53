# backend/services/sales.py
"""Binding sales.

``commit_sale`` turns a list of requested products into a priced sale and
debits stock in one transaction, without ever overselling:

* input is validated before any transaction is opened;
* duplicate product ids are merged into one required quantity;
* product rows are locked one at a time in ascending id order, the single
  global lock order shared by every multi-row writer (restock included),
  so overlapping commits serialize instead of deadlocking;
* stock, price and the active flag are re-read under the lock and are the
  only values trusted; client-supplied prices never reach the total;
* stock is debited with a relative ``UPDATE``, never an absolute set.

Any failure rolls back the header, the lines and every stock change.
"""
import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from config import settings
from models.product import Product
from models.sale import Sale, SaleLine
from schemas.sale import SaleCreate, SaleDetail, SaleReceipt, SaleReceiptLine, SaleSummary
from services.margin_ranges import as_money
from utils.audit import write_log
from utils.errors import ConflictError, NotFoundError
from utils.permissions import Identity, ROLE_ADMIN, SALES_ROLES, require_role
from utils.transaction import atomic, parse_payload

logger = logging.getLogger(__name__)

DELETED_PRODUCT = "Deleted product"


def aggregate_quantities(data: SaleCreate) -> Dict[int, int]:
    """Merge repeated product ids into one required quantity per product."""
    required: Dict[int, int] = OrderedDict()
    for item in data.items:
        required[item.product_id] = required.get(item.product_id, 0) + item.quantity
    return required


def lock_products(db: Session, product_ids: List[int]) -> Dict[int, Product]:
    # One row per statement, strictly ascending: the lock order is part of the contract
    locked: Dict[int, Product] = {}
    for product_id in sorted(product_ids):
        product = (
            db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if product is not None:
            locked[product_id] = product
    return locked


def commit_sale(db: Session, identity: Identity, payload) -> SaleReceipt:
    require_role(identity, *SALES_ROLES)
    data = parse_payload(SaleCreate, payload)
    required = aggregate_quantities(data)

    with atomic(db):
        locked = lock_products(db, list(required))

        if len(locked) < len(required):
            missing = sorted(set(required) - set(locked))
            raise NotFoundError(
                f"Product {missing[0]} does not exist",
                context={"product_id": missing[0], "missing": missing},
            )

        for product_id in sorted(required):
            product = locked[product_id]
            if not product.active:
                raise ConflictError(
                    f"Product {product_id} is inactive",
                    context={"product_id": product_id, "description": product.description},
                )

        for product_id in sorted(required):
            product = locked[product_id]
            requested = required[product_id]
            if requested > product.stock_qty:
                raise ConflictError(
                    f'Insufficient stock for "{product.description or product.code}"',
                    context={
                        "product_id": product_id,
                        "available": product.stock_qty,
                        "requested": requested,
                    },
                )

        # Prices read under the lock are the only source of truth
        prices = {pid: as_money(locked[pid].sale_price) for pid in required}
        total = as_money(sum((prices[pid] * qty for pid, qty in required.items()), Decimal("0")))

        sale = Sale(total=total, payment_method=data.payment_method, seller_id=identity.user_id)
        db.add(sale)
        db.flush()

        receipt_lines: List[SaleReceiptLine] = []
        for product_id, quantity in required.items():
            unit_price = prices[product_id]
            db.add(SaleLine(sale_id=sale.id, product_id=product_id, quantity=quantity, unit_price=unit_price))
            db.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(stock_qty=Product.stock_qty - quantity)
                .execution_options(synchronize_session=False)
            )
            receipt_lines.append(SaleReceiptLine(
                product_id=product_id,
                description=locked[product_id].description,
                quantity=quantity,
                unit_price=unit_price,
                subtotal=as_money(unit_price * quantity),
            ))
        db.flush()

        write_log(
            db, user_id=identity.user_id, action="SALE_COMMIT", resource="sales",
            meta={"sale_id": sale.id, "total": str(total), "products": list(required)},
        )
        receipt = SaleReceipt(
            sale_id=sale.id,
            total=total,
            payment_method=data.payment_method,
            lines=receipt_lines,
        )

    logger.info("Sale %s committed by user %s, total %s", receipt.sale_id, identity.user_id, receipt.total)
    return receipt


def _seller_name(sale: Sale) -> Optional[str]:
    if sale.seller is None:
        return None
    return sale.seller.full_name or sale.seller.username


def _to_summary(sale: Sale) -> SaleSummary:
    return SaleSummary(
        id=sale.id,
        date=sale.date,
        total=sale.total,
        payment_method=sale.payment_method,
        seller_id=sale.seller_id,
        seller_name=_seller_name(sale),
    )


def list_sales(db: Session, identity: Identity, limit: Optional[int] = None) -> List[SaleSummary]:
    require_role(identity, *SALES_ROLES)
    rows = (
        db.query(Sale)
        .options(joinedload(Sale.seller))
        .order_by(Sale.date.desc(), Sale.id.desc())
        .limit(limit or settings.SALE_LIST_LIMIT)
        .all()
    )
    return [_to_summary(s) for s in rows]


def get_sale(db: Session, identity: Identity, sale_id: int) -> SaleDetail:
    require_role(identity, *SALES_ROLES)
    sale = (
        db.query(Sale)
        .options(joinedload(Sale.seller), joinedload(Sale.lines).joinedload(SaleLine.product))
        .filter(Sale.id == sale_id)
        .first()
    )
    if sale is None:
        raise NotFoundError("Sale not found", context={"sale_id": sale_id})

    lines = [
        SaleReceiptLine(
            product_id=line.product_id,
            description=line.product.description if line.product is not None else DELETED_PRODUCT,
            quantity=line.quantity,
            unit_price=line.unit_price,
            subtotal=as_money(line.unit_price * line.quantity),
        )
        for line in sale.lines
    ]
    return SaleDetail(**_to_summary(sale).model_dump(), lines=lines)


def delete_sale(db: Session, identity: Identity, sale_id: int) -> None:
    """Administrative removal of a sale and its lines. Stock is not restored."""
    require_role(identity, ROLE_ADMIN)

    with atomic(db):
        sale = db.query(Sale).filter(Sale.id == sale_id).first()
        if sale is None:
            raise NotFoundError("Sale not found", context={"sale_id": sale_id})
        db.delete(sale)
        write_log(
            db, user_id=identity.user_id, action="SALE_DELETE", resource="sales",
            meta={"sale_id": sale_id},
        )
