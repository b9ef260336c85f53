# backend/services/restock.py
import logging
from typing import Dict, List

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from models.product import Product
from schemas.stock import RestockEntry, RestockRequest, RestockResult, RestockedProduct
from services.margin_ranges import as_money
from services.sales import lock_products
from utils.audit import write_log
from utils.errors import ConflictError, NotFoundError
from utils.permissions import Identity, ROLE_ADMIN, require_role
from utils.transaction import atomic, parse_payload

logger = logging.getLogger(__name__)


def _check_products(db: Session, entries: List[RestockEntry]) -> Dict[int, Product]:
    # Rows stay locked until commit, so the active flag cannot change under us
    ids = sorted({entry.product_id for entry in entries})
    products = lock_products(db, ids)
    for product_id in ids:
        product = products.get(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found", context={"product_id": product_id})
        if not product.active:
            raise ConflictError(f"Product {product_id} is inactive", context={"product_id": product_id})
    return products


def restock(db: Session, identity: Identity, payload) -> RestockResult:
    """Apply a batch of stock additions, all or nothing.

    Every product is locked (ascending id, the same order sale commits use)
    and validated before the first write. Entries are applied with a
    relative update floored at zero, so a restock and a concurrent sale on the
    same row compose in either commit order. Applying the same batch twice
    adds twice.
    """
    require_role(identity, ROLE_ADMIN)
    data = parse_payload(RestockRequest, payload)

    with atomic(db):
        _check_products(db, data.entries)

        ordered = sorted(data.entries, key=lambda entry: entry.product_id)
        for entry in ordered:
            new_qty = Product.stock_qty + entry.quantity_delta
            values = {"stock_qty": case((new_qty < 0, 0), else_=new_qty)}
            if entry.new_purchase_price is not None:
                values["purchase_price"] = as_money(entry.new_purchase_price)
            if entry.new_sale_price is not None:
                values["sale_price"] = as_money(entry.new_sale_price)
            db.execute(
                update(Product)
                .where(Product.id == entry.product_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )

        touched = sorted({entry.product_id for entry in ordered})
        refreshed = (
            db.query(Product)
            .filter(Product.id.in_(touched))
            .order_by(Product.id.asc())
            .populate_existing()
            .all()
        )
        items = [RestockedProduct.model_validate(p) for p in refreshed]

        write_log(
            db, user_id=identity.user_id, action="STOCK_RESTOCK", resource="stock",
            meta={"count": len(items), "entries": [e.model_dump(mode="json") for e in data.entries]},
        )

    logger.info("Restock by user %s updated %d products", identity.user_id, len(items))
    return RestockResult(updated=len(items), items=items)
