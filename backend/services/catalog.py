# backend/services/catalog.py
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.product import Product
from schemas.product import ProductCreate, ProductOut, ProductUpdate
from services.margin_ranges import PricingStrategy, as_money, percentage_markup, resolve_sale_price
from utils.audit import write_log
from utils.errors import ConflictError, NotFoundError
from utils.permissions import Identity, ROLE_ADMIN, require_role
from utils.transaction import atomic, parse_payload

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("code", "description", "stock_max", "stock_min", "purchase_price", "sale_price", "active")


# ---- HELPERS ----
def _ensure_unique(db: Session, code: Optional[str], barcode: Optional[str], active: bool, exclude_id: Optional[int] = None):
    if code is not None and active:
        query = db.query(Product.id).filter(Product.code == code, Product.active.is_(True))
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ConflictError("Product code already in use", context={"code": code})

    if barcode is not None:
        query = db.query(Product.id).filter(Product.barcode == barcode)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ConflictError("Barcode already in use", context={"barcode": barcode})


def _flush_unique(db: Session, code: str, barcode: Optional[str]) -> None:
    # The unique indexes also reject what a concurrent write slipped past _ensure_unique
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError(
            "Product code or barcode already in use",
            context={"code": code, "barcode": barcode},
        ) from exc


def _get(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found", context={"product_id": product_id})
    return product


# =========================
# READS
# =========================
def get_product(db: Session, product_id: int) -> ProductOut:
    return ProductOut.model_validate(_get(db, product_id))


def list_products(db: Session, active_only: bool = False) -> List[ProductOut]:
    query = db.query(Product)
    if active_only:
        query = query.filter(Product.active.is_(True))
    return [ProductOut.model_validate(p) for p in query.order_by(Product.id.asc()).all()]


# =========================
# WRITES
# =========================
def create_product(db: Session, identity: Identity, payload, strategy: PricingStrategy = percentage_markup) -> ProductOut:
    require_role(identity, ROLE_ADMIN)
    data = parse_payload(ProductCreate, payload)

    with atomic(db):
        _ensure_unique(db, data.code, data.barcode, data.active)

        values = data.model_dump()
        if data.sale_price is None:
            values["sale_price"] = resolve_sale_price(db, data.purchase_price, strategy)
        values["purchase_price"] = as_money(data.purchase_price)
        values["sale_price"] = as_money(values["sale_price"])

        product = Product(**values)
        db.add(product)
        _flush_unique(db, data.code, data.barcode)

        write_log(db, user_id=identity.user_id, action="PRODUCT_CREATE", resource="products", meta={"id": product.id})
        out = ProductOut.model_validate(product)

    logger.info("Product %s (%s) created", out.id, out.code)
    return out


def update_product(db: Session, identity: Identity, product_id: int, payload, strategy: PricingStrategy = percentage_markup) -> ProductOut:
    require_role(identity, ROLE_ADMIN)
    data = parse_payload(ProductUpdate, payload)
    changes = data.model_dump(exclude_unset=True)

    with atomic(db):
        product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if not product:
            raise NotFoundError("Product not found", context={"product_id": product_id})

        code = changes.get("code") or product.code
        barcode = changes.get("barcode")
        active = product.active if changes.get("active") is None else changes["active"]
        # Reactivation must also respect the code uniqueness among active products
        code_to_check = code if ("code" in changes or "active" in changes) else None
        _ensure_unique(db, code_to_check, barcode, bool(active), exclude_id=product_id)

        if changes.get("purchase_price") is not None and changes.get("sale_price") is None:
            changes["sale_price"] = resolve_sale_price(db, changes["purchase_price"], strategy)

        # Mandatory columns: an explicit null leaves them unchanged
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                changes.pop(field)
        for field in ("purchase_price", "sale_price"):
            if field in changes:
                changes[field] = as_money(changes[field])

        for field, value in changes.items():
            setattr(product, field, value)
        _flush_unique(db, product.code, product.barcode)

        write_log(db, user_id=identity.user_id, action="PRODUCT_UPDATE", resource="products",
                  meta={"id": product_id, "fields": sorted(changes)})
        out = ProductOut.model_validate(product)

    return out


def delete_product(db: Session, identity: Identity, product_id: int) -> None:
    require_role(identity, ROLE_ADMIN)

    with atomic(db):
        product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if not product:
            raise NotFoundError("Product not found", context={"product_id": product_id})
        if product.stock_qty > 0:
            raise ConflictError(
                "Cannot delete a product that still has stock",
                context={"product_id": product_id, "stock_qty": product.stock_qty},
            )
        db.delete(product)
        write_log(db, user_id=identity.user_id, action="PRODUCT_DELETE", resource="products", meta={"id": product_id})
