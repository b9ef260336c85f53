# backend/services/quotations.py
"""Draft quotations.

A quotation is a priced snapshot of the catalog: it never touches stock and
its lines are not affected by later price changes. Updates recompute the
whole line set; there is no incremental patching.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from config import settings
from models.quotation import Quotation, QuotationLine
from schemas.quotation import (
    OrderCalculation, QuotationCreate, QuotationLineOut, QuotationOut, QuotationSummary,
)
from services.order_lines import calculate_lines
from utils.audit import write_log
from utils.errors import NotFoundError
from utils.permissions import Identity, SALES_ROLES, require_role
from utils.transaction import atomic, parse_payload

logger = logging.getLogger(__name__)


def _seller_name(quotation: Quotation) -> Optional[str]:
    if quotation.seller is None:
        return None
    return quotation.seller.full_name or quotation.seller.username


def _to_summary(quotation: Quotation) -> QuotationSummary:
    return QuotationSummary(
        id=quotation.id,
        client=quotation.client,
        payment_method=quotation.payment_method,
        total=quotation.total,
        seller_id=quotation.seller_id,
        seller_name=_seller_name(quotation),
        created_at=quotation.created_at,
    )


def _to_out(quotation: Quotation) -> QuotationOut:
    lines = [
        QuotationLineOut(
            product_id=line.product_id,
            description=line.description,
            unit_price=line.unit_price,
            quantity=line.quantity,
            subtotal=line.subtotal,
            stock_qty=line.product.stock_qty if line.product is not None else None,
        )
        for line in quotation.lines
    ]
    return QuotationOut(**_to_summary(quotation).model_dump(), lines=lines)


def _build_lines(calculation: OrderCalculation) -> List[QuotationLine]:
    return [
        QuotationLine(
            product_id=line.product_id,
            description=line.description,
            unit_price=line.unit_price,
            quantity=line.quantity,
            subtotal=line.subtotal,
        )
        for line in calculation.lines
    ]


def _load(db: Session, quotation_id: int) -> Quotation:
    quotation = (
        db.query(Quotation)
        .options(
            joinedload(Quotation.seller),
            joinedload(Quotation.lines).joinedload(QuotationLine.product),
        )
        .filter(Quotation.id == quotation_id)
        .first()
    )
    if quotation is None:
        raise NotFoundError("Quotation not found", context={"quotation_id": quotation_id})
    return quotation


def create_quotation(db: Session, identity: Identity, payload) -> QuotationOut:
    require_role(identity, *SALES_ROLES)
    data = parse_payload(QuotationCreate, payload)

    with atomic(db):
        calculation = calculate_lines(db, data.items)

        quotation = Quotation(
            client=data.client or None,
            payment_method=data.payment_method or None,
            total=calculation.total,
            seller_id=identity.user_id,
            lines=_build_lines(calculation),
        )
        db.add(quotation)
        db.flush()

        write_log(
            db, user_id=identity.user_id, action="QUOTATION_CREATE", resource="quotations",
            meta={"quotation_id": quotation.id, "total": str(calculation.total), "lines": len(calculation.lines)},
        )
        out = _to_out(_load(db, quotation.id))

    logger.info("Quotation %s created by user %s, total %s", out.id, identity.user_id, out.total)
    return out


def update_quotation(db: Session, identity: Identity, quotation_id: int, payload) -> QuotationOut:
    require_role(identity, *SALES_ROLES)
    data = parse_payload(QuotationCreate, payload)

    with atomic(db):
        quotation = db.query(Quotation).filter(Quotation.id == quotation_id).with_for_update().first()
        if quotation is None:
            raise NotFoundError("Quotation not found", context={"quotation_id": quotation_id})

        calculation = calculate_lines(db, data.items)

        quotation.client = data.client or None
        quotation.payment_method = data.payment_method or None
        quotation.total = calculation.total

        # Old lines are discarded and replaced by the fresh computation
        db.query(QuotationLine).filter(QuotationLine.quotation_id == quotation_id).delete(synchronize_session=False)
        db.expire(quotation, ["lines"])
        db.add_all([
            QuotationLine(quotation_id=quotation_id, **line.model_dump())
            for line in calculation.lines
        ])
        db.flush()

        write_log(
            db, user_id=identity.user_id, action="QUOTATION_UPDATE", resource="quotations",
            meta={"quotation_id": quotation_id, "total": str(calculation.total), "lines": len(calculation.lines)},
        )
        db.expire(quotation)
        out = _to_out(_load(db, quotation_id))

    return out


def get_quotation(db: Session, identity: Identity, quotation_id: int) -> QuotationOut:
    require_role(identity, *SALES_ROLES)
    return _to_out(_load(db, quotation_id))


def list_quotations(db: Session, identity: Identity, limit: Optional[int] = None) -> List[QuotationSummary]:
    require_role(identity, *SALES_ROLES)
    rows = (
        db.query(Quotation)
        .options(joinedload(Quotation.seller))
        .order_by(Quotation.created_at.desc(), Quotation.id.desc())
        .limit(limit or settings.QUOTATION_LIST_LIMIT)
        .all()
    )
    return [_to_summary(q) for q in rows]


def delete_quotation(db: Session, identity: Identity, quotation_id: int) -> None:
    require_role(identity, *SALES_ROLES)

    with atomic(db):
        quotation = db.query(Quotation).filter(Quotation.id == quotation_id).first()
        if quotation is None:
            raise NotFoundError("Quotation not found", context={"quotation_id": quotation_id})
        db.delete(quotation)
        write_log(
            db, user_id=identity.user_id, action="QUOTATION_DELETE", resource="quotations",
            meta={"quotation_id": quotation_id},
        )
