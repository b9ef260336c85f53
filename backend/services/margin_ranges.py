# backend/services/margin_ranges.py
"""Margin ranges: purchase-price intervals mapped to a markup percentage.

Intervals are closed on both ends and must never overlap; a range whose
``min`` equals another range's ``max`` is a conflict, not an adjacency.
The overlap check runs inside the same transaction as the write.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, List, Optional

from sqlalchemy import or_, text
from sqlalchemy.orm import Session

from models.margin_range import MarginRange
from schemas.margin_range import MarginRangeIn, MarginRangeOut
from utils.audit import write_log
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.permissions import Identity, SALES_ROLES, require_role
from utils.transaction import atomic, parse_payload

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# (purchase_price, percentage) -> sale_price
PricingStrategy = Callable[[Decimal, Decimal], Decimal]


def as_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def percentage_markup(purchase_price: Decimal, percentage: Decimal) -> Decimal:
    return as_money(purchase_price * (Decimal("1") + Decimal(percentage) / Decimal("100")))


def _to_out(margin_range: MarginRange) -> MarginRangeOut:
    return MarginRangeOut(
        id=margin_range.id,
        min=margin_range.min_value,
        max=margin_range.max_value,
        percentage=margin_range.percentage,
    )


def _parse_price(value) -> Decimal:
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Purchase price must be a number", context={"purchase_price": str(value)})
    if not price.is_finite() or price < 0:
        raise ValidationError("Purchase price must be a non-negative number", context={"purchase_price": str(value)})
    return price


def find_range(db: Session, price: Decimal) -> Optional[MarginRange]:
    return (
        db.query(MarginRange)
        .filter(MarginRange.min_value <= price)
        .filter(or_(MarginRange.max_value.is_(None), MarginRange.max_value >= price))
        .order_by(MarginRange.min_value.asc())
        .first()
    )


def resolve_sale_price(db: Session, purchase_price, strategy: PricingStrategy = percentage_markup) -> Decimal:
    """Map a purchase price to a sale price through the covering margin range.

    A price that no range covers is a configuration gap and fails with
    ``NotFoundError`` rather than falling back to a default markup.
    """
    price = _parse_price(purchase_price)
    margin_range = find_range(db, price)
    if margin_range is None:
        raise NotFoundError(
            "No margin range covers this purchase price",
            context={"purchase_price": str(price)},
        )
    return strategy(price, Decimal(margin_range.percentage))


def _lock_ranges(db: Session) -> None:
    # SQLite already holds the database write lock (BEGIN IMMEDIATE); on
    # PostgreSQL block concurrent range writers until this transaction ends.
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text("LOCK TABLE margin_ranges IN SHARE ROW EXCLUSIVE MODE"))


def _overlapping(db: Session, lower: Decimal, upper: Optional[Decimal], exclude_id: Optional[int] = None) -> List[MarginRange]:
    query = db.query(MarginRange).filter(
        or_(MarginRange.max_value.is_(None), MarginRange.max_value >= lower)
    )
    if upper is not None:
        query = query.filter(MarginRange.min_value <= upper)
    if exclude_id is not None:
        query = query.filter(MarginRange.id != exclude_id)
    return query.order_by(MarginRange.min_value.asc()).all()


def _reject_overlap(db: Session, data: MarginRangeIn, exclude_id: Optional[int] = None) -> None:
    clashes = _overlapping(db, data.min, data.max, exclude_id=exclude_id)
    if clashes:
        raise ConflictError(
            "Margin range overlaps an existing range",
            context={
                "min": str(data.min),
                "max": None if data.max is None else str(data.max),
                "overlaps": [c.id for c in clashes],
            },
        )


def list_margin_ranges(db: Session) -> List[MarginRangeOut]:
    ranges = db.query(MarginRange).order_by(MarginRange.min_value.asc(), MarginRange.id.asc()).all()
    return [_to_out(r) for r in ranges]


def create_margin_range(db: Session, identity: Identity, payload) -> MarginRangeOut:
    require_role(identity, *SALES_ROLES)
    data = parse_payload(MarginRangeIn, payload)

    with atomic(db):
        _lock_ranges(db)
        _reject_overlap(db, data)

        margin_range = MarginRange(min_value=data.min, max_value=data.max, percentage=data.percentage)
        db.add(margin_range)
        db.flush()

        write_log(
            db, user_id=identity.user_id, action="MARGIN_RANGE_CREATE", resource="margin_ranges",
            meta={"id": margin_range.id},
        )
        out = _to_out(margin_range)

    logger.info("Margin range %s created [%s, %s] -> %s%%", out.id, out.min, out.max, out.percentage)
    return out


def update_margin_range(db: Session, identity: Identity, range_id: int, payload) -> MarginRangeOut:
    require_role(identity, *SALES_ROLES)
    data = parse_payload(MarginRangeIn, payload)

    with atomic(db):
        _lock_ranges(db)
        margin_range = db.query(MarginRange).filter(MarginRange.id == range_id).first()
        if margin_range is None:
            raise NotFoundError("Margin range not found", context={"range_id": range_id})

        _reject_overlap(db, data, exclude_id=range_id)

        margin_range.min_value = data.min
        margin_range.max_value = data.max
        margin_range.percentage = data.percentage
        db.flush()

        write_log(
            db, user_id=identity.user_id, action="MARGIN_RANGE_UPDATE", resource="margin_ranges",
            meta={"id": range_id},
        )
        out = _to_out(margin_range)

    return out


def delete_margin_range(db: Session, identity: Identity, range_id: int) -> None:
    # No coverage check: prices only covered by this range stop resolving
    require_role(identity, *SALES_ROLES)

    with atomic(db):
        margin_range = db.query(MarginRange).filter(MarginRange.id == range_id).first()
        if margin_range is None:
            raise NotFoundError("Margin range not found", context={"range_id": range_id})
        db.delete(margin_range)
        write_log(
            db, user_id=identity.user_id, action="MARGIN_RANGE_DELETE", resource="margin_ranges",
            meta={"id": range_id},
        )
