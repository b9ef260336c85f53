# backend/utils/transaction.py
import logging
from contextlib import contextmanager
from typing import Any, Type, TypeVar

import pydantic
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from utils.errors import InternalError, ServiceError, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


@contextmanager
def atomic(db: Session):
    """Run the enclosed block as one unit of work.

    Commits when the block finishes; any error rolls the whole transaction
    back before it propagates, so no partial write is ever visible.
    Persistence failures are re-raised as ``InternalError``.
    """
    try:
        yield db
        db.commit()
    except ServiceError as exc:
        db.rollback()
        logger.warning("Transaction rolled back (%s): %s", exc.kind, exc.message)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Persistence failure, transaction rolled back")
        raise InternalError("Database error", context={"error": exc.__class__.__name__}) from exc
    except Exception:
        db.rollback()
        raise


def parse_payload(model: Type[ModelT], data: Any) -> ModelT:
    """Validate loosely typed input into ``model`` or fail with ValidationError."""
    if isinstance(data, model):
        return data
    if isinstance(data, pydantic.BaseModel):
        data = data.model_dump()
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        raise ValidationError(f"Invalid {model.__name__} payload", context={"errors": errors}) from exc
