# backend/utils/errors.py
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class of every error the core surfaces to its caller.

    Carries a machine-readable ``kind``, a human message and a ``context``
    dict with the offending identifiers/values. Transport layers render it
    as ``{"kind", "message", "context"}``.
    """

    kind = "internal"
    status_code = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "context": self.context}


# Malformed or missing input, detected before a transaction is opened
class ValidationError(ServiceError):
    kind = "validation"
    status_code = 400


class NotFoundError(ServiceError):
    kind = "not_found"
    status_code = 404


# Inactive product, insufficient stock, overlapping range, duplicate code
class ConflictError(ServiceError):
    kind = "conflict"
    status_code = 409


# 401 when no identity was supplied, 403 when the role is not allowed
class AuthError(ServiceError):
    kind = "auth"
    status_code = 403


class InternalError(ServiceError):
    kind = "internal"
    status_code = 500
