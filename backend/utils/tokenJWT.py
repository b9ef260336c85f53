# utils/tokenJWT.py
from jose import jwt, JWTError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from config import settings
from utils.errors import AuthError
from utils.permissions import Identity

# Tokens are issued elsewhere; this side only verifies them
bearer_scheme = HTTPBearer(auto_error=False)


def decode_identity(token: str) -> Identity:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthError("Could not validate credentials", status_code=401)

    sub = payload.get("sub")
    # Ensure the subject is a numeric user id
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise AuthError("Could not validate credentials", status_code=401)
    return Identity(user_id=user_id, role=payload.get("role"))


# Resolve the caller identity from the Authorization: Bearer header
def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None:
        raise AuthError("Authentication required", status_code=401)
    return decode_identity(credentials.credentials)
