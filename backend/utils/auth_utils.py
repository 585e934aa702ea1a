from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

import pytz
from fastapi import Depends, HTTPException, status, Request
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from config import settings


def create_access_token(employee_id: int, role: Optional[str], expires_minutes: Optional[int] = None) -> str:
    """Issue an HS256 token carrying the employee id (`sub`) and role name."""
    expire = datetime.now(pytz.utc) + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(employee_id),
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def get_current_user(request: Request) -> Dict[str, any]:
    """
    FastAPI dependency to validate the JWT from the Authorization header.

    Usage:
        @router.get("/secure-data", dependencies=[Depends(get_current_user)])
        def secure_endpoint():
            return {"message": "This is secure data."}
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
        )

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        payload = jwt.decode(parts[1], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing the subject claim"
        )
    return payload


def require_role(allowed_roles: Iterable[str]):
    """Dependency factory: the token's role must be one of `allowed_roles`."""
    allowed = set(allowed_roles)

    def checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden. You do not have the required permissions to access this resource.",
            )
        return user

    return checker


def get_user_identifier(user: dict) -> Optional[str]:
    """Employee id recorded as created_by / performed_by."""
    if not user:
        return None
    return user.get("sub")
