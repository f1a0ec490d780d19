"""JWT authentication middleware for FastAPI."""
from fastapi import HTTPException, status, Request
from jose import jwt, JWTError
from pydantic import BaseModel
from typing import Optional

from furnacelog import config


class CurrentUser(BaseModel):
    """User information extracted from JWT."""
    user_id: str
    email: Optional[str] = None


async def get_current_user(
    request: Request
) -> CurrentUser:
    """
    Validate JWT token from Authorization header and extract user information.

    Tokens are issued by the external auth service and signed with AUTH_SECRET.

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    # Skip authentication for OPTIONS requests (preflight CORS requests)
    if request.method == "OPTIONS":
        return CurrentUser(user_id="", email="")

    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_header[7:]

    try:
        payload = jwt.decode(
            token,
            config.AUTH_SECRET,
            algorithms=[config.AUTH_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: str = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(
        user_id=user_id,
        email=payload.get("email")
    )
