import os
import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status

logger = logging.getLogger(__name__)


def _decode_token(raw_token: str) -> dict:
    """
    Verify a session token from the identity provider.

    AUTH_JWT_KEY holds the provider's verification key (PEM public key for
    RS256, shared secret for HS*).
    """
    key = os.getenv("AUTH_JWT_KEY")
    if not key:
        logger.error("AUTH_JWT_KEY not found in environment variables")
        raise HTTPException(status_code=500, detail="Authentication is not configured")

    algorithms = [a.strip() for a in os.getenv("AUTH_JWT_ALGORITHMS", "RS256").split(",") if a.strip()]
    issuer = os.getenv("AUTH_JWT_ISSUER") or None
    return jwt.decode(
        raw_token,
        key,
        algorithms=algorithms,
        issuer=issuer,
        options={"require": ["sub", "exp"], "verify_iss": issuer is not None},
    )


async def get_current_user(request: Request) -> dict:
    """
    Authenticate the request from its bearer token.

    Returns {"userId": ..., "userType": ...}; userType comes from the
    token's public metadata and is None when the provider did not set it.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = _decode_token(auth_header[7:].strip())
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token rejected: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    metadata = claims.get("metadata") or {}
    user_type: Optional[str] = metadata.get("userType") if isinstance(metadata, dict) else None
    return {"userId": claims["sub"], "userType": user_type}


def require_same_user(user_id: str, current_user: dict = Depends(get_current_user)) -> dict:
    """Only let users act on their own records."""
    if current_user["userId"] != user_id:
        logger.warning(f"Access denied: user {current_user['userId']} acting on user {user_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return current_user
