"""
JWT Authentication Utilities
Bearer-token verification shared by every router. Tokens are issued by the
account service; this API only trusts the signed `sub` claim.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import jwt as pyjwt
from bson import ObjectId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from athletrack.config import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_EXPIRATION_TIME_HOURS

logger = logging.getLogger(__name__)

# Security
security = HTTPBearer()


def create_access_token(data: dict) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(hours=JWT_EXPIRATION_TIME_HOURS)
    to_encode.update({"exp": expire})
    return pyjwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """Verify JWT token and return payload"""
    try:
        return pyjwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except pyjwt.PyJWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return None


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Verified token payload for the request"""
    payload = verify_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )
    return payload


def get_current_user_id(current_user: dict = Depends(get_current_user)) -> str:
    """Athlete id from the `sub` claim"""
    user_id = str(current_user["sub"])
    if not ObjectId.is_valid(user_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )
    return user_id
