"""
Auth package for JWT bearer authentication
"""

from .jwt_auth import (
    get_current_user,
    get_current_user_id,
    create_access_token,
    verify_token
)

__all__ = [
    "get_current_user",
    "get_current_user_id",
    "create_access_token",
    "verify_token"
]
