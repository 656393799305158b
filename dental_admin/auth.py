"""Authentication utilities"""

from typing import Optional
from fastapi import HTTPException, Header
from dental_admin.config import settings


async def verify_api_key(x_api_key: Optional[str] = Header(None)) -> str:
    """Verify API key from header"""
    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required"
        )

    valid_keys = settings.get_api_keys()
    if x_api_key not in valid_keys:
        raise HTTPException(
            status_code=401,
            detail="Invalid API key"
        )

    return x_api_key


async def get_current_user(x_user_id: Optional[str] = Header(None)) -> str:
    """Identify the administrator for audit fields (createdBy, lastModifiedBy)"""
    return x_user_id or settings.default_user_id
