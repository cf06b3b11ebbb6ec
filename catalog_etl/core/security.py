"""
Security utilities: admin API key check, password hashing and access tokens
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Security
from fastapi.security.api_key import APIKeyHeader
from jose import jwt

from catalog_etl.core.config import settings
from catalog_etl.core.exceptions import UnauthorizedError
from catalog_etl.core.logging import log

# API Key authentication for admin endpoints
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_admin_api_key(api_key: Optional[str] = Security(api_key_header)) -> bool:
    """
    Verify the admin API key for protected endpoints.
    The check is off when no ADMIN_API_KEY is configured.
    """
    admin_api_key = settings.admin_api_key
    if not admin_api_key:
        return True

    if not api_key:
        raise UnauthorizedError("API key required for admin endpoints", headers={"WWW-Authenticate": "ApiKey"})

    if not secrets.compare_digest(api_key.encode("utf-8"), admin_api_key.encode("utf-8")):
        log.warning(f"Invalid API key attempt: {api_key[:4]}...")
        raise UnauthorizedError("Invalid API key", headers={"WWW-Authenticate": "ApiKey"})

    return True


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(subject: str, claims: Optional[Dict[str, Any]] = None, expires_minutes: Optional[int] = None) -> str:
    """Sign a JWT access token for the given subject"""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    payload = {"sub": subject, "exp": expire, "type": "access"}
    if claims:
        payload.update(claims)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
