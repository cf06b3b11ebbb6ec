"""
Admin registration and login
"""
import secrets

from fastapi import APIRouter, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from catalog_etl.api.deps import UserRepoDep
from catalog_etl.core.config import settings
from catalog_etl.core.exceptions import BadRequestError, ConflictError, ForbiddenError, UnauthorizedError
from catalog_etl.core.logging import log
from catalog_etl.core.security import create_access_token, hash_password, verify_password
from catalog_etl.schemas.auth import LoginRequest, LoginResponse, MessageResponse, RegisterRequest, UserSummary

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)

INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, users: UserRepoDep) -> MessageResponse:
    """
    Create an admin account.

    Requires the shared registration key; the password is stored as a bcrypt hash.
    """
    if not payload.email or not payload.password or not payload.key:
        raise BadRequestError("email, password and key are required")

    registration_key = settings.registration_key
    if not registration_key or not secrets.compare_digest(payload.key.encode("utf-8"), registration_key.encode("utf-8")):
        log.warning("Registration rejected: bad key", email=payload.email)
        raise ForbiddenError("Invalid registration key")

    if await users.get_by_email(payload.email):
        raise ConflictError("User already exists")

    await users.create(email=payload.email, password_hash=hash_password(payload.password), role="admin")
    return MessageResponse(message="Admin user registered")


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
async def login(request: Request, payload: LoginRequest, users: UserRepoDep) -> LoginResponse:
    """Exchange email and password for an access token"""
    if not payload.email or not payload.password:
        raise BadRequestError("email and password are required")

    user = await users.get_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        log.info("Login failed", email=payload.email)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    token = create_access_token(str(user.user_id), {"email": user.email, "role": user.role})
    log.info("Login succeeded", user_id=user.user_id)

    return LoginResponse(
        message="Login successful",
        user=UserSummary(user_id=user.user_id, email=user.email, role=user.role),
        access_token=token,
    )
