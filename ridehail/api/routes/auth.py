"""
Account endpoints
=================

POST /auth/signup -- create a passenger or driver account (201)
POST /auth/login  -- exchange email + password for a session token
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_db
from ridehail.api.middleware import RATE_LIMIT, limiter
from ridehail.api.schemas import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    UserResponse,
)
from ridehail.config import settings
from ridehail.domain.errors import AccountExists, AuthenticationError
from ridehail.infrastructure.repositories import UserRepository
from ridehail.infrastructure.security import (
    create_session_token,
    hash_password,
    verify_password,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=SignupResponse,
    summary="Create a new user account",
    responses={
        400: {"model": ErrorResponse, "description": "Validation failed or user already exists"}
    },
)
@limiter.limit(RATE_LIMIT)
async def signup(
    request: Request,
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    users = UserRepository(db)
    email = body.email.lower()

    if await users.get_by_email(email):
        raise AccountExists("User already exists with this email")
    if await users.get_by_phone(body.phone_number):
        raise AccountExists("User already exists with this phone number")

    user = await users.create_user(
        name=body.name,
        email=email,
        phone=body.phone_number,
        password_hash=hash_password(body.password),
        role=body.role,
    )
    return SignupResponse(
        message="User created successfully", user=UserResponse.model_validate(user)
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in and receive a session token",
    description=(
        "The token is returned in the body and also set as an http-only "
        "cookie; send it back as ``Authorization: Bearer <token>`` or rely "
        "on the cookie."
    ),
    responses={401: {"model": ErrorResponse, "description": "Invalid email or password"}},
)
@limiter.limit(RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await UserRepository(db).get_by_email(body.email.lower())
    if user is None or not verify_password(body.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    token = create_session_token(user.id, user.role.value)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(
        message="Logged in successfully",
        access_token=token,
        user=UserResponse.model_validate(user),
    )
