"""
Authentication Router - Signup, login, logout and the current user
"""
from fastapi import APIRouter, Depends
from models import UserCreate, UserLogin, UserResponse
from dependencies import (
    get_current_user, hash_password, verify_password, create_token,
    user_repository,
)
from utils.debug import log_auth_event
from utils.errors import AlreadyExistsError, InvalidCredentialsError, InvalidTokenError
from utils.responses import success_response
import asyncpg
import uuid
from datetime import datetime, timezone

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", status_code=201)
async def signup(user: UserCreate):
    if await user_repository.email_exists(user.email):
        log_auth_event("SIGNUP", email=user.email, success=False, reason="duplicate_email")
        raise AlreadyExistsError("User with this email already exists", "User")

    user_doc = {
        "id": str(uuid.uuid4()),
        "name": user.name,
        "email": user.email,
        "password": hash_password(user.password),
        "token_version": 1,
        "created_at": datetime.now(timezone.utc)
    }
    try:
        created = await user_repository.create(user_doc)
    except asyncpg.UniqueViolationError:
        # Lost a race with a concurrent signup for the same email
        raise AlreadyExistsError("User with this email already exists", "User")

    token = create_token(created["id"], created["token_version"])
    log_auth_event("SIGNUP", user_id=created["id"], email=user.email)

    return success_response(
        {"user": UserResponse(**created).model_dump(), "token": token},
        "User created successfully"
    )


@router.post("/login")
async def login(credentials: UserLogin):
    user = await user_repository.find_by_email(credentials.email, include_password=True)
    if not user or not verify_password(credentials.password, user["password"]):
        log_auth_event("LOGIN_FAILED", email=credentials.email, success=False, reason="invalid_credentials")
        raise InvalidCredentialsError()

    # A new version revokes whatever token the user held before
    token_version = await user_repository.bump_token_version(user["id"])
    if token_version is None:
        raise InvalidCredentialsError()
    token = create_token(user["id"], token_version)
    log_auth_event("LOGIN", user_id=user["id"], email=credentials.email)

    return success_response(
        {"user": UserResponse(**user).model_dump(exclude={"created_at"}), "token": token},
        "Login successful"
    )


@router.post("/logout")
async def logout(user: dict = Depends(get_current_user)):
    if await user_repository.bump_token_version(user["id"]) is None:
        raise InvalidTokenError("Invalid token")
    log_auth_event("LOGOUT", user_id=user["id"])
    return success_response(message="Logout successful")


@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    return success_response({"user": UserResponse(**user).model_dump()})
