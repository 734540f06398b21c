"""
Authentication Routes

POST /auth/register - Register new user (student or employer)
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
PUT /auth/password - Change password
"""

from fastapi import APIRouter, Depends

from app.core.auth import create_access_token, get_current_user
from app.services import identity_store
from app.schemas.schemas import (
    RegisterRequest, LoginRequest, ChangePasswordRequest, TokenResponse, UserResponse, MessageResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_for(user: dict) -> TokenResponse:
    token = create_access_token({"sub": str(user["user_id"]), "role": user["role"]})
    return TokenResponse(access_token=token, user_id=user["user_id"], role=user["role"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new user account.

    Returns an access token right away, so the client does not need a
    separate login.
    """
    user = identity_store.register(
        name=request.name,
        email=request.email,
        password=request.password,
        user_type=request.user_type,
        phone=request.phone,
    )
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    user = identity_store.authenticate_credentials(request.email, request.password)
    return _token_for(user)


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current user's profile."""
    return identity_store.get_profile(user["user_id"])


@router.put("/password", response_model=MessageResponse)
async def change_password(request: ChangePasswordRequest, user: dict = Depends(get_current_user)):
    identity_store.change_password(user, request.current_password, request.new_password)
    return MessageResponse(message="Password updated successfully")
