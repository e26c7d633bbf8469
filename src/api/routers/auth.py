"""Registration, login, and current-user endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_auth_service, get_current_user, get_settings
from core.config import Settings
from schemas.user import TokenResponse, UserLogin, UserRegister, UserResponse
from services import token_service
from services.auth_service import AuthService
from services.exceptions import DuplicateEmailError, InvalidCredentialsError
from services.records import UserRecord

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    data: UserRegister,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Register a user and return a bearer token for them."""
    try:
        user = await auth_service.register(data)
    except DuplicateEmailError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )
    return TokenResponse(token=token_service.issue_token(user.id, settings))


@router.post("/login", response_model=TokenResponse)
async def login(
    data: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """
    Exchange email and password for a bearer token.

    Unknown email and wrong password produce the same response.
    """
    try:
        user = await auth_service.authenticate(data)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials",
        )
    return TokenResponse(token=token_service.issue_token(user.id, settings))


@router.get("/user", response_model=UserResponse)
async def get_user(current_user: UserRecord = Depends(get_current_user)) -> UserRecord:
    """Get the current authenticated user's info (without credentials)."""
    return current_user
