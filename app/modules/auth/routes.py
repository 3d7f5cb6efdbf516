from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    OAuthRequest, OAuthResponse, PasswordUpdateRequest, MeResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_auth_service, get_current_token, get_current_user_id
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user with email and password"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/oauth", response_model=OAuthResponse)
async def oauth_sign_in(
    request: Optional[OAuthRequest] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Start an OAuth sign-in; the client follows the returned URL"""
    request = request or OAuthRequest()
    return service.oauth_url(request.provider, request.redirect_to)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and forget the cached session"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Current user with their profile"""
    session = service.get_viewer_session(token)
    return MeResponse(
        id=session.user["id"],
        email=session.user.get("email"),
        user_metadata=session.user.get("user_metadata") or {},
        profile=session.profile
    )


@router.put("/password", status_code=200)
async def set_password(
    request: PasswordUpdateRequest,
    token: str = Depends(get_current_token),
    current_user: Dict = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service)
):
    """Set or change the caller's password"""
    service.set_password(current_user["id"], request.password)
    # The cached profile still says has_password=false.
    service.store.evict(token)
    return {"message": "Password updated"}
