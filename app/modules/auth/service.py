from supabase import Client
from app.modules.auth.models import METADATA_FULL_NAME, METADATA_HAS_PASSWORD
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, OAuthResponse
)
from app.modules.profiles.service import ProfileService
from app.config.settings import settings
from app.core.session import SessionStore, ViewerSession
from app.core.errors import remote_failure
from fastapi import HTTPException
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client, store: SessionStore, data_client: Optional[Client] = None):
        self.supabase = supabase
        self.store = store
        self.data_client = data_client or supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        try:
            user_metadata = {METADATA_HAS_PASSWORD: True}
            if register_data.full_name:
                user_metadata[METADATA_FULL_NAME] = register_data.full_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata,
                    "email_redirect_to": settings.oauth_redirect_url
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            confirmation_required = auth_response.session is None
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                confirmation_required=confirmation_required,
                message="Check your email to confirm your account" if confirmation_required
                else "User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            logger.error(f"Registration failed for {register_data.email}: {error_message}")
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=400, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user with email and password"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            logger.warning(f"Login failed for {login_data.email}: {error_message}")
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=401, detail=f"Login failed: {error_message}")

    def oauth_url(self, provider: Optional[str] = None, redirect_to: Optional[str] = None) -> OAuthResponse:
        """Build the identity provider redirect URL for an OAuth sign-in"""
        provider = provider or settings.oauth_provider
        try:
            response = self.supabase.auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": redirect_to or settings.oauth_redirect_url}
            })
        except Exception as e:
            raise remote_failure("start the sign-in", e)
        return OAuthResponse(provider=provider, url=response.url)

    def get_viewer_session(self, token: str) -> ViewerSession:
        """Resolve a bearer token to the session/user/profile triple. Cached in the session store."""
        cached = self.store.get(token)
        if cached is not None:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        profile = ProfileService(self.data_client).find_profile(user.id)
        return self.store.put(token, user_data, profile)

    def get_current_user(self, token: str) -> Dict[str, Any]:
        return self.get_viewer_session(token).user

    def logout(self, token: str) -> bool:
        """Logout the caller only; the JWT itself stays valid until it expires"""
        self.store.evict(token)
        try:
            self.data_client.auth.admin.sign_out(token, scope="local")
            return True
        except Exception as e:
            logger.warning(f"Sign-out call failed: {e}")
            return False

    def set_password(self, user_id: str, password: str) -> None:
        """Set a password for the user (OAuth accounts start without one). Requires service role key."""
        if not settings.supabase_service_role_key:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot update passwords."
            )
        try:
            response = self.data_client.auth.admin.update_user_by_id(user_id, {"password": password})
        except Exception as e:
            raise remote_failure("update the password", e)
        if not response.user:
            raise HTTPException(status_code=404, detail="User not found")
        ProfileService(self.data_client).mark_has_password(user_id)
        logger.info(f"Password set for user {user_id}")
