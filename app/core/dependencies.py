"""
Core dependencies for route protection and viewer resolution
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase, get_data_client
from app.modules.auth.service import AuthService
from app.core.errors import sign_in_required
from app.core.session import SessionStore
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_session_store(request: Request) -> SessionStore:
    """Session store created at startup and kept on app.state"""
    store = getattr(request.app.state, "session_store", None)
    if store is None:
        raise RuntimeError("Session store is not initialised; application startup did not run")
    return store


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    data_client: Client = Depends(get_data_client),
    store: SessionStore = Depends(get_session_store)
) -> AuthService:
    return AuthService(supabase, store, data_client)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Dict[str, Any]]:
    """Current user when a bearer token is sent, None for anonymous viewers"""
    if credentials is None:
        return None
    return auth_service.get_current_user(credentials.credentials)


def require_signed_in(
    user_data: Optional[Dict[str, Any]] = Depends(get_optional_user)
) -> Dict[str, Any]:
    """For actions an anonymous viewer may click: answer with the sign-in action instead of mutating"""
    if user_data is None:
        raise sign_in_required()
    return user_data

