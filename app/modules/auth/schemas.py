from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any
from app.modules.profiles.schemas import ProfileResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    confirmation_required: bool = False
    message: str


class OAuthRequest(BaseModel):
    provider: Optional[str] = None
    redirect_to: Optional[str] = None


class OAuthResponse(BaseModel):
    provider: str
    url: str


class PasswordUpdateRequest(BaseModel):
    password: str = Field(min_length=6)


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    profile: Optional[ProfileResponse] = None
