from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List


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
    message: str


class OAuthUrlResponse(BaseModel):
    provider: str
    url: str


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: dict = {}
    profile: Optional[dict] = None
    capabilities: List[str] = []
