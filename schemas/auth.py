"""
Schemas Pydantic para autenticación
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=1, max_length=72)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # segundos


class TokenData(BaseModel):
    username: Optional[str] = None
    user_id: Optional[int] = None


class AuthenticatedUser(BaseModel):
    """Identidad verificada que queda asociada al request"""
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)
