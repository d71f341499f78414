from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from inventory_api.shared.database.models import UserRole
from inventory_api.shared.schemas.common import BaseResponse

class UserLogin(BaseModel):
    """Schema para login de usuario"""
    email: str = Field(..., description="Email del usuario")
    password: str = Field(..., min_length=1, description="Contraseña del usuario")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "admin@inventory.com",
                "password": "admin123"
            }
        }

class UserRegister(BaseModel):
    """Schema para registro de usuario"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, description="Mínimo 6 caracteres")
    role: UserRole = UserRole.USER

class UserResponse(BaseModel):
    """Schema para respuesta de usuario"""
    id: int
    name: str
    email: str
    role: str
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    """Schema para respuesta de token"""
    success: bool = True
    message: str = "Login realizado con éxito"
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class TokenPayload(BaseModel):
    """Schema para payload del token"""
    id: int
    email: str
    role: str
    exp: Optional[datetime] = None

class ChangePasswordRequest(BaseModel):
    """Schema para cambio de contraseña"""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)

class RegisterResponse(BaseResponse):
    user: UserResponse

class UserVerifyResponse(BaseResponse):
    user: UserResponse

class UserListResponse(BaseResponse):
    users: List[UserResponse]
