from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from typing import List, Optional

from inventory_api.config.database import get_db
from inventory_api.core.auth.schemas import TokenPayload
from inventory_api.core.auth.service import AuthService
from inventory_api.core.exceptions import AuthenticationError, AuthorizationError
from inventory_api.shared.database.models import User, UserRole

security = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Obtener usuario actual desde el token"""

    if credentials is None:
        raise AuthenticationError("Token de acceso requerido")

    # Verificar token
    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")

    try:
        token_data = TokenPayload(**payload)
    except PydanticValidationError:
        raise AuthenticationError("Payload del token inválido")

    user = db.query(User).filter(User.id == token_data.id).first()

    if user is None:
        raise AuthenticationError("Usuario no encontrado")

    if not user.is_active:
        raise AuthenticationError("Usuario inactivo")

    return user

def require_roles(allowed_roles: List[str]):
    """Factory para crear dependency que requiere roles específicos"""
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Rol '{current_user.role}' no autorizado. Roles permitidos: {allowed_roles}"
            )
        return current_user
    return role_checker

def get_admin_user(current_user: User = Depends(require_roles([UserRole.ADMIN.value]))):
    """Dependency para administradores"""
    return current_user
