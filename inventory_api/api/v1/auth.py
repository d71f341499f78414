import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session

from inventory_api.config.database import get_db
from inventory_api.core.auth.service import AuthService
from inventory_api.core.auth.schemas import (
    UserLogin, UserRegister, TokenResponse, UserResponse, ChangePasswordRequest,
    RegisterResponse, UserVerifyResponse, UserListResponse
)
from inventory_api.core.auth.dependencies import get_current_user, get_admin_user
from inventory_api.core.exceptions import AuthenticationError, EmailAlreadyRegistered
from inventory_api.shared.database.models import User

logger = logging.getLogger(__name__)

router = APIRouter()

def _authenticate(db: Session, email: str, password: str) -> TokenResponse:
    """Validar credenciales y emitir token"""
    user = AuthService.authenticate(db, email, password)
    access_token = AuthService.create_user_token(user)

    user.last_login = func.current_timestamp()
    db.commit()
    db.refresh(user)

    logger.info(f"Login realizado: {user.email}")

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db)
):
    """Registrar nuevo usuario"""
    if db.query(User).filter(User.email == user_data.email).first():
        raise EmailAlreadyRegistered("Ya existe un usuario con este email")

    user = User(
        name=user_data.name,
        email=user_data.email,
        password_hash=AuthService.get_password_hash(user_data.password),
        role=user_data.role.value
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Usuario creado: {user.email}")

    return RegisterResponse(
        success=True,
        message="Usuario creado con éxito",
        user=UserResponse.model_validate(user)
    )

@router.post("/login", response_model=TokenResponse)
async def login(
    user_login: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Login con JSON

    **Body:**
    ```json
        {
            "email": "user@example.com",
            "password": "password123"
        }
    ```
    """
    return _authenticate(db, user_login.email, user_login.password)

@router.post("/login-form", response_model=TokenResponse)
async def login_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """Login con formulario OAuth2 (username = email), usado por /docs"""
    return _authenticate(db, form_data.username, form_data.password)

@router.get("/verify", response_model=UserVerifyResponse)
async def verify(current_user: User = Depends(get_current_user)):
    """
    Verificar token y devolver el usuario actual
    **Headers requeridos:**
    - Authorization: Bearer {token}
    """
    return UserVerifyResponse(
        success=True,
        message="Token válido",
        user=UserResponse.model_validate(current_user)
    )

@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """
    Logout (con JWT stateless, solo informativo)

    En el frontend debes eliminar el token del storage.
    """
    logger.info(f"Logout: {current_user.email}")
    return {"success": True, "message": "Logout realizado con éxito"}

@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cambiar la contraseña del usuario actual"""
    if not AuthService.verify_password(request.current_password, current_user.password_hash):
        raise AuthenticationError("Contraseña actual incorrecta")

    current_user.password_hash = AuthService.get_password_hash(request.new_password)
    db.commit()

    logger.info(f"Contraseña actualizada: {current_user.email}")
    return {"success": True, "message": "Contraseña actualizada con éxito"}

@router.get("/users", response_model=UserListResponse)
async def list_users(
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Listar usuarios (solo ADMIN)"""
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return UserListResponse(
        success=True,
        message=f"{len(users)} usuarios",
        users=[UserResponse.model_validate(u) for u in users]
    )
