from datetime import datetime, timedelta
from typing import Optional
import logging

from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from inventory_api.config.settings import settings
from inventory_api.core.exceptions import AuthenticationError
from inventory_api.shared.database.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds
)

def _truncate(password: str) -> str:
    # bcrypt solo considera los primeros 72 bytes
    return password.encode('utf-8')[:72].decode('utf-8', 'ignore')

class AuthService:
    """Hash de contraseñas y tokens JWT"""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        try:
            return pwd_context.verify(_truncate(plain_password), hashed_password)
        except ValueError as e:
            logger.warning(f"Hash de contraseña inválido: {e}")
            return False

    @staticmethod
    def get_password_hash(password: str) -> str:
        return pwd_context.hash(_truncate(password))

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """
        Firmar un token con `data` + exp.

        El payload debe incluir `id`; la expiración por defecto es
        `access_token_expire_minutes` (24 horas).
        """
        if "id" not in data:
            raise ValueError("id es requerido en el token")

        expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
        to_encode = {**data, "exp": expire}

        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def create_user_token(user: User) -> str:
        return AuthService.create_access_token(data={
            "id": user.id,
            "email": user.email,
            "role": user.role
        })

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        """Payload decodificado, o None si la firma o la expiración no son válidas"""
        try:
            return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError:
            return None

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        """
        Validar credenciales.

        Raises:
            AuthenticationError: email desconocido, contraseña incorrecta o usuario inactivo
        """
        user = db.query(User).filter(User.email == email).first()

        if not user or not AuthService.verify_password(password, user.password_hash):
            logger.info(f"Login fallido: {email}")
            raise AuthenticationError("Email o contraseña incorrectos")

        if not user.is_active:
            raise AuthenticationError("Usuario inactivo")

        return user
