from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Error de aplicación con código estable para el cliente"""

    default_status = status.HTTP_400_BAD_REQUEST
    error_code = "APP_ERROR"

    def __init__(
        self,
        detail: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            status_code=status_code or self.default_status,
            detail=detail,
            headers=headers,
        )
        self.details = details


# =====================================================
# TAXONOMÍA
# =====================================================

class ValidationError(AppError):
    default_status = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    default_status = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class ConflictError(AppError):
    default_status = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class BusinessRuleViolation(AppError):
    default_status = status.HTTP_400_BAD_REQUEST
    error_code = "BUSINESS_RULE_VIOLATION"


class AuthenticationError(AppError):
    default_status = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_ERROR"

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    default_status = status.HTTP_403_FORBIDDEN
    error_code = "AUTHORIZATION_ERROR"

    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(detail)


# =====================================================
# ERRORES CONCRETOS
# =====================================================

class DuplicateCode(ConflictError):
    # Los endpoints de creación responden 400 ante códigos repetidos
    default_status = status.HTTP_400_BAD_REQUEST
    error_code = "DUPLICATE_CODE"


class EmailAlreadyRegistered(ConflictError):
    error_code = "EMAIL_ALREADY_REGISTERED"


class ProductNotFound(NotFoundError):
    error_code = "PRODUCT_NOT_FOUND"


class CategoryNotFound(NotFoundError):
    error_code = "CATEGORY_NOT_FOUND"


class SaleNotFound(NotFoundError):
    error_code = "SALE_NOT_FOUND"


class ProductInactive(BusinessRuleViolation):
    error_code = "PRODUCT_INACTIVE"


class InsufficientStock(BusinessRuleViolation):
    error_code = "INSUFFICIENT_STOCK"


class InvalidDiscount(BusinessRuleViolation):
    error_code = "INVALID_DISCOUNT"


class AlreadyCancelled(BusinessRuleViolation):
    error_code = "ALREADY_CANCELLED"


class CannotCancelDelivered(BusinessRuleViolation):
    error_code = "CANNOT_CANCEL_DELIVERED"


class InvalidStatus(BusinessRuleViolation):
    error_code = "INVALID_STATUS"


class InvalidStatusTransition(BusinessRuleViolation):
    error_code = "INVALID_STATUS_TRANSITION"


class InvalidCategoryParent(BusinessRuleViolation):
    error_code = "INVALID_CATEGORY_PARENT"
