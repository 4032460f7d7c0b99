"""
Errores de dominio de los servicios.

Los servicios lanzan estas excepciones; main.py las convierte al formato
estándar de respuesta:

    {"success": False, "status_code": 404, "message": "...", "error": "CART_NOT_FOUND"}
"""
from fastapi import status


class ServiceError(Exception):
    """Error base de los servicios"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "UNEXPECTED_ERROR"

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code

    def to_dict(self) -> dict:
        return {
            "success": False,
            "status_code": self.status_code,
            "message": self.message,
            "error": self.error_code
        }


class ValidationError(ServiceError):
    """Entrada mal formada o incompleta"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class InsufficientStockError(ServiceError):
    """Stock insuficiente; se reporta aparte porque el cliente lo muestra distinto"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "INSUFFICIENT_STOCK"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class NotFoundError(ServiceError):
    """Entidad inexistente o eliminada (tombstone)"""
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class UnexpectedError(ServiceError):
    """Fallo de infraestructura; el estado puede haber quedado parcialmente aplicado"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "UNEXPECTED_ERROR"
