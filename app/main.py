from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from core.config import settings
from core.errors import ServiceError

# Rutas de endpoints importadas
from routes.auth import router as auth_router
from routes.user import router as user_router
from routes.categories import router as categories_router
from routes.products import router as products_router
from routes.carts import router as carts_router
from routes.orders import router as orders_router
from routes.reviews import router as reviews_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

docs_url = "/docs" if settings.ENV == "development" else None
redoc_url = "/redoc" if settings.ENV == "development" else None
openapi_url = "/openapi.json" if settings.ENV == "development" else None

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    docs_url=docs_url,
    redoc_url=redoc_url,
    openapi_url=openapi_url,
    redirect_slashes=False  # Evita redirects 307
)

allow_origins = [origin.strip() for origin in settings.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== EXCEPTION HANDLERS ====================

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """
    Convierte los errores de los servicios al formato estándar.
    """
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Las HTTPException con detail en formato estándar se devuelven sin envolver en "detail".
    """
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {
            "success": False,
            "status_code": exc.status_code,
            "message": str(exc.detail),
            "error": "HTTP_ERROR"
        }
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Maneja errores de validación de Pydantic y los convierte al formato estándar.
    """
    errors = exc.errors()

    error_messages = []
    validation_errors = []

    for error in errors:
        field = " -> ".join(str(loc) for loc in error["loc"][1:])  # Omitir 'body'
        msg = error["msg"]
        error_type = error["type"]

        # Mensajes personalizados según el tipo de error
        if error_type == "missing":
            error_messages.append(f"El campo '{field}' es requerido")
        elif error_type in ("int_parsing", "float_parsing", "int_type", "float_type", "int_from_float"):
            error_messages.append(f"El campo '{field}' debe ser numérico")
        elif error_type.startswith("greater_than"):
            limit = error.get("ctx", {}).get("gt", error.get("ctx", {}).get("ge", ""))
            error_messages.append(f"El campo '{field}' debe ser mayor que {limit}")
        elif error_type.startswith("less_than"):
            limit = error.get("ctx", {}).get("lt", error.get("ctx", {}).get("le", ""))
            error_messages.append(f"El campo '{field}' debe ser menor que {limit}")
        elif error_type == "too_short":
            error_messages.append(f"El campo '{field}' no puede estar vacío")
        elif "email" in error_type.lower():
            error_messages.append(f"El campo '{field}' debe ser un email válido")
        else:
            error_messages.append(f"El campo '{field}': {msg}")

        validation_errors.append({
            "field": field,
            "message": error_messages[-1],
            "type": error_type
        })

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "status_code": 400,
            "message": "Error de validación: " + "; ".join(error_messages),
            "error": "VALIDATION_ERROR",
            "details": validation_errors
        }
    )


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    """
    Cualquier otro error: se registra y se responde 500 sin detalles internos.
    """
    logger.exception(f"Error no controlado en {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "status_code": 500,
            "message": "Error interno del servidor",
            "error": "UNEXPECTED_ERROR"
        }
    )

# Registrar routers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(categories_router)
app.include_router(products_router)
app.include_router(carts_router)
app.include_router(orders_router)
app.include_router(reviews_router)

@app.get("/")
async def root():
    return {
        "message": "Welcome to the Tienda API",
        "version": settings.API_VERSION
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
