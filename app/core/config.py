import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # API Config
    API_TITLE: str = "Tienda API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "API REST para la tienda: productos, categorías, carritos, órdenes y reseñas"
    ENV: str = os.getenv("ENV", "production")
    CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000")
    
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql://user:pass@db:5432/tienda")
    
    # Security & JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-change-in-production-PLEASE")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    
    # Roles
    ADMIN_ROLE: str = "administrador"
    DEFAULT_ROLE: str = "cliente"
    
    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    
    # Reseñas
    TOP_REVIEWS_LIMIT: int = 10
    
    class Config:
        env_file = ".env"

settings = Settings()
