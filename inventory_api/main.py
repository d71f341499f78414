# inventory_api/main.py
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from inventory_api.config.settings import settings
from inventory_api.config.database import Base, engine
from inventory_api.core.middleware import setup_middleware, setup_exception_handlers
from inventory_api.api.v1.router import api_router
from inventory_api.shared.database import models  # noqa: F401  registra las tablas en Base.metadata

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"{settings.app_name} iniciando - versión {settings.version}")
    logger.info(f"Entorno: {'Development' if settings.debug else 'Production'}")
    logger.info(f"JWT {settings.algorithm}, expiración {settings.access_token_expire_minutes} minutos")
    logger.info(f"Base de datos: {settings.database_url.split('@')[1] if '@' in settings.database_url else settings.database_url}")

    if settings.auto_create_tables:
        Base.metadata.create_all(bind=engine)

    yield

    # Shutdown
    engine.dispose()
    logger.info(f"{settings.app_name} detenida")

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="API de gestión de inventario y ventas",
    docs_url="/docs",
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# Setup middleware
setup_middleware(app)
setup_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix=settings.api_prefix)

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": settings.app_name,
        "version": settings.version,
        "status": "running",
        "environment": "production" if not settings.debug else "development",
        "docs": "/docs",
        "api": settings.api_prefix
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.version,
        "app": settings.app_name,
        "environment": "production" if not settings.debug else "development"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "inventory_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
