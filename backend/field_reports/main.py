import logging
from fastapi import FastAPI
from field_reports.config import settings
from field_reports.middleware.tenant_middleware import TenantMiddleware
from field_reports.api.routes import projects, reports, settings as settings_routes

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Tenant middleware (tenant comes from the authentication gateway)
app.add_middleware(TenantMiddleware)


# Health check route
@app.get("/health")
def health_check():
    """Health check for monitoring"""
    return {"status": "healthy"}


# API routes
app.include_router(projects.router, prefix=f"{settings.API_V1_STR}/projects", tags=["projects"])
app.include_router(reports.router, prefix=f"{settings.API_V1_STR}/projects", tags=["reports"])
app.include_router(settings_routes.router, prefix=f"{settings.API_V1_STR}/settings", tags=["settings"])


@app.on_event("startup")
def startup_event():
    logger.info("[STARTUP] %s started", settings.PROJECT_NAME)
    logger.info("[STARTUP] Environment: %s", settings.ENVIRONMENT)

    # Create database tables automatically
    from field_reports.database import engine
    from field_reports.models import Base
    Base.metadata.create_all(bind=engine)
    logger.info("[STARTUP] Database tables created/verified")
