from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from field_reports.core.tenant_context import set_current_tenant_id, clear_current_tenant_id


class TenantMiddleware(BaseHTTPMiddleware):
    """
    Middleware that identifies the tenant of EVERY API request
    and sets up the context for data isolation

    Flow:
    1. The authentication gateway in front of this service validates the
       user and forwards the tenant in the X-Tenant-ID header
    2. The header is copied to request.state
    3. tenant_id is set in the ContextVar for global access

    IMPORTANT: requests to /api/ without a valid tenant are rejected here,
    so no route ever runs without a tenant
    """

    TENANT_HEADER = "X-Tenant-ID"

    # Public routes that do NOT need a tenant
    PUBLIC_PATHS = [
        "/",
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/api/v1/openapi.json",
    ]

    async def dispatch(self, request: Request, call_next):
        """
        Runs before every request reaches the routes
        """
        path = request.url.path

        # CORS preflight and public routes pass through
        if request.method == "OPTIONS" or path in self.PUBLIC_PATHS or not path.startswith("/api/"):
            clear_current_tenant_id()
            return await call_next(request)

        raw_tenant = request.headers.get(self.TENANT_HEADER, "").strip()
        if not raw_tenant.isdigit():
            return JSONResponse(
                status_code=401,
                content={"detail": "Tenant not identified"}
            )

        tenant_id = int(raw_tenant)
        request.state.tenant_id = tenant_id
        set_current_tenant_id(tenant_id)

        try:
            response = await call_next(request)
        finally:
            # Clear the context after the request
            clear_current_tenant_id()

        return response
