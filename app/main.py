import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from app.api import pages
from app.api.v1 import admin as admin_routes
from app.api.v1 import auth as auth_routes
from app.api.v1 import csp_report as csp_report_routes
from app.api.v1 import csrf as csrf_routes
from app.api.v1 import health as health_routes
from app.api.v1 import leads as leads_routes
from app.api.v1 import staff as staff_routes
from app.core.config import settings
from app.monitoring.tracing.correlation import CorrelationIdMiddleware
from app.security.audit.access_logger import AccessLogMiddleware
from app.security.headers.middleware import SecurityHeadersMiddleware
from app.security.pipeline import SitePolicyMiddleware
from app.security.rate_limit.middleware import RateLimitHeadersMiddleware
from app.security.rate_limit.service import rate_limiter
from app.utils.error_handler import ErrorHandlingMiddleware, register_exception_handlers
from app.utils.logger import configure_logging, get_logger

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "Marketing site backend: lead capture, accounts and the request "
        "security pipeline"
    ),
    version="1.0.0",
)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.APP_ENV,
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    app.add_middleware(SentryAsgiMiddleware)
    logger.info("sentry_initialized", environment=settings.APP_ENV)
else:
    logger.info("sentry_not_configured")

allowed_origins = settings.CORS_ALLOW_ORIGINS or [settings.PUBLIC_URL]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-CSRF-Token", "X-Request-ID"],
    expose_headers=[
        "X-RateLimit-Limit",
        "X-RateLimit-Remaining",
        "X-RateLimit-Reset",
        "Retry-After",
        "X-Request-ID",
    ],
)

# Innermost first: later middlewares wrap the earlier ones
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(RateLimitHeadersMiddleware)
app.add_middleware(SitePolicyMiddleware)
if settings.ENABLE_SECURITY_HEADERS:
    app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AccessLogMiddleware)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(health_routes.router, prefix="/api")
app.include_router(csrf_routes.router, prefix="/api")
app.include_router(csp_report_routes.router, prefix="/api")
app.include_router(auth_routes.router, prefix="/api")
app.include_router(leads_routes.router, prefix="/api")
app.include_router(staff_routes.router, prefix="/api")
app.include_router(admin_routes.router, prefix="/api")
app.include_router(pages.router)

instrumentator = Instrumentator(
    should_group_status_codes=False,
    excluded_handlers=["/metrics"],
)
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.on_event("startup")
async def startup_event():
    logger.info(
        "application_startup",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        sentry_enabled=bool(settings.SENTRY_DSN),
        security_headers=settings.ENABLE_SECURITY_HEADERS,
        redis_rate_limit=settings.RATE_LIMIT_REDIS_ENABLED,
    )


@app.on_event("shutdown")
async def shutdown_event():
    await rate_limiter.close()
    logger.info("application_shutdown")


@app.get("/health", include_in_schema=False)
async def liveness() -> dict:
    """Unthrottled liveness check for the orchestrator."""
    return {"status": "ok"}


if settings.ENABLE_DEBUG_ENDPOINTS:

    @app.get("/debug-sentry", include_in_schema=False)
    async def debug_sentry():
        """Raise on purpose to verify Sentry reporting (development only)."""
        logger.warning("debug_sentry_called")
        raise Exception("This is a test exception for Sentry")
