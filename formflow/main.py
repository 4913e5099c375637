"""FastAPI application entry point."""
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from formflow.core.config import settings
from formflow.core.logging_config import configure_logging
from formflow.core.structured_logging import build_log_context
from formflow.db.session import engine

configure_logging()
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# ============================================================================
# Sentry (enabled outside dev when SENTRY_DSN is set)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # Respondent answers and emails stay out of Sentry
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from formflow.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="FormFlow API",
    description="Survey builder with conditional questions, invitations, and results",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# slowapi reads the limiter from app.state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Cookies cross origins, so credentials must be allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER, "Content-Disposition"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag every request with an id, echoing the caller's when supplied."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected errors and hide their details from clients."""
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unhandled error",
        extra=build_log_context(request),
    )
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers=headers,
    )


# ============================================================================
# Routers
# ============================================================================

from formflow.routers import auth, forms, invitations, responses, templates

app.include_router(auth.router, prefix="/auth", tags=["auth"])

# Form authoring and live visibility
app.include_router(forms.router)

# Submissions, results, and exports (mixed public and owner-only paths)
app.include_router(responses.router)

app.include_router(invitations.router)
app.include_router(templates.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """Liveness check that also round-trips the database."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
