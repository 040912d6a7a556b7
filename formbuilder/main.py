"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from formbuilder.core.config import settings
from formbuilder.core.exceptions import FormBuilderError, PersistenceError
from formbuilder.db.session import engine

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
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
        send_default_pii=False,
    )
    logger.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from formbuilder.core.rate_limit import limiter

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Form Builder API",
    description="Dynamic forms, submissions and payment-gated submissions",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "userid"],
)


@app.exception_handler(FormBuilderError)
async def form_builder_error_handler(request: Request, exc: FormBuilderError):
    payload = exc.to_dict()
    if isinstance(exc, PersistenceError):
        payload = {"detail": PersistenceError.default_message, "code": exc.code}
    return JSONResponse(status_code=exc.status_code, content=payload)


# ============================================================================
# Routers
# ============================================================================

from formbuilder.routers import (
    auth,
    columns,
    form_details,
    form_values,
    forms,
    forms_public,
    options,
    payments,
    registration,
    validations,
)

app.include_router(auth.router)
app.include_router(forms_public.router)
app.include_router(forms.router)
app.include_router(columns.router)
app.include_router(form_details.router)
app.include_router(options.router)
app.include_router(validations.router)
app.include_router(registration.router)
app.include_router(form_values.router)
app.include_router(payments.router)

# Locally stored uploads are served under PUBLIC_UPLOADS_PREFIX
if settings.STORAGE_BACKEND == "local":
    app.mount(
        settings.PUBLIC_UPLOADS_PREFIX,
        StaticFiles(directory=settings.LOCAL_STORAGE_PATH, check_dir=False),
        name="uploads",
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
