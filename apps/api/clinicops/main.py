"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from clinicops.core.config import settings
from clinicops.core.errors import register_exception_handlers
from clinicops.core.rate_limit import limiter
from clinicops.core.structured_logging import RequestIdMiddleware
from clinicops.db.session import engine

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
        send_default_pii=False,  # Patient data never leaves the API
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Clinic Ops API",
    description="Multi-tenant clinic and agency operations API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
register_exception_handlers(app)

app.add_middleware(RequestIdMiddleware)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Internal-Secret"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)

# ============================================================================
# Routers
# ============================================================================

from clinicops.routers import auth, users, patients, leads, deals, workflows, emails  # noqa: E402

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router)
app.include_router(patients.router)

# Public lead form (unauthenticated)
app.include_router(leads.router)

# Pipeline and automation
app.include_router(deals.router)
app.include_router(workflows.router)  # Trigger endpoint accepts X-Internal-Secret
app.include_router(emails.router)

# People: leave, calendar, tasks
from clinicops.routers import leaves, team_events, tasks  # noqa: E402
app.include_router(leaves.router)
app.include_router(team_events.router)
app.include_router(tasks.router)

# AI endpoints (canned fallbacks when the provider fails)
from clinicops.routers import ai  # noqa: E402
app.include_router(ai.router)

# Projects, invoices, marketing
from clinicops.routers import projects, invoices, marketing, public_reports  # noqa: E402
app.include_router(projects.router)
app.include_router(invoices.router)
app.include_router(marketing.router)
app.include_router(public_reports.router)

# Client accounts and statements of account
from clinicops.routers import accounts  # noqa: E402
app.include_router(accounts.router)

# Team chat
from clinicops.routers import (  # noqa: E402
    dischat_dm,
    dischat_invites,
    dischat_messages,
    dischat_servers,
)
app.include_router(dischat_servers.router)
app.include_router(dischat_messages.router)
app.include_router(dischat_dm.router)
app.include_router(dischat_invites.router)

# Support widget
from clinicops.routers import support  # noqa: E402
app.include_router(support.router)


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
