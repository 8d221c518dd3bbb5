import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.auth_dependency import ensure_not_in_maintenance
from app.core.config import CORS_ORIGINS, LOG_LEVEL, LOG_DIR, RUN_MIGRATIONS
from app.core.logging_config import setup_logging

# ✅ Import All API Routes
from app.api.routes import (
    health,
    auth,
    onboarding,
    me,
    dashboard,
    cv,
    notifications,
    public_jobs,
    jobs,
    applications,
    subscription,
    billing,
    support,
    admin,
)

setup_logging(LOG_LEVEL, LOG_DIR)
logger = logging.getLogger(__name__)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Selectif API")

# ✅ CORS: only the configured frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Stripe-Signature"],
)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

# Admins, login, billing webhooks and support stay reachable during maintenance
maintenance_gate = [Depends(ensure_not_in_maintenance)]

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(onboarding.router, dependencies=maintenance_gate)
app.include_router(me.router, dependencies=maintenance_gate)
app.include_router(dashboard.router, dependencies=maintenance_gate)
app.include_router(cv.router, dependencies=maintenance_gate)
app.include_router(notifications.router)
# /jobs/public must be registered before /jobs/{job_id}
app.include_router(public_jobs.router, dependencies=maintenance_gate)
app.include_router(jobs.router, dependencies=maintenance_gate)
app.include_router(applications.router, dependencies=maintenance_gate)
app.include_router(subscription.router, dependencies=maintenance_gate)
app.include_router(billing.router)
app.include_router(support.router)
app.include_router(admin.router)


# ============================================
# ✅ DATABASE SETUP
# ============================================

@app.on_event("startup")
def prepare_database():
    if RUN_MIGRATIONS:
        from app.db.migrate import run_migrations
        run_migrations()
    else:
        from app.db.init_db import init_db
        init_db()
    logger.info("Selectif API started")


# ============================================
# ✅ HEALTH CHECK ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "Selectif API running"}
