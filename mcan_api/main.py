"""MCAN National API – FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from mcan_api.config import get_settings
from mcan_api.database import Base, SessionLocal, engine
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from mcan_api.models import User, EIDCard, Property, AuditLog  # noqa: F401
from mcan_api.responses import ok, register_exception_handlers
from mcan_api.routers import admin, auth, dashboard, eid, members, properties, users
from mcan_api.seed import seed_super_admin
from mcan_api.services.notifications import mail_configured

log = logging.getLogger("uvicorn.error")

settings = get_settings()
app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for module in (auth, eid, members, admin, users, properties, dashboard):
    app.include_router(module.router, prefix=settings.api_prefix)


@app.on_event("startup")
def startup():
    if mail_configured():
        log.info("[Mailgun] Using domain=%s from=%s", settings.mailgun_domain, settings.mailgun_from_email)
    else:
        log.warning("[Mailgun] Not configured - verification and reset emails will be skipped; set MAILGUN_API_KEY and MAILGUN_DOMAIN")
    try:
        Base.metadata.create_all(bind=engine)
        if settings.super_admin_seed_enabled:
            db = SessionLocal()
            try:
                seed_super_admin(db)
            finally:
                db.close()
    except SQLAlchemyError as e:
        log.warning("Database startup failed (tables/seed skipped). Check DATABASE_URL and network. Error: %s", e)


@app.get("/")
def root():
    return ok(f"{settings.app_name} is running", {"version": settings.app_version, "docs": "/docs"})


@app.get("/health")
def health():
    return ok("Service healthy", {"status": "healthy", "environment": settings.app_env})
