from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, Request

from helpdesk.db import filters as _filters  # noqa: F401  (register SQLAlchemy filters)
from helpdesk.db.init_db import init_db
from helpdesk.errors import register_error_handlers
from helpdesk.logging_config import configure_app_logging
from helpdesk.routers import auth, departments, equipment, health, notifications, tickets, users
from helpdesk.security.config import load_security_config
from helpdesk.security.dependencies import enforce_security
from helpdesk.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level, settings.log_format)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db()
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: every route goes through the configured security rules.
    app = FastAPI(title="Helpdesk", dependencies=[Depends(enforce_security)], lifespan=lifespan)

    @app.middleware("http")
    async def request_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-Id"] = request_id
            return response
        finally:
            principal = getattr(request.state, "principal", None)
            logger.info(
                "request_complete",
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                    "user_id": principal.user_id if principal is not None else None,
                },
            )

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(departments.router)
    app.include_router(equipment.router)
    app.include_router(tickets.router)
    app.include_router(notifications.router)

    return app


app = create_app()
