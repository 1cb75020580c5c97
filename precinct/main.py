from __future__ import annotations

from fastapi import FastAPI, HTTPException

from precinct.api.routers import auth, cases, daily_logs, households, key_populations, nine_small, officers
from precinct.infra.db import check_db_ready
from precinct.infra.errors import register_error_handlers
from precinct.infra.logging import configure_logging

configure_logging()

app = FastAPI(
    title="precinct-records",
    description="Role-gated records API for community policing.",
    version="0.1.0",
)

register_error_handlers(app)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(officers.router, prefix="/api/officers", tags=["officers"])
app.include_router(cases.router, prefix="/api/cases", tags=["cases"])
app.include_router(households.router, prefix="/api/households", tags=["households"])
app.include_router(key_populations.router, prefix="/api/key-populations", tags=["key-populations"])
app.include_router(nine_small.router, prefix="/api/nine-small", tags=["nine-small"])
app.include_router(daily_logs.router, prefix="/api/daily-logs", tags=["daily-logs"])


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> dict[str, object]:
    db_ok = check_db_ready()
    checks = {"db": "ok" if db_ok else "fail"}
    if not db_ok:
        raise HTTPException(
            status_code=503,
            detail={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
