# app/main.py - Grow tracking API (async SQLAlchemy)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Dict, Any
import time

from app.core import config
from app.core.database import engine, create_db_and_tables

app = FastAPI(title="GrowFlow Server")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from app.routers import (
    plants_router, phases_router, events_router, event_types_router, strains_router, websocket_router
)
app.include_router(plants_router)
app.include_router(phases_router)
app.include_router(events_router)
app.include_router(event_types_router)
app.include_router(strains_router)
app.include_router(websocket_router)


if config.DEBUG:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        print(f"[HTTP] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response


@app.get("/api/health", response_model=Dict[str, Any])
async def health():
    return {
        "status": "ok",
        "home_assistant": config.HOME_ASSISTANT_ENABLED,
    }


@app.on_event("startup")
async def on_startup():
    await create_db_and_tables()
    print("[STARTUP] Tables created or already exist.")
    if config.HOME_ASSISTANT_ENABLED:
        print(f"[STARTUP] Publishing phase state to Home Assistant at {config.HOME_ASSISTANT_URL}")
    else:
        print("[STARTUP] Home Assistant not configured, websocket notifications only")


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=9000, reload=True)
