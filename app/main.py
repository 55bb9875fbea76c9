"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from app.config import get_settings
from app.db import close_db, init_db
from app.player import clear_sessions


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    settings = get_settings()
    await init_db()
    print(f"[startup] DB ready at {settings.db_abs_path}")
    print(f"[startup] Preview limit {settings.preview_limit_seconds:.0f}s")
    yield
    clear_sessions()
    await close_db()
    print("[shutdown] Player sessions closed, DB closed")


app = FastAPI(
    title="beatstore",
    version="0.1.0",
    lifespan=lifespan,
)

# Session middleware (signed cookie — stores the listener id).
app.add_middleware(SessionMiddleware, secret_key=get_settings().secret_key)

# Routers
from app.catalog_routes import router as catalog_router  # noqa: E402
from app.player_routes import router as player_router  # noqa: E402
from app.request_routes import router as request_router  # noqa: E402

app.include_router(catalog_router)
app.include_router(player_router)
app.include_router(request_router)


@app.get("/health")
async def health():
    """Simple health-check endpoint."""
    return JSONResponse({"status": "ok", "version": app.version})
